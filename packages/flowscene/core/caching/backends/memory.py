"""In-memory cache with an immutable-snapshot-and-replace policy.

Readers look up in the current snapshot without taking a lock. Writers build
a new mapping under a lock and swap the reference in one assignment, so a
reader never observes a half-updated mapping.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from threading import Lock
from types import MappingProxyType
from typing import Generic, TypeVar

from flowscene.core.caching.models import CacheKey

logger = logging.getLogger(__name__)

V = TypeVar("V")


class SnapshotCache(Generic[V]):
    """
    Bounded in-memory cache safe for concurrent lookup.

    Eviction is least-recently-stored: the oldest insertion is dropped when
    ``max_entries`` is exceeded. Lookups do not reorder entries, which keeps
    reads lock-free.
    """

    def __init__(self, max_entries: int = 64) -> None:
        """
        Initialize the cache.

        Args:
            max_entries: Maximum number of entries kept (must be >= 1)
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.max_entries = max_entries
        self._snapshot: MappingProxyType[CacheKey, V] = MappingProxyType({})
        self._write_lock = Lock()

    def load(self, key: CacheKey) -> V | None:
        value = self._snapshot.get(key)
        if value is None:
            logger.debug("Cache miss: %s", key)
        return value

    def store(self, key: CacheKey, value: V) -> None:
        with self._write_lock:
            entries: OrderedDict[CacheKey, V] = OrderedDict(self._snapshot)
            entries.pop(key, None)
            entries[key] = value
            while len(entries) > self.max_entries:
                evicted, _ = entries.popitem(last=False)
                logger.debug("Evicted cache entry: %s", evicted)
            self._snapshot = MappingProxyType(dict(entries))

    def invalidate(self, key: CacheKey) -> None:
        with self._write_lock:
            if key in self._snapshot:
                entries = dict(self._snapshot)
                del entries[key]
                self._snapshot = MappingProxyType(entries)

    def clear(self) -> None:
        with self._write_lock:
            self._snapshot = MappingProxyType({})

    def __len__(self) -> int:
        return len(self._snapshot)
