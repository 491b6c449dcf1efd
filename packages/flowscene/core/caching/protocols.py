"""Protocol for in-process derivation caches."""

from typing import Protocol, TypeVar

from .models import CacheKey

V = TypeVar("V")


class DerivationCache(Protocol[V]):
    """
    Protocol for caches of immutable derived values.

    Implementations must tolerate concurrent callers: ``load`` may run
    while another thread stores. Cached values are shared, never copied,
    so only immutable values may be stored.
    """

    def load(self, key: CacheKey) -> V | None:
        """Return the cached value, or None on miss."""
        ...

    def store(self, key: CacheKey, value: V) -> None:
        """Cache ``value`` under ``key``."""
        ...

    def invalidate(self, key: CacheKey) -> None:
        """Drop ``key`` if present."""
        ...

    def clear(self) -> None:
        """Drop every entry."""
        ...

    def __len__(self) -> int: ...
