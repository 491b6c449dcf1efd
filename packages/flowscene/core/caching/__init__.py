"""Caching for derived graph structures.

Graph indexes are pure functions of the node/edge lists, so an unchanged
graph can reuse a previously built index. Key features:
- Type-safe cache keys (step_id + version + input fingerprint)
- Fingerprints over canonical JSON, insensitive to key order
- Lock-free reads via snapshot-and-replace writes
"""

from flowscene.core.caching.backends.memory import SnapshotCache
from flowscene.core.caching.backends.null import NullCache
from flowscene.core.caching.fingerprint import compute_fingerprint
from flowscene.core.caching.models import CacheKey
from flowscene.core.caching.protocols import DerivationCache

__all__ = [
    # Core
    "CacheKey",
    "DerivationCache",
    # Backends
    "NullCache",
    "SnapshotCache",
    # Utils
    "compute_fingerprint",
]
