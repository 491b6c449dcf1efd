"""Cache backends."""

from flowscene.core.caching.backends.memory import SnapshotCache
from flowscene.core.caching.backends.null import NullCache

__all__ = ["NullCache", "SnapshotCache"]
