"""No-op cache for tests and one-shot compiles.

Always reports a miss, discards all stores.
"""

from typing import Generic, TypeVar

from flowscene.core.caching.models import CacheKey

V = TypeVar("V")


class NullCache(Generic[V]):
    """No-op derivation cache."""

    def load(self, key: CacheKey) -> V | None:
        """Always returns None."""
        return None

    def store(self, key: CacheKey, value: V) -> None:
        """Discard."""

    def invalidate(self, key: CacheKey) -> None:
        """No-op."""

    def clear(self) -> None:
        """No-op."""

    def __len__(self) -> int:
        return 0
