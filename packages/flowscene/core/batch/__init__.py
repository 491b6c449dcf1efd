"""Batch override expansion into per-key scene variants."""

from flowscene.core.batch.expansion import (
    BatchExpander,
    BatchResult,
    SceneVariant,
    discover_keys,
    expand_batch,
)

__all__ = [
    "BatchExpander",
    "BatchResult",
    "SceneVariant",
    "discover_keys",
    "expand_batch",
]
