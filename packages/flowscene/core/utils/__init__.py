"""Shared utilities for FlowScene."""

from flowscene.core.utils.json import canonical_json, read_json, write_json
from flowscene.core.utils.models import WireModel

__all__ = [
    "WireModel",
    "canonical_json",
    "read_json",
    "write_json",
]
