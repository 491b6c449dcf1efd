"""Structural fingerprints for cache keys."""

from __future__ import annotations

import hashlib
from typing import Any

from pydantic import BaseModel

from flowscene.core.utils.json import canonical_json


def compute_fingerprint(value: Any) -> str:
    """SHA256 hex digest of a value's canonical JSON form.

    Pydantic models are dumped in JSON mode first, so fields the model
    ignores (editor layout, selection state) never affect the digest.

    Args:
        value: Pydantic model or JSON-compatible value.

    Returns:
        64-character hex digest.
    """
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True)
    return hashlib.sha256(canonical_json(value).encode("utf-8")).hexdigest()


__all__ = ["compute_fingerprint"]
