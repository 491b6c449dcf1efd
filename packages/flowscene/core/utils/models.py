"""Base model for documents exchanged with the graph editor and renderer.

Python attributes are snake_case; the wire format is camelCase. Both spellings
are accepted on input, and ``to_wire()`` emits camelCase.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Frozen pydantic model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump to the camelCase JSON-compatible shape, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = ["WireModel"]
