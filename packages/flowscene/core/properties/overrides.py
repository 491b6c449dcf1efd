"""Override tables consumed by the property resolver."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ALL_OBJECTS = "__all__"
DEFAULT_SLOT = "__default__"


@dataclass(frozen=True)
class FieldSources:
    """Everything the non-batch layers need for one field of one object.

    Collected while walking an execution path; the last node on the path that
    configures, assigns or binds a field replaces its sources.

    Attributes:
        default: Node-level configured value (or the value carried from upstream).
        has_assignment: Whether a manual per-object assignment exists.
        assignment: The assigned value.
        binding: Result node id the field is bound to.
        origin_node_id: Node that supplied these sources.
    """

    default: Any = None
    has_assignment: bool = False
    assignment: Any = None
    binding: str | None = None
    origin_node_id: str | None = None


class BatchOverrideTable(BaseModel):
    """Keyed override table: field path -> object scope -> key -> value.

    Object scope is a drawable id or ``__all__``. The ``__default__`` key
    applies when the active key has no entry.

    Example:
        >>> table = BatchOverrideTable(entries={
        ...     "Canvas.fillColor": {"circle-1": {"__default__": "#00ff00", "promoA": "#ff00ff"}}
        ... })
        >>> table.keys()
        ['promoA']
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    entries: dict[str, dict[str, dict[str, Any]]] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: BatchOverrideTable | Mapping[str, Any] | None) -> BatchOverrideTable:
        """Accept either a table or the bare nested mapping the editor stores."""
        if raw is None:
            return cls()
        if isinstance(raw, BatchOverrideTable):
            return raw
        if set(raw) == {"entries"}:
            return cls.model_validate(raw)
        return cls(entries=dict(raw))

    def is_empty(self) -> bool:
        return not self.entries

    def keys(self) -> list[str]:
        """Distinct batch keys across every field and scope, sorted."""
        found: set[str] = set()
        for scopes in self.entries.values():
            for slots in scopes.values():
                found.update(k for k in slots if k != DEFAULT_SLOT)
        return sorted(found)

    def lookup(self, field_path: str, object_id: str | None, slot: str) -> tuple[bool, Any]:
        """Find an override for ``slot``, object scope first, then ``__all__``.

        Returns:
            ``(found, value)``.
        """
        scopes = self.entries.get(field_path)
        if not scopes:
            return False, None
        for scope in (object_id, ALL_OBJECTS):
            if scope is None:
                continue
            slots = scopes.get(scope)
            if slots is not None and slot in slots:
                return True, slots[slot]
        return False, None

    def oversized_entries(self, soft_cap: int) -> list[tuple[str, str, int]]:
        """``(field_path, scope, key_count)`` for entries with more than ``soft_cap`` keys."""
        oversized = []
        for field_path, scopes in self.entries.items():
            for scope, slots in scopes.items():
                count = sum(1 for k in slots if k != DEFAULT_SLOT)
                if count > soft_cap:
                    oversized.append((field_path, scope, count))
        return oversized


__all__ = ["ALL_OBJECTS", "DEFAULT_SLOT", "BatchOverrideTable", "FieldSources"]
