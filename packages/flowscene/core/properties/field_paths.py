"""Catalogue of overridable field paths.

Field paths are dot-separated and namespaced by the editor panel that owns
them:

- ``Canvas.*`` initial transform and colors of a drawable
- ``Typography.*`` text content and style of text drawables
- ``Timeline.<trackType>.*`` animation track timing and before/after values

Every numeric or color leaf is its own path, so ``Canvas.position.x`` and
``Canvas.position.y`` are overridden independently.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Any

from flowscene.core.tracks.models import TRACK_PROPERTY_DEFAULTS, TrackType


class FieldKind(str, Enum):
    NUMBER = "number"
    STRING = "string"
    COLOR = "color"
    EASING = "easing"
    ANY = "any"


CANVAS_POSITION_X = "Canvas.position.x"
CANVAS_POSITION_Y = "Canvas.position.y"
CANVAS_SCALE_X = "Canvas.scale.x"
CANVAS_SCALE_Y = "Canvas.scale.y"
CANVAS_ROTATION = "Canvas.rotation"
CANVAS_OPACITY = "Canvas.opacity"
CANVAS_FILL_COLOR = "Canvas.fillColor"
CANVAS_STROKE_COLOR = "Canvas.strokeColor"
CANVAS_STROKE_WIDTH = "Canvas.strokeWidth"

CANVAS_FIELDS: dict[str, FieldKind] = {
    CANVAS_POSITION_X: FieldKind.NUMBER,
    CANVAS_POSITION_Y: FieldKind.NUMBER,
    CANVAS_SCALE_X: FieldKind.NUMBER,
    CANVAS_SCALE_Y: FieldKind.NUMBER,
    CANVAS_ROTATION: FieldKind.NUMBER,
    CANVAS_OPACITY: FieldKind.NUMBER,
    CANVAS_FILL_COLOR: FieldKind.COLOR,
    CANVAS_STROKE_COLOR: FieldKind.COLOR,
    CANVAS_STROKE_WIDTH: FieldKind.NUMBER,
}

TYPOGRAPHY_CONTENT = "Typography.content"
TYPOGRAPHY_FONT_SIZE = "Typography.fontSize"
TYPOGRAPHY_FONT_FAMILY = "Typography.fontFamily"
TYPOGRAPHY_FONT_WEIGHT = "Typography.fontWeight"
TYPOGRAPHY_FONT_STYLE = "Typography.fontStyle"
TYPOGRAPHY_FILL_COLOR = "Typography.fillColor"
TYPOGRAPHY_STROKE_COLOR = "Typography.strokeColor"
TYPOGRAPHY_STROKE_WIDTH = "Typography.strokeWidth"

TYPOGRAPHY_FIELDS: dict[str, FieldKind] = {
    TYPOGRAPHY_CONTENT: FieldKind.STRING,
    TYPOGRAPHY_FONT_SIZE: FieldKind.NUMBER,
    TYPOGRAPHY_FONT_FAMILY: FieldKind.STRING,
    TYPOGRAPHY_FONT_WEIGHT: FieldKind.STRING,
    TYPOGRAPHY_FONT_STYLE: FieldKind.STRING,
    TYPOGRAPHY_FILL_COLOR: FieldKind.COLOR,
    TYPOGRAPHY_STROKE_COLOR: FieldKind.COLOR,
    TYPOGRAPHY_STROKE_WIDTH: FieldKind.NUMBER,
}

# Track-level scalars; everything else under Timeline.<type> is a property leaf.
TRACK_SCALAR_LEAVES: dict[str, FieldKind] = {
    "startTime": FieldKind.NUMBER,
    "duration": FieldKind.NUMBER,
    "easing": FieldKind.EASING,
}


def _kind_of_default(value: Any) -> FieldKind:
    if isinstance(value, bool):
        return FieldKind.ANY
    if isinstance(value, int | float):
        return FieldKind.NUMBER
    if isinstance(value, str):
        return FieldKind.COLOR if value.startswith("#") else FieldKind.STRING
    return FieldKind.ANY


def iter_leaves(value: Any, prefix: str = "") -> Iterator[tuple[str, Any]]:
    """Yield ``(dotted_path, leaf)`` for every non-dict leaf of a nested mapping."""
    if isinstance(value, dict):
        for key, child in value.items():
            yield from iter_leaves(child, f"{prefix}.{key}" if prefix else str(key))
    else:
        yield prefix, value


def timeline_path(track_type: TrackType | str, leaf: str) -> str:
    """Field path for one leaf of a track type, e.g. ``Timeline.move.from.x``."""
    name = track_type.value if isinstance(track_type, TrackType) else track_type
    return f"Timeline.{name}.{leaf}"


def _timeline_fields() -> dict[str, FieldKind]:
    fields: dict[str, FieldKind] = {}
    for track_type, defaults in TRACK_PROPERTY_DEFAULTS.items():
        for leaf, kind in TRACK_SCALAR_LEAVES.items():
            fields[timeline_path(track_type, leaf)] = kind
        for leaf, value in iter_leaves(defaults):
            fields[timeline_path(track_type, leaf)] = _kind_of_default(value)
    return fields


TIMELINE_FIELDS: dict[str, FieldKind] = _timeline_fields()

FIELD_KINDS: dict[str, FieldKind] = {**CANVAS_FIELDS, **TYPOGRAPHY_FIELDS, **TIMELINE_FIELDS}


def field_kind(field_path: str) -> FieldKind:
    """Kind of a field path; ``ANY`` for paths outside the catalogue."""
    return FIELD_KINDS.get(field_path, FieldKind.ANY)


def is_known_field(field_path: str) -> bool:
    return field_path in FIELD_KINDS


def get_by_path(data: dict[str, Any], dotted: str) -> tuple[bool, Any]:
    """Read a dotted path from nested dicts; returns ``(found, value)``."""
    current: Any = data
    for part in dotted.split("."):
        if not isinstance(current, dict) or part not in current:
            return False, None
        current = current[part]
    return True, current


def set_by_path(data: dict[str, Any], dotted: str, value: Any) -> None:
    """Write a dotted path into nested dicts, creating intermediate dicts."""
    parts = dotted.split(".")
    current = data
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


__all__ = [
    "CANVAS_FIELDS",
    "CANVAS_FILL_COLOR",
    "CANVAS_OPACITY",
    "CANVAS_POSITION_X",
    "CANVAS_POSITION_Y",
    "CANVAS_ROTATION",
    "CANVAS_SCALE_X",
    "CANVAS_SCALE_Y",
    "CANVAS_STROKE_COLOR",
    "CANVAS_STROKE_WIDTH",
    "FIELD_KINDS",
    "TIMELINE_FIELDS",
    "TRACK_SCALAR_LEAVES",
    "TYPOGRAPHY_CONTENT",
    "TYPOGRAPHY_FIELDS",
    "TYPOGRAPHY_FILL_COLOR",
    "TYPOGRAPHY_FONT_FAMILY",
    "TYPOGRAPHY_FONT_SIZE",
    "TYPOGRAPHY_FONT_STYLE",
    "TYPOGRAPHY_FONT_WEIGHT",
    "TYPOGRAPHY_STROKE_COLOR",
    "TYPOGRAPHY_STROKE_WIDTH",
    "FieldKind",
    "field_kind",
    "get_by_path",
    "is_known_field",
    "iter_leaves",
    "set_by_path",
    "timeline_path",
]
