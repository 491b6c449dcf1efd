"""Animation track models.

``TrackDefinition`` is what an animation node stores: offsets relative to the
path's local time cursor. ``ConcreteTrack`` is what the renderer consumes:
absolute start time, bound to exactly one drawable object.
"""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any

from pydantic import Field

from flowscene.core.utils.models import WireModel


class TrackType(str, Enum):
    MOVE = "move"
    ROTATE = "rotate"
    SCALE = "scale"
    FADE = "fade"
    COLOR = "color"


class Easing(str, Enum):
    LINEAR = "linear"
    EASE_IN_OUT = "easeInOut"
    EASE_IN = "easeIn"
    EASE_OUT = "easeOut"


# Per-type property defaults applied under whatever the node configures.
TRACK_PROPERTY_DEFAULTS: dict[TrackType, dict[str, Any]] = {
    TrackType.MOVE: {"from": {"x": 0, "y": 0}, "to": {"x": 100, "y": 100}},
    TrackType.ROTATE: {"from": 0, "to": 0, "rotations": 1},
    TrackType.SCALE: {"from": 1, "to": 1.5},
    TrackType.FADE: {"from": 1, "to": 0.5},
    TrackType.COLOR: {"from": "#ff0000", "to": "#00ff00", "property": "fill"},
}


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class TrackDefinition(WireModel):
    """Abstract track as configured on an animation node.

    Attributes:
        id: Track id, unique within its node.
        type: Track type.
        start_time: Offset from the path's local time cursor, in seconds.
        duration: Track length in seconds.
        easing: Easing curve.
        properties: Type-specific before/after values.
    """

    id: str = Field(min_length=1)
    type: TrackType
    start_time: float = Field(default=0.0)
    duration: float = 1.0
    easing: Easing = Field(default=Easing.LINEAR)
    properties: dict[str, Any] = Field(default_factory=dict)

    @property
    def end_offset(self) -> float:
        return self.start_time + self.duration

    def effective_properties(self) -> dict[str, Any]:
        """Configured properties layered over the type defaults (deep copy)."""
        return _deep_merge(TRACK_PROPERTY_DEFAULTS[self.type], self.properties)


class ConcreteTrack(WireModel):
    """Absolute-time track in the compiled Scene.

    Attributes:
        id: ``<objectId>::<trackId>::<ordinal>``; stable across batch variants.
        object_id: Drawable the track animates.
        type: Track type.
        start_time: Absolute start, in seconds.
        duration: Length, in seconds.
        easing: Easing curve.
        properties: Type-specific values (``from``/``to`` and friends).
    """

    id: str
    object_id: str
    type: TrackType
    start_time: float
    duration: float
    easing: Easing
    properties: dict[str, Any] = Field(default_factory=dict)

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


__all__ = [
    "TRACK_PROPERTY_DEFAULTS",
    "ConcreteTrack",
    "Easing",
    "TrackDefinition",
    "TrackType",
]
