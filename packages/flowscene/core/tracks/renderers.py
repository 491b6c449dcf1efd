"""Per-type track renderers.

Each renderer turns one abstract ``TrackDefinition`` into a ``ConcreteTrack``
baselined at the path's time cursor. Renderers are pure: they deep-copy
before/after values and never clamp times (bounds are checked after
assembly).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from flowscene.core.tracks.models import ConcreteTrack, TrackDefinition, TrackType

TrackRenderer = Callable[[TrackDefinition, str, float, int], ConcreteTrack]


def concrete_track_id(object_id: str, track_id: str, ordinal: int) -> str:
    """Stable id of a concrete track: ``<objectId>::<trackId>::<ordinal>``."""
    return f"{object_id}::{track_id}::{ordinal}"


def _pick(properties: dict[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    return {key: properties[key] for key in keys if key in properties}


def _render(
    keys: tuple[str, ...],
    track: TrackDefinition,
    object_id: str,
    baseline_time: float,
    ordinal: int,
) -> ConcreteTrack:
    return ConcreteTrack(
        id=concrete_track_id(object_id, track.id, ordinal),
        object_id=object_id,
        type=track.type,
        start_time=baseline_time + track.start_time,
        duration=track.duration,
        easing=track.easing,
        properties=_pick(track.effective_properties(), keys),
    )


def render_move(
    track: TrackDefinition, object_id: str, baseline_time: float, ordinal: int = 0
) -> ConcreteTrack:
    return _render(("from", "to"), track, object_id, baseline_time, ordinal)


def render_rotate(
    track: TrackDefinition, object_id: str, baseline_time: float, ordinal: int = 0
) -> ConcreteTrack:
    """Rotate keeps configured start/end angles alongside the turn count."""
    return _render(("from", "to", "rotations"), track, object_id, baseline_time, ordinal)


def render_scale(
    track: TrackDefinition, object_id: str, baseline_time: float, ordinal: int = 0
) -> ConcreteTrack:
    return _render(("from", "to"), track, object_id, baseline_time, ordinal)


def render_fade(
    track: TrackDefinition, object_id: str, baseline_time: float, ordinal: int = 0
) -> ConcreteTrack:
    return _render(("from", "to"), track, object_id, baseline_time, ordinal)


def render_color(
    track: TrackDefinition, object_id: str, baseline_time: float, ordinal: int = 0
) -> ConcreteTrack:
    return _render(("from", "to", "property"), track, object_id, baseline_time, ordinal)


TRACK_RENDERERS: dict[TrackType, TrackRenderer] = {
    TrackType.MOVE: render_move,
    TrackType.ROTATE: render_rotate,
    TrackType.SCALE: render_scale,
    TrackType.FADE: render_fade,
    TrackType.COLOR: render_color,
}


__all__ = [
    "TRACK_RENDERERS",
    "TrackRenderer",
    "concrete_track_id",
    "render_color",
    "render_fade",
    "render_move",
    "render_rotate",
    "render_scale",
]
