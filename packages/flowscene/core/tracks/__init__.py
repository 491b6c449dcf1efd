"""Animation track models and renderers."""

from flowscene.core.tracks.models import (
    TRACK_PROPERTY_DEFAULTS,
    ConcreteTrack,
    Easing,
    TrackDefinition,
    TrackType,
)
from flowscene.core.tracks.registry import TrackRendererRegistry
from flowscene.core.tracks.renderers import TRACK_RENDERERS, concrete_track_id

__all__ = [
    "TRACK_PROPERTY_DEFAULTS",
    "TRACK_RENDERERS",
    "ConcreteTrack",
    "Easing",
    "TrackDefinition",
    "TrackRendererRegistry",
    "TrackType",
    "concrete_track_id",
]
