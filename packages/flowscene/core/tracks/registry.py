"""Track renderer registry.

Maps track types to renderer functions so that adding an animation type is
one ``register`` call rather than another branch in the assembler.
"""

from __future__ import annotations

import logging

from flowscene.core.tracks.models import ConcreteTrack, TrackDefinition, TrackType
from flowscene.core.tracks.renderers import TRACK_RENDERERS, TrackRenderer

logger = logging.getLogger(__name__)


class TrackRendererRegistry:
    """Registry of TrackRenderer functions keyed by track type.

    Example:
        >>> registry = TrackRendererRegistry.with_defaults()
        >>> concrete = registry.render(track, "circle-1", baseline_time=2.0)
    """

    def __init__(self) -> None:
        self._renderers: dict[TrackType, TrackRenderer] = {}

    @classmethod
    def with_defaults(cls) -> TrackRendererRegistry:
        """Registry pre-populated with a renderer for every built-in track type."""
        registry = cls()
        for track_type, renderer in TRACK_RENDERERS.items():
            registry.register(track_type, renderer)
        return registry

    def register(self, track_type: TrackType, renderer: TrackRenderer) -> None:
        """Register a renderer for a track type.

        Args:
            track_type: Track type handled.
            renderer: Pure function producing a ConcreteTrack.
        """
        if track_type in self._renderers:
            logger.warning(
                "Overwriting renderer for track type '%s' (old=%s, new=%s)",
                track_type.value,
                getattr(self._renderers[track_type], "__name__", "?"),
                getattr(renderer, "__name__", "?"),
            )
        self._renderers[track_type] = renderer

    def get(self, track_type: TrackType) -> TrackRenderer | None:
        return self._renderers.get(track_type)

    def render(
        self,
        track: TrackDefinition,
        object_id: str,
        baseline_time: float,
        ordinal: int = 0,
    ) -> ConcreteTrack:
        """Render a track with the renderer registered for its type.

        Args:
            track: Track definition, already resolved for this object.
            object_id: Drawable the track animates.
            baseline_time: Path time cursor when the animation node was reached.
            ordinal: Occurrence of this track id on the object's path.

        Returns:
            Concrete, absolute-time track.

        Raises:
            KeyError: If no renderer is registered for the track type.
        """
        renderer = self._renderers.get(track.type)
        if renderer is None:
            raise KeyError(f"No renderer registered for track type '{track.type.value}'")
        return renderer(track, object_id, baseline_time, ordinal)

    def registered_types(self) -> list[TrackType]:
        return list(self._renderers)

    def __len__(self) -> int:
        return len(self._renderers)


__all__ = ["TrackRendererRegistry"]
