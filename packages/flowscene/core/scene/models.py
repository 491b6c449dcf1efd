"""Scene document: the compiler's output, consumed by renderers and the editor."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from flowscene.core.tracks.models import ConcreteTrack
from flowscene.core.utils.models import WireModel


class Vector2(WireModel):
    x: float
    y: float


class TextStyle(WireModel):
    font_family: str | None = None
    font_weight: str | None = None
    font_style: str | None = None
    fill_color: str | None = None
    stroke_color: str | None = None
    stroke_width: float | None = None


class SceneObject(WireModel):
    """One drawable instance in the compiled scene.

    Attributes:
        id: Object id (geometry node id, or a generated id for duplicates).
        type: Geometry type (``triangle``, ``circle``, ...).
        properties: Type-specific geometry, e.g. ``{"radius": 10, "color": "#ff0000"}``.
        initial_position: Position before any track runs.
        initial_rotation: Rotation in degrees.
        initial_scale: Scale factors.
        initial_opacity: Opacity in ``[0, 1]``.
        initial_fill_color: Fill color.
        initial_stroke_color: Stroke color, when set.
        initial_stroke_width: Stroke width, when set.
        appearance_time: Time the object enters the scene.
        text_style: Typography for text objects.
    """

    id: str
    type: str
    properties: dict[str, Any] = Field(default_factory=dict)
    initial_position: Vector2
    initial_rotation: float = 0.0
    initial_scale: Vector2 = Field(default_factory=lambda: Vector2(x=1, y=1))
    initial_opacity: float = 1.0
    initial_fill_color: str | None = None
    initial_stroke_color: str | None = None
    initial_stroke_width: float | None = None
    appearance_time: float = 0.0
    text_style: TextStyle | None = None


class SceneBackground(WireModel):
    color: str


class CanvasSettings(WireModel):
    """Output settings carried through unchanged from the terminal node."""

    kind: Literal["scene", "frame"] = "scene"
    width: int
    height: int
    fps: int | None = None
    video_preset: str | None = None
    video_crf: int | None = None
    image_format: str | None = None
    quality: int | None = None


class Scene(WireModel):
    """Compiled, time-ordered scene document.

    Attributes:
        duration: Total length in seconds.
        objects: Drawable objects, in delivery order.
        animations: Absolute-time tracks for those objects.
        background: Background fill.
        canvas: Output settings from the terminal node.
    """

    duration: float
    objects: list[SceneObject] = Field(default_factory=list)
    animations: list[ConcreteTrack] = Field(default_factory=list)
    background: SceneBackground
    canvas: CanvasSettings

    def find_object(self, object_id: str) -> SceneObject | None:
        return next((o for o in self.objects if o.id == object_id), None)

    def tracks_for(self, object_id: str) -> list[ConcreteTrack]:
        return [t for t in self.animations if t.object_id == object_id]


__all__ = [
    "CanvasSettings",
    "Scene",
    "SceneBackground",
    "SceneObject",
    "TextStyle",
    "Vector2",
]
