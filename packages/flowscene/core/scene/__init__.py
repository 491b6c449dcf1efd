"""Compiled scene document models."""

from flowscene.core.scene.models import (
    CanvasSettings,
    Scene,
    SceneBackground,
    SceneObject,
    TextStyle,
    Vector2,
)

__all__ = [
    "CanvasSettings",
    "Scene",
    "SceneBackground",
    "SceneObject",
    "TextStyle",
    "Vector2",
]
