"""Scene assembly: resolve every field of a plan and render its tracks.

Assembly is the only step that reads batch overrides, so a plan built once
can be assembled once per batch key with identical object and track ids.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from flowscene.core.config.models import CompilerConfig
from flowscene.core.diagnostics import Diagnostic, DiagnosticCode, has_errors
from flowscene.core.engine.plan import ObjectPlan, ScenePlan, TrackPlan
from flowscene.core.graph.models import NodeType
from flowscene.core.graph.payloads import ScenePayload
from flowscene.core.properties import field_paths as fp
from flowscene.core.properties.overrides import BatchOverrideTable, FieldSources
from flowscene.core.properties.resolver import PropertyResolver, ResolutionContext
from flowscene.core.scene.models import (
    CanvasSettings,
    Scene,
    SceneBackground,
    SceneObject,
    TextStyle,
    Vector2,
)
from flowscene.core.tracks.models import ConcreteTrack, Easing
from flowscene.core.tracks.registry import TrackRendererRegistry

logger = logging.getLogger(__name__)


class SceneAssembler:
    """Turns a ScenePlan into a Scene for one (optional) batch key.

    Args:
        config: Compiler guardrails.
        resolver: Property resolver; the default layer order when None.
        registry: Track renderers; every built-in type when None.
    """

    def __init__(
        self,
        config: CompilerConfig | None = None,
        resolver: PropertyResolver | None = None,
        registry: TrackRendererRegistry | None = None,
    ) -> None:
        self.config = config or CompilerConfig()
        self.resolver = resolver or PropertyResolver()
        self.registry = registry or TrackRendererRegistry.with_defaults()

    def assemble(
        self,
        plan: ScenePlan,
        batch: BatchOverrideTable | None = None,
        batch_key: str | None = None,
    ) -> tuple[Scene | None, list[Diagnostic]]:
        """Resolve and render ``plan``.

        Args:
            plan: Error-free plan from path execution.
            batch: Batch override table, if any.
            batch_key: Active key; None resolves ``__default__`` overrides only.

        Returns:
            ``(scene, diagnostics)``. ``scene`` is None when any diagnostic
            is an error.
        """
        diagnostics: list[Diagnostic] = []
        objects: list[SceneObject] = []
        animations: list[ConcreteTrack] = []

        for obj in plan.objects:
            values = self._resolve(obj.sources, obj.object_id, plan, batch, batch_key, diagnostics)
            objects.append(self._scene_object(obj, values))
            for track_plan in obj.tracks:
                animations.append(
                    self._render_track(track_plan, obj.object_id, plan, batch, batch_key, diagnostics)
                )

        diagnostics.extend(self._check_tracks(animations))
        duration = self._duration(plan, animations, diagnostics)

        if len(animations) > self.config.max_animations:
            diagnostics.append(
                Diagnostic.error(
                    DiagnosticCode.SCENE_VALIDATION_FAILED,
                    f"Scene has {len(animations)} animation tracks; the limit is "
                    f"{self.config.max_animations}",
                    node_id=plan.terminal.id,
                )
            )

        if has_errors(diagnostics):
            return None, diagnostics

        scene = Scene(
            duration=duration,
            objects=objects,
            animations=animations,
            background=SceneBackground(color=plan.terminal_payload.background_color),
            canvas=self._canvas(plan),
        )
        return scene, diagnostics

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _resolve(
        self,
        sources: Mapping[str, FieldSources],
        object_id: str,
        plan: ScenePlan,
        batch: BatchOverrideTable | None,
        batch_key: str | None,
        diagnostics: list[Diagnostic],
    ) -> dict[str, Any]:
        context = ResolutionContext(
            sources=sources,
            live_values=plan.live_values,
            batch=batch,
            batch_key=batch_key,
        )
        resolved = self.resolver.resolve_many(sources, object_id, context)
        values = {}
        for path, result in resolved.items():
            values[path] = result.value
            diagnostics.extend(result.notes)
        return values

    def _scene_object(self, obj: ObjectPlan, values: Mapping[str, Any]) -> SceneObject:
        properties: dict[str, Any] = dict(obj.base_properties)
        properties["color"] = values[fp.CANVAS_FILL_COLOR]
        if values[fp.CANVAS_STROKE_COLOR] is not None:
            properties["strokeColor"] = values[fp.CANVAS_STROKE_COLOR]
        if values[fp.CANVAS_STROKE_WIDTH] is not None:
            properties["strokeWidth"] = values[fp.CANVAS_STROKE_WIDTH]

        text_style = None
        if obj.object_type == NodeType.TEXT:
            properties["content"] = values[fp.TYPOGRAPHY_CONTENT]
            properties["fontSize"] = values[fp.TYPOGRAPHY_FONT_SIZE]
            text_style = TextStyle(
                font_family=values[fp.TYPOGRAPHY_FONT_FAMILY],
                font_weight=values[fp.TYPOGRAPHY_FONT_WEIGHT],
                font_style=values[fp.TYPOGRAPHY_FONT_STYLE],
                fill_color=values[fp.TYPOGRAPHY_FILL_COLOR],
                stroke_color=values[fp.TYPOGRAPHY_STROKE_COLOR],
                stroke_width=values[fp.TYPOGRAPHY_STROKE_WIDTH],
            )

        return SceneObject(
            id=obj.object_id,
            type=obj.object_type.value,
            properties=properties,
            initial_position=Vector2(x=values[fp.CANVAS_POSITION_X], y=values[fp.CANVAS_POSITION_Y]),
            initial_rotation=values[fp.CANVAS_ROTATION],
            initial_scale=Vector2(x=values[fp.CANVAS_SCALE_X], y=values[fp.CANVAS_SCALE_Y]),
            initial_opacity=values[fp.CANVAS_OPACITY],
            initial_fill_color=values[fp.CANVAS_FILL_COLOR],
            initial_stroke_color=values[fp.CANVAS_STROKE_COLOR],
            initial_stroke_width=values[fp.CANVAS_STROKE_WIDTH],
            appearance_time=obj.appearance_time,
            text_style=text_style,
        )

    def _render_track(
        self,
        track_plan: TrackPlan,
        object_id: str,
        plan: ScenePlan,
        batch: BatchOverrideTable | None,
        batch_key: str | None,
        diagnostics: list[Diagnostic],
    ) -> ConcreteTrack:
        definition = track_plan.definition
        values = self._resolve(track_plan.sources, object_id, plan, batch, batch_key, diagnostics)

        prefix = fp.timeline_path(definition.type, "")
        scalars: dict[str, Any] = {}
        properties = definition.effective_properties()
        for path, value in values.items():
            leaf = path[len(prefix) :]
            if leaf in fp.TRACK_SCALAR_LEAVES:
                scalars[leaf] = value
            else:
                fp.set_by_path(properties, leaf, value)

        resolved = definition.model_copy(
            update={
                "start_time": scalars["startTime"],
                "duration": scalars["duration"],
                "easing": Easing(scalars["easing"]),
                "properties": properties,
            }
        )
        return self.registry.render(resolved, object_id, track_plan.baseline, track_plan.ordinal)

    # ------------------------------------------------------------------
    # Bounds
    # ------------------------------------------------------------------

    @staticmethod
    def _check_tracks(animations: list[ConcreteTrack]) -> list[Diagnostic]:
        diagnostics = []
        for track in animations:
            if track.start_time < 0 or track.duration < 0:
                diagnostics.append(
                    Diagnostic.error(
                        DiagnosticCode.SCENE_VALIDATION_FAILED,
                        f"Track '{track.id}' has negative timing "
                        f"(start {track.start_time}, duration {track.duration})",
                        object_ids=[track.object_id],
                    )
                )
        return diagnostics

    def _duration(
        self,
        plan: ScenePlan,
        animations: list[ConcreteTrack],
        diagnostics: list[Diagnostic],
    ) -> float:
        """Larger of the configured duration and the latest track end, capped."""
        payload = plan.terminal_payload
        configured = payload.duration if isinstance(payload, ScenePayload) else 0.0
        latest = max((t.end_time for t in animations), default=0.0)
        duration = max(configured, latest)

        limit = self.config.max_scene_duration
        if duration > limit:
            duration = limit
            for track in animations:
                if track.end_time > limit:
                    diagnostics.append(
                        Diagnostic.warning(
                            DiagnosticCode.SCENE_VALIDATION_FAILED,
                            f"Track '{track.id}' ends at {track.end_time:g}s, after the scene "
                            f"ends at {limit:g}s; it will not finish",
                            object_ids=[track.object_id],
                        )
                    )
        return duration

    @staticmethod
    def _canvas(plan: ScenePlan) -> CanvasSettings:
        payload = plan.terminal_payload
        if isinstance(payload, ScenePayload):
            return CanvasSettings(
                kind="scene",
                width=payload.width,
                height=payload.height,
                fps=payload.fps,
                video_preset=payload.video_preset,
                video_crf=payload.video_crf,
            )
        return CanvasSettings(
            kind="frame",
            width=payload.width,
            height=payload.height,
            image_format=payload.image_format,
            quality=payload.quality,
        )


__all__ = ["SceneAssembler"]
