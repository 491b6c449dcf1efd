"""Resolution-ready output of path execution.

A ``ScenePlan`` fixes topology: which objects reach the output node, which
tracks they carry and at what baseline. Field values are left as
``FieldSources`` so the plan can be assembled once per batch key without
walking the graph again.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from flowscene.core.diagnostics import Diagnostic
from flowscene.core.graph.models import Node, NodeType
from flowscene.core.graph.payloads import FramePayload, ScenePayload
from flowscene.core.properties.overrides import FieldSources
from flowscene.core.tracks.models import TrackDefinition


@dataclass(frozen=True)
class TrackPlan:
    """One track emitted for one object by an animation node.

    Attributes:
        node_id: Animation node that emitted it.
        definition: Track as configured on the node.
        baseline: Path time cursor when the node was reached.
        ordinal: Occurrence of this track id on the object's path.
        sources: Layer inputs per ``Timeline.<type>.*`` field path.
    """

    node_id: str
    definition: TrackDefinition
    baseline: float
    ordinal: int
    sources: Mapping[str, FieldSources]


@dataclass(frozen=True)
class ObjectPlan:
    """One drawable delivered to the output node.

    Attributes:
        object_id: Id in the compiled scene.
        origin_id: Geometry node the object came from (differs for duplicates).
        object_type: Geometry type.
        base_properties: Type-specific geometry that is not overridable.
        appearance_time: Time the object enters the scene.
        inserted: Whether an insert node was on the path.
        sources: Layer inputs per ``Canvas.*`` / ``Typography.*`` field path.
        tracks: Tracks in path order.
    """

    object_id: str
    origin_id: str
    object_type: NodeType
    base_properties: Mapping[str, Any]
    appearance_time: float
    inserted: bool
    sources: Mapping[str, FieldSources]
    tracks: tuple[TrackPlan, ...] = ()


@dataclass(frozen=True)
class ScenePlan:
    """Everything needed to assemble a Scene, minus field resolution.

    Attributes:
        terminal: The scene or frame output node.
        terminal_payload: Its validated payload.
        objects: Delivered objects, in delivery order.
        live_values: Evaluated value of every result node.
        diagnostics: Warnings gathered while planning.
    """

    terminal: Node
    terminal_payload: ScenePayload | FramePayload
    objects: tuple[ObjectPlan, ...]
    live_values: Mapping[str, Any] = field(default_factory=dict)
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def object_ids(self) -> list[str]:
        return [obj.object_id for obj in self.objects]

    @property
    def track_count(self) -> int:
        return sum(len(obj.tracks) for obj in self.objects)


__all__ = ["ObjectPlan", "ScenePlan", "TrackPlan"]
