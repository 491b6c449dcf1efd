"""Execution paths.

Every geometry node starts one execution path carrying its drawable object.
Nodes are visited in topological order; each node receives the path states
that arrive on its object-stream input, transforms them (gate, time, fork,
annotate) and forwards copies down every outgoing object-stream edge.

A path state is private to its path. Forwarding always copies, so no path
observes another path's time cursor or field sources, and the outcome does
not depend on which path is processed first.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, cast

from flowscene.core.config.models import CompilerConfig
from flowscene.core.diagnostics import Diagnostic, DiagnosticCode
from flowscene.core.engine.plan import ObjectPlan, ScenePlan, TrackPlan
from flowscene.core.graph.index import GraphIndex
from flowscene.core.graph.models import Edge, Node, NodeType
from flowscene.core.graph.payloads import (
    AnimationPayload,
    CanvasPayload,
    DuplicatePayload,
    FilterPayload,
    FramePayload,
    GeometryPayload,
    InsertPayload,
    PropertyPayload,
    ScenePayload,
    TextPayload,
    TextStylePayload,
)
from flowscene.core.graph.ports import PortKind, merge_port_index
from flowscene.core.properties import field_paths as fp
from flowscene.core.properties.overrides import FieldSources

logger = logging.getLogger(__name__)

# Geometry payload fields copied verbatim into SceneObject.properties.
_GEOMETRY_FIELDS: dict[NodeType, tuple[str, ...]] = {
    NodeType.TRIANGLE: ("size",),
    NodeType.CIRCLE: ("radius",),
    NodeType.RECTANGLE: ("width", "height"),
    NodeType.TEXT: (),
}


@dataclass
class PathState:
    """Mutable state of one object on one execution path."""

    object_id: str
    origin_id: str
    object_type: NodeType
    base_properties: Mapping[str, Any]
    sources: dict[str, FieldSources]
    cursor: float = 0.0
    appearance_time: float = 0.0
    inserted: bool = False
    tracks: list[TrackPlan] = field(default_factory=list)
    track_counts: dict[str, int] = field(default_factory=dict)

    def fork(self, object_id: str | None = None) -> PathState:
        """Independent copy, optionally under a new object id."""
        return replace(
            self,
            object_id=object_id or self.object_id,
            sources=dict(self.sources),
            tracks=list(self.tracks),
            track_counts=dict(self.track_counts),
        )

    def to_plan(self) -> ObjectPlan:
        return ObjectPlan(
            object_id=self.object_id,
            origin_id=self.origin_id,
            object_type=self.object_type,
            base_properties=dict(self.base_properties),
            appearance_time=self.appearance_time,
            inserted=self.inserted,
            sources=dict(self.sources),
            tracks=tuple(self.tracks),
        )


Arrival = tuple[Edge, PathState]
StepFn = Callable[[Node, Edge, PathState], list[PathState]]


def initial_state(node: Node, payload: GeometryPayload) -> PathState:
    """Path state of a freshly created drawable, seeded with its own defaults."""

    def own(value: Any) -> FieldSources:
        return FieldSources(default=value, origin_node_id=node.id)

    sources = {
        fp.CANVAS_POSITION_X: own(payload.position.x),
        fp.CANVAS_POSITION_Y: own(payload.position.y),
        fp.CANVAS_SCALE_X: own(1.0),
        fp.CANVAS_SCALE_Y: own(1.0),
        fp.CANVAS_ROTATION: own(0.0),
        fp.CANVAS_OPACITY: own(1.0),
        fp.CANVAS_FILL_COLOR: own(payload.color),
        fp.CANVAS_STROKE_COLOR: own(payload.stroke_color),
        fp.CANVAS_STROKE_WIDTH: own(payload.stroke_width),
    }
    node_type = cast(NodeType, node.node_type)
    if node_type == NodeType.TEXT:
        text = cast(TextPayload, payload)
        sources.update({path: own(None) for path in fp.TYPOGRAPHY_FIELDS})
        sources[fp.TYPOGRAPHY_CONTENT] = own(text.content)
        sources[fp.TYPOGRAPHY_FONT_SIZE] = own(text.font_size)

    return PathState(
        object_id=node.id,
        origin_id=node.id,
        object_type=node_type,
        base_properties={name: getattr(payload, name) for name in _GEOMETRY_FIELDS[node_type]},
        sources=sources,
    )


def _canvas_values(payload: CanvasPayload) -> dict[str, Any]:
    values = {
        fp.CANVAS_POSITION_X: payload.position.x if payload.position else None,
        fp.CANVAS_POSITION_Y: payload.position.y if payload.position else None,
        fp.CANVAS_SCALE_X: payload.scale.x if payload.scale else None,
        fp.CANVAS_SCALE_Y: payload.scale.y if payload.scale else None,
        fp.CANVAS_ROTATION: payload.rotation,
        fp.CANVAS_OPACITY: payload.opacity,
        fp.CANVAS_FILL_COLOR: payload.fill_color,
        fp.CANVAS_STROKE_COLOR: payload.stroke_color,
        fp.CANVAS_STROKE_WIDTH: payload.stroke_width,
    }
    return {path: value for path, value in values.items() if value is not None}


def _textstyle_values(payload: TextStylePayload) -> dict[str, Any]:
    values = {
        fp.TYPOGRAPHY_FONT_FAMILY: payload.font_family,
        fp.TYPOGRAPHY_FONT_WEIGHT: payload.font_weight,
        fp.TYPOGRAPHY_FONT_STYLE: payload.font_style,
        fp.TYPOGRAPHY_FILL_COLOR: payload.fill_color,
        fp.TYPOGRAPHY_STROKE_COLOR: payload.stroke_color,
        fp.TYPOGRAPHY_STROKE_WIDTH: payload.stroke_width,
    }
    return {path: value for path, value in values.items() if value is not None}


class PathExecutor:
    """Walks every execution path of one indexed graph.

    Single use: create one executor per compile.

    Example:
        >>> executor = PathExecutor(index, CompilerConfig())
        >>> plan = executor.execute(order, terminal, live_values)
    """

    def __init__(self, index: GraphIndex, config: CompilerConfig) -> None:
        self.index = index
        self.config = config
        self._diagnostics: list[Diagnostic] = []
        self._filtered_origins: set[str] = set()
        self._taken_ids: set[str] = set(index.nodes)
        self._visible: dict[str, frozenset[str]] = {}
        self._availability: dict[str, frozenset[str]] = {}
        self._steps: dict[NodeType, StepFn] = {
            NodeType.INSERT: self._step_insert,
            NodeType.FILTER: self._step_filter,
            NodeType.DUPLICATE: self._step_duplicate,
            NodeType.CANVAS: self._step_canvas,
            NodeType.TEXTSTYLE: self._step_textstyle,
            NodeType.ANIMATION: self._step_animation,
        }

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def execute(
        self,
        order: Iterable[str],
        terminal: Node,
        live_values: Mapping[str, Any],
    ) -> ScenePlan:
        """Run every path and collect what reaches ``terminal``.

        Args:
            order: Topological order of all nodes.
            terminal: The single scene/frame output node.
            live_values: Evaluated result-node values.

        Returns:
            Plan of delivered objects. Its diagnostics may include errors, in
            which case the plan must not be assembled.
        """
        arrivals: dict[str, list[Arrival]] = defaultdict(list)
        delivered: list[PathState] = []

        for node_id in order:
            node = self.index.node(node_id)
            incoming = arrivals.pop(node_id, [])

            if node.is_geometry:
                payload = cast(GeometryPayload, self.index.payload(node_id))
                states = [initial_state(node, payload)]
            elif node.node_type is None:
                if incoming:
                    self._error(
                        DiagnosticCode.NODE_VALIDATION_FAILED,
                        f"Unknown node type '{node.type}' on an object path at {node.label}",
                        node_id=node.id,
                        object_ids=[s.object_id for _, s in incoming],
                    )
                continue
            elif not incoming:
                continue
            elif node.node_type == NodeType.MERGE:
                states = self._merge(incoming)
            else:
                incoming = self._reject_repeats(node, incoming)
                if node.is_terminal:
                    delivered.extend(state for _, state in incoming)
                    continue
                step = self._steps[node.node_type]
                states = [out for edge, state in incoming for out in step(node, edge, state)]

            self._forward(node, states, arrivals)

        objects = self._finish(terminal, delivered)
        logger.debug(
            "Executed paths: %d objects delivered to %s, %d diagnostics",
            len(objects),
            terminal.id,
            len(self._diagnostics),
        )
        return ScenePlan(
            terminal=terminal,
            terminal_payload=cast(ScenePayload | FramePayload, self.index.payload(terminal.id)),
            objects=tuple(objects),
            live_values=dict(live_values),
            diagnostics=tuple(self._diagnostics),
        )

    # ------------------------------------------------------------------
    # Flow
    # ------------------------------------------------------------------

    def _forward(self, node: Node, states: list[PathState], arrivals: dict[str, list[Arrival]]) -> None:
        for edge in self.index.outgoing(node.id, PortKind.OBJECT_STREAM):
            for state in states:
                arrivals[edge.target].append((edge, state.fork()))

    def _merge(self, incoming: list[Arrival]) -> list[PathState]:
        """Reclaim objects arriving on several ports; the lowest port number wins.

        The merged path continues from the latest cursor among its arrivals.
        """
        best: dict[str, tuple[int, PathState]] = {}
        latest: dict[str, float] = {}
        for edge, state in incoming:
            port = merge_port_index(edge.target_port) or 0
            current = best.get(state.object_id)
            if current is None or port < current[0]:
                best[state.object_id] = (port, state)
            latest[state.object_id] = max(latest.get(state.object_id, state.cursor), state.cursor)

        merged = []
        for object_id, (_, state) in best.items():
            out = state.fork()
            out.cursor = latest[object_id]
            merged.append(out)
        return merged

    def _reject_repeats(self, node: Node, incoming: list[Arrival]) -> list[Arrival]:
        first_edge: dict[str, Edge] = {}
        kept: list[Arrival] = []
        for edge, state in incoming:
            earlier = first_edge.get(state.object_id)
            if earlier is not None:
                self._error(
                    DiagnosticCode.DUPLICATE_OBJECT_IDS,
                    f"Object '{state.object_id}' reaches {node.label} through more than one path",
                    node_id=node.id,
                    edge_ids=[earlier.id, edge.id],
                    object_ids=[state.object_id],
                )
                continue
            first_edge[state.object_id] = edge
            kept.append((edge, state))
        return kept

    # ------------------------------------------------------------------
    # Node steps
    # ------------------------------------------------------------------

    def _step_insert(self, node: Node, edge: Edge, state: PathState) -> list[PathState]:
        payload = cast(InsertPayload, self.index.payload(node.id))
        if state.inserted:
            self._error(
                DiagnosticCode.MULTIPLE_INSERT_NODES_IN_SERIES,
                f"Object '{state.object_id}' passes through more than one Insert node ({node.label})",
                node_id=node.id,
                object_ids=[state.object_id],
            )
            return [state]
        state.inserted = True
        state.appearance_time = payload.appearance_time
        state.cursor = max(state.cursor, payload.appearance_time)
        return [state]

    def _step_filter(self, node: Node, edge: Edge, state: PathState) -> list[PathState]:
        payload = cast(FilterPayload, self.index.payload(node.id))
        selected = set(payload.selected_object_ids)
        chosen = state.object_id in selected or state.origin_id in selected
        if chosen and state.origin_id in self._available(edge):
            return [state]
        logger.debug("Filter %s drops object %s", node.id, state.object_id)
        self._filtered_origins.add(state.origin_id)
        return []

    def _step_duplicate(self, node: Node, edge: Edge, state: PathState) -> list[PathState]:
        payload = cast(DuplicatePayload, self.index.payload(node.id))
        count = min(max(payload.count, 1), self.config.max_duplicate_count)
        if count != payload.count:
            logger.debug("Duplicate %s count %d clamped to %d", node.id, payload.count, count)
        copies = [state]
        for i in range(1, count):
            copies.append(state.fork(self._unique_id(f"{state.object_id}_dup_{i:03d}")))
        return copies

    def _step_canvas(self, node: Node, edge: Edge, state: PathState) -> list[PathState]:
        payload = cast(CanvasPayload, self.index.payload(node.id))
        self._apply_fields(node, payload, state, _canvas_values(payload), fp.CANVAS_FIELDS)
        return [state]

    def _step_textstyle(self, node: Node, edge: Edge, state: PathState) -> list[PathState]:
        if state.object_type != NodeType.TEXT:
            return [state]
        payload = cast(TextStylePayload, self.index.payload(node.id))
        self._apply_fields(node, payload, state, _textstyle_values(payload), fp.TYPOGRAPHY_FIELDS)
        return [state]

    def _step_animation(self, node: Node, edge: Edge, state: PathState) -> list[PathState]:
        payload = cast(AnimationPayload, self.index.payload(node.id))
        for track in payload.tracks:
            ordinal = state.track_counts.get(track.id, 0)
            state.track_counts[track.id] = ordinal + 1

            defaults: dict[str, Any] = {
                fp.timeline_path(track.type, "startTime"): track.start_time,
                fp.timeline_path(track.type, "duration"): track.duration,
                fp.timeline_path(track.type, "easing"): track.easing.value,
            }
            for leaf, value in fp.iter_leaves(track.effective_properties()):
                defaults[fp.timeline_path(track.type, leaf)] = value

            sources = {
                path: self._sources(node, payload, path, state.object_id, default)
                for path, default in defaults.items()
            }
            state.tracks.append(
                TrackPlan(
                    node_id=node.id,
                    definition=track,
                    baseline=state.cursor,
                    ordinal=ordinal,
                    sources=sources,
                )
            )
        state.cursor += payload.total_duration
        return [state]

    # ------------------------------------------------------------------
    # Field sources
    # ------------------------------------------------------------------

    def _apply_fields(
        self,
        node: Node,
        payload: PropertyPayload,
        state: PathState,
        configured: Mapping[str, Any],
        catalogue: Mapping[str, Any],
    ) -> None:
        """Replace the sources of every field this node configures, binds or assigns."""
        touched = {p for p in payload.touched_paths(state.object_id) if p in catalogue}
        touched.update(configured)
        for path in sorted(touched):
            previous = state.sources.get(path, FieldSources())
            default = configured.get(path, previous.default)
            state.sources[path] = self._sources(node, payload, path, state.object_id, default)

    def _sources(
        self,
        node: Node,
        payload: PropertyPayload,
        path: str,
        object_id: str,
        default: Any,
    ) -> FieldSources:
        found, assigned = payload.assignment_for(path, object_id)
        return FieldSources(
            default=default,
            has_assignment=found,
            assignment=assigned,
            binding=self._checked_binding(node, payload, path, object_id),
            origin_node_id=node.id,
        )

    def _checked_binding(
        self, node: Node, payload: PropertyPayload, path: str, object_id: str
    ) -> str | None:
        bound = payload.binding_for(path, object_id)
        if bound is None:
            return None
        if bound not in self._visible_results(node.id):
            self._diagnostics.append(
                Diagnostic.warning(
                    DiagnosticCode.UNRESOLVED_BINDING,
                    f"{node.label} binds {path} to '{bound}', which is not an upstream result node",
                    node_id=node.id,
                    object_ids=[object_id],
                )
            )
            return None
        return bound

    def _visible_results(self, node_id: str) -> frozenset[str]:
        visible = self._visible.get(node_id)
        if visible is None:
            visible = frozenset(ref.id for ref in self.index.visible_variables(node_id))
            self._visible[node_id] = visible
        return visible

    def _available(self, edge: Edge) -> frozenset[str]:
        available = self._availability.get(edge.id)
        if available is None:
            available = frozenset(self.index.branch_availability(edge.source, edge.id).available)
            self._availability[edge.id] = available
        return available

    def _unique_id(self, base: str) -> str:
        candidate = base
        suffix = 1
        while candidate in self._taken_ids:
            candidate = f"{base}_{suffix}"
            suffix += 1
        self._taken_ids.add(candidate)
        return candidate

    # ------------------------------------------------------------------
    # Coverage
    # ------------------------------------------------------------------

    def _finish(self, terminal: Node, delivered: list[PathState]) -> list[ObjectPlan]:
        """Apply the output node's coverage rules to the delivered objects."""
        is_scene = terminal.node_type == NodeType.SCENE
        require = False
        if is_scene:
            payload = cast(ScenePayload, self.index.payload(terminal.id))
            require = payload.require_full_coverage or self.config.require_full_coverage

        objects: list[ObjectPlan] = []
        for state in delivered:
            if is_scene and not state.inserted:
                self._coverage(
                    require,
                    f"Object '{state.object_id}' reaches {terminal.label} without an Insert node "
                    "and is left out of the scene",
                    state.origin_id,
                    state.object_id,
                )
                continue
            objects.append(state.to_plan())

        reached = {state.origin_id for state in delivered} | self._filtered_origins
        for node in self.index.nodes.values():
            if node.is_geometry and node.id not in reached:
                self._coverage(
                    require,
                    f"{node.label} is not connected to {terminal.label}",
                    node.id,
                    node.id,
                )

        if not objects:
            self._error(
                DiagnosticCode.SCENE_VALIDATION_FAILED,
                f"Scene must contain at least one object; nothing reaches {terminal.label}",
                node_id=terminal.id,
            )
        return objects

    def _coverage(self, require: bool, message: str, node_id: str, object_id: str) -> None:
        factory = Diagnostic.error if require else Diagnostic.warning
        self._diagnostics.append(
            factory(
                DiagnosticCode.MISSING_INSERT_CONNECTION,
                message,
                node_id=node_id,
                object_ids=[object_id],
            )
        )

    def _error(self, code: DiagnosticCode, message: str, **kwargs: Any) -> None:
        self._diagnostics.append(Diagnostic.error(code, message, **kwargs))


__all__ = ["PathExecutor", "PathState", "initial_state"]
