"""End-to-end tests for SceneCompiler."""

from __future__ import annotations

import pytest

from flowscene.core.config.models import CompilerConfig
from flowscene.core.diagnostics import DiagnosticCode, GraphError, Severity
from flowscene.core.engine import SceneCompiler, compile_graph
from flowscene.core.tracks import Easing, TrackType
from flowscene.core.utils.json import canonical_json


def _codes(result) -> set[DiagnosticCode]:
    return {d.code for d in result.diagnostics}


def _error_codes(result) -> set[DiagnosticCode]:
    return {d.code for d in result.errors}


@pytest.fixture
def linear_graph(make_node, make_edge):
    """Factory: geometry -> insert -> <middle nodes...> -> scene."""

    def _build(*middle: dict, geometry: dict | None = None, scene: dict | None = None) -> dict:
        geometry = geometry or make_node("circle-1", "circle", radius=10, color="#ff0000")
        scene = scene or make_node("scene-1", "scene", duration=0)
        chain = [geometry, make_node("insert-1", "insert"), *middle, scene]
        edges = [
            make_edge(a["id"], b["id"], edge_id=f"e{i}")
            for i, (a, b) in enumerate(zip(chain, chain[1:], strict=False), start=1)
        ]
        return {"nodes": chain, "edges": edges}

    return _build


class TestBasicCompile:
    """A single circle with one move track."""

    def test_compiles_object_and_track(self, compiler, circle_scene_graph):
        result = compiler.compile(circle_scene_graph)

        assert result.ok
        assert result.diagnostics == ()
        scene = result.scene
        assert scene.duration == 3

        [obj] = scene.objects
        assert obj.id == "circle-1"
        assert obj.type == "circle"
        assert obj.properties == {"radius": 10, "color": "#ff0000"}
        assert (obj.initial_position.x, obj.initial_position.y) == (960, 540)
        assert obj.initial_opacity == 1.0
        assert obj.initial_fill_color == "#ff0000"
        assert obj.appearance_time == 0

        [track] = scene.animations
        assert track.id == "circle-1::t1::0"
        assert track.object_id == "circle-1"
        assert track.type == TrackType.MOVE
        assert (track.start_time, track.duration) == (0, 1)
        assert track.easing == Easing.LINEAR
        assert track.properties == {"from": {"x": 0, "y": 0}, "to": {"x": 100, "y": 100}}

    def test_scene_settings_carried_through(self, compiler, circle_scene_graph):
        circle_scene_graph["nodes"][3]["data"].update(
            {"backgroundColor": "#000000", "fps": 30, "width": 640, "height": 360}
        )
        scene = compiler.compile(circle_scene_graph).scene
        assert scene.background.color == "#000000"
        assert scene.canvas.kind == "scene"
        assert (scene.canvas.width, scene.canvas.height, scene.canvas.fps) == (640, 360, 30)

    def test_duration_extends_to_latest_track(self, compiler, circle_scene_graph, move_track):
        circle_scene_graph["nodes"][2]["data"]["tracks"] = [move_track(duration=5)]
        assert compiler.compile(circle_scene_graph).scene.duration == 5

    def test_output_is_deterministic(self, compiler, circle_scene_graph):
        first = compiler.compile(circle_scene_graph).scene.to_wire()
        second = SceneCompiler(CompilerConfig()).compile(circle_scene_graph).scene.to_wire()
        assert canonical_json(first) == canonical_json(second)

    def test_wire_output_is_camel_case(self, compiler, circle_scene_graph):
        wire = compiler.compile(circle_scene_graph).scene.to_wire()
        assert wire["objects"][0]["initialPosition"] == {"x": 960, "y": 540}
        assert wire["animations"][0]["objectId"] == "circle-1"
        assert "initialStrokeColor" not in wire["objects"][0]

    def test_compile_graph_helper(self, circle_scene_graph):
        assert compile_graph(circle_scene_graph).ok

    def test_plan_is_kept_on_result(self, compiler, circle_scene_graph):
        result = compiler.compile(circle_scene_graph)
        assert result.plan is not None
        assert result.plan.object_ids == ["circle-1"]
        assert result.plan.track_count == 1


class TestStructuralErrors:
    """Errors found before any path is walked."""

    def test_no_terminal(self, compiler, make_node):
        result = compiler.compile({"nodes": [make_node("circle-1", "circle")]})
        assert result.scene is None
        assert _error_codes(result) == {DiagnosticCode.SCENE_REQUIRED}

    def test_two_terminals(self, compiler, circle_scene_graph, make_node):
        circle_scene_graph["nodes"].append(make_node("frame-1", "frame"))
        result = compiler.compile(circle_scene_graph)
        assert result.scene is None
        [error] = result.errors
        assert error.code == DiagnosticCode.TOO_MANY_SCENES
        assert error.node_id == "frame-1"

    def test_cycle(self, compiler, make_node, make_edge):
        graph = {
            "nodes": [
                make_node("circle-1", "circle"),
                make_node("canvas-a", "canvas"),
                make_node("canvas-b", "canvas"),
                make_node("scene-1", "scene"),
            ],
            "edges": [
                make_edge("circle-1", "canvas-a", edge_id="e1"),
                make_edge("canvas-a", "canvas-b", edge_id="e2"),
                make_edge("canvas-b", "canvas-a", edge_id="e3"),
                make_edge("canvas-b", "scene-1", edge_id="e4"),
            ],
        }
        result = compiler.compile(graph)
        assert result.scene is None
        assert DiagnosticCode.CIRCULAR_DEPENDENCY in _error_codes(result)

    def test_graph_too_large(self, circle_scene_graph):
        compiler = SceneCompiler(CompilerConfig(max_nodes=2))
        result = compiler.compile(circle_scene_graph)
        assert _error_codes(result) == {DiagnosticCode.GRAPH_TOO_LARGE}

    def test_invalid_connection(self, compiler, circle_scene_graph, make_edge):
        circle_scene_graph["edges"].append(
            make_edge("circle-1", "anim-1", target_port="nope", edge_id="e9")
        )
        result = compiler.compile(circle_scene_graph)
        assert DiagnosticCode.INVALID_CONNECTION in _error_codes(result)

    def test_raise_for_errors(self, compiler, make_node):
        result = compiler.compile({"nodes": [make_node("circle-1", "circle")]})
        with pytest.raises(GraphError) as exc_info:
            result.raise_for_errors()
        assert exc_info.value.codes == [DiagnosticCode.SCENE_REQUIRED]

    def test_raise_for_errors_returns_scene(self, compiler, circle_scene_graph):
        scene = compiler.compile(circle_scene_graph).raise_for_errors()
        assert scene.objects[0].id == "circle-1"

    def test_out_of_range_radius_is_diagnostic(self, compiler, circle_scene_graph):
        circle_scene_graph["nodes"][0]["data"]["radius"] = 0
        result = compiler.compile(circle_scene_graph)
        assert result.scene is None
        [error] = result.errors
        assert error.code == DiagnosticCode.NODE_VALIDATION_FAILED
        assert error.node_id == "circle-1"
        assert "radius" in error.message

    def test_negative_track_duration_is_diagnostic(
        self, compiler, linear_graph, make_node, move_track
    ):
        graph = linear_graph(make_node("anim-1", "animation", tracks=[move_track(duration=-1)]))
        result = compiler.compile(graph)
        assert result.scene is None
        [error] = result.errors
        assert error.code == DiagnosticCode.NODE_VALIDATION_FAILED
        assert error.node_id == "anim-1"

    def test_out_of_range_on_unconnected_node(self, compiler, circle_scene_graph, make_node):
        circle_scene_graph["nodes"].append(make_node("rect-9", "rectangle", width=-10))
        result = compiler.compile(circle_scene_graph)
        assert result.scene is None
        assert [e.node_id for e in result.errors] == ["rect-9"]

    def test_merge_with_no_ports(self, compiler, circle_scene_graph, make_node):
        circle_scene_graph["nodes"].append(make_node("merge-1", "merge", inputPortCount=0))
        result = compiler.compile(circle_scene_graph)
        assert _error_codes(result) == {DiagnosticCode.NODE_VALIDATION_FAILED}


class TestFlowControl:
    """Filter, merge, duplicate and fan-out semantics."""

    def test_fan_out_filters_claim_each_object_once(self, compiler, fan_out_graph):
        result = compiler.compile(fan_out_graph)
        assert result.ok, result.diagnostics
        assert [o.id for o in result.scene.objects] == ["circle-1", "square-1"]

    def test_fan_out_without_merge_is_duplicate_delivery(self, compiler, make_node, make_edge):
        graph = {
            "nodes": [
                make_node("circle-1", "circle"),
                make_node("insert-a", "insert"),
                make_node("insert-b", "insert"),
                make_node("scene-1", "scene"),
            ],
            "edges": [
                make_edge("circle-1", "insert-a", edge_id="e1"),
                make_edge("circle-1", "insert-b", edge_id="e2"),
                make_edge("insert-a", "scene-1", edge_id="e3"),
                make_edge("insert-b", "scene-1", edge_id="e4"),
            ],
        }
        result = compiler.compile(graph)
        assert result.scene is None
        [error] = result.errors
        assert error.code == DiagnosticCode.DUPLICATE_OBJECT_IDS
        assert error.object_ids == ["circle-1"]
        assert error.edge_ids == ["e3", "e4"]

    def test_merge_reclaims_with_lowest_port(self, compiler, make_node, make_edge):
        graph = {
            "nodes": [
                make_node("circle-1", "circle"),
                make_node("canvas-a", "canvas", opacity=0.3),
                make_node("canvas-b", "canvas", opacity=0.8),
                make_node("merge-1", "merge"),
                make_node("insert-1", "insert"),
                make_node("scene-1", "scene"),
            ],
            "edges": [
                make_edge("circle-1", "canvas-a", edge_id="e1"),
                make_edge("circle-1", "canvas-b", edge_id="e2"),
                make_edge("canvas-b", "merge-1", target_port="input2", edge_id="e3"),
                make_edge("canvas-a", "merge-1", target_port="input1", edge_id="e4"),
                make_edge("merge-1", "insert-1", edge_id="e5"),
                make_edge("insert-1", "scene-1", edge_id="e6"),
            ],
        }
        result = compiler.compile(graph)
        assert result.ok, result.diagnostics
        [obj] = result.scene.objects
        assert obj.initial_opacity == 0.3

    def test_merge_continues_from_latest_cursor(self, compiler, make_node, make_edge, move_track):
        graph = {
            "nodes": [
                make_node("circle-1", "circle"),
                make_node("insert-1", "insert"),
                make_node("slow", "animation", tracks=[move_track("s", duration=4)]),
                make_node("fast", "animation", tracks=[move_track("f", duration=1)]),
                make_node("merge-1", "merge"),
                make_node("after", "animation", tracks=[move_track("z", duration=1)]),
                make_node("scene-1", "scene"),
            ],
            "edges": [
                make_edge("circle-1", "insert-1", edge_id="e1"),
                make_edge("insert-1", "slow", edge_id="e2"),
                make_edge("insert-1", "fast", edge_id="e3"),
                make_edge("fast", "merge-1", target_port="input1", edge_id="e4"),
                make_edge("slow", "merge-1", target_port="input2", edge_id="e5"),
                make_edge("merge-1", "after", edge_id="e6"),
                make_edge("after", "scene-1", edge_id="e7"),
            ],
        }
        result = compiler.compile(graph)
        assert result.ok, result.diagnostics
        tracks = {t.id: t for t in result.scene.animations}
        # The lowest port's state wins, so only the "fast" branch's track survives.
        assert set(tracks) == {"circle-1::f::0", "circle-1::z::0"}
        assert tracks["circle-1::z::0"].start_time == 4

    def test_filter_drops_unselected(self, compiler, make_node, make_edge):
        graph = {
            "nodes": [
                make_node("circle-1", "circle"),
                make_node("square-1", "rectangle"),
                make_node("merge-1", "merge"),
                make_node("filter-1", "filter", selectedObjectIds=["square-1"]),
                make_node("insert-1", "insert"),
                make_node("scene-1", "scene"),
            ],
            "edges": [
                make_edge("circle-1", "merge-1", target_port="input1", edge_id="e1"),
                make_edge("square-1", "merge-1", target_port="input2", edge_id="e2"),
                make_edge("merge-1", "filter-1", edge_id="e3"),
                make_edge("filter-1", "insert-1", edge_id="e4"),
                make_edge("insert-1", "scene-1", edge_id="e5"),
            ],
        }
        result = compiler.compile(graph)
        assert result.ok, result.diagnostics
        assert [o.id for o in result.scene.objects] == ["square-1"]
        # A filtered-out drawable is not reported as disconnected.
        assert DiagnosticCode.MISSING_INSERT_CONNECTION not in _codes(result)

    def test_empty_filter_selection_drops_everything(self, compiler, linear_graph, make_node):
        result = compiler.compile(linear_graph(make_node("filter-1", "filter")))
        assert result.scene is None
        assert DiagnosticCode.SCENE_VALIDATION_FAILED in _error_codes(result)

    def test_duplicate_creates_numbered_copies(self, compiler, linear_graph, make_node, move_track):
        graph = linear_graph(
            make_node("dup-1", "duplicate", count=3),
            make_node("anim-1", "animation", tracks=[move_track()]),
        )
        result = compiler.compile(graph)
        assert result.ok, result.diagnostics
        assert [o.id for o in result.scene.objects] == [
            "circle-1",
            "circle-1_dup_001",
            "circle-1_dup_002",
        ]
        assert [t.id for t in result.scene.animations] == [
            "circle-1::t1::0",
            "circle-1_dup_001::t1::0",
            "circle-1_dup_002::t1::0",
        ]

    def test_duplicate_count_is_clamped(self, linear_graph, make_node):
        compiler = SceneCompiler(CompilerConfig(max_duplicate_count=2))
        result = compiler.compile(linear_graph(make_node("dup-1", "duplicate", count=10)))
        assert len(result.scene.objects) == 2
        zero = compiler.compile(linear_graph(make_node("dup-1", "duplicate", count=0)))
        assert len(zero.scene.objects) == 1

    def test_duplicate_id_skips_existing_node_id(self, compiler, make_node, make_edge):
        graph = {
            "nodes": [
                make_node("circle-1", "circle"),
                make_node("circle-1_dup_001", "circle"),
                make_node("dup-1", "duplicate", count=2),
                make_node("merge-1", "merge"),
                make_node("insert-1", "insert"),
                make_node("scene-1", "scene"),
            ],
            "edges": [
                make_edge("circle-1", "dup-1", edge_id="e1"),
                make_edge("dup-1", "merge-1", target_port="input1", edge_id="e2"),
                make_edge("circle-1_dup_001", "merge-1", target_port="input2", edge_id="e3"),
                make_edge("merge-1", "insert-1", edge_id="e4"),
                make_edge("insert-1", "scene-1", edge_id="e5"),
            ],
        }
        result = compiler.compile(graph)
        assert result.ok, result.diagnostics
        assert {o.id for o in result.scene.objects} == {
            "circle-1",
            "circle-1_dup_001_1",
            "circle-1_dup_001",
        }

    def test_unknown_node_type_on_path(self, compiler, make_node, make_edge):
        graph = {
            "nodes": [
                make_node("circle-1", "circle"),
                make_node("glow-1", "glow"),
                make_node("scene-1", "scene"),
            ],
            "edges": [
                make_edge("circle-1", "glow-1", edge_id="e1"),
                make_edge("glow-1", "scene-1", edge_id="e2"),
            ],
        }
        result = compiler.compile(graph)
        assert result.scene is None
        error = next(d for d in result.errors if d.code == DiagnosticCode.NODE_VALIDATION_FAILED)
        assert error.node_id == "glow-1"


class TestTiming:
    """Insert timing and animation sequencing."""

    def test_insert_sets_appearance_and_baseline(self, compiler, circle_scene_graph):
        circle_scene_graph["nodes"][1]["data"]["appearanceTime"] = 2
        scene = compiler.compile(circle_scene_graph).scene
        assert scene.objects[0].appearance_time == 2
        assert scene.animations[0].start_time == 2

    def test_animations_in_series_accumulate(self, compiler, linear_graph, make_node, move_track):
        graph = linear_graph(
            make_node("anim-1", "animation", tracks=[move_track("a", duration=1.5)]),
            make_node(
                "anim-2",
                "animation",
                tracks=[{"id": "b", "type": "fade", "startTime": 0.25, "duration": 1}],
            ),
        )
        scene = compiler.compile(graph).scene
        starts = {t.id: t.start_time for t in scene.animations}
        assert starts == {"circle-1::a::0": 0, "circle-1::b::0": 1.75}
        assert scene.duration == 2.75

    def test_configured_animation_duration_moves_cursor(
        self, compiler, linear_graph, make_node, move_track
    ):
        graph = linear_graph(
            make_node("anim-1", "animation", duration=3, tracks=[move_track("a")]),
            make_node("anim-2", "animation", tracks=[move_track("b")]),
        )
        starts = [t.start_time for t in compiler.compile(graph).scene.animations]
        assert starts == [0, 3]

    def test_repeated_track_id_gets_next_ordinal(
        self, compiler, linear_graph, make_node, move_track
    ):
        graph = linear_graph(
            make_node("anim-1", "animation", tracks=[move_track("t1")]),
            make_node("anim-2", "animation", tracks=[move_track("t1")]),
        )
        ids = [t.id for t in compiler.compile(graph).scene.animations]
        assert ids == ["circle-1::t1::0", "circle-1::t1::1"]

    def test_multiple_inserts_in_series(self, compiler, linear_graph, make_node):
        result = compiler.compile(linear_graph(make_node("insert-2", "insert")))
        assert result.scene is None
        assert _error_codes(result) == {DiagnosticCode.MULTIPLE_INSERT_NODES_IN_SERIES}

    def test_negative_track_start_is_error(self, compiler, linear_graph, make_node, move_track):
        graph = linear_graph(make_node("anim-1", "animation", tracks=[move_track(startTime=-1)]))
        result = compiler.compile(graph)
        assert result.scene is None
        assert DiagnosticCode.SCENE_VALIDATION_FAILED in _error_codes(result)

    def test_duration_clamped_with_warning(self, linear_graph, make_node, move_track):
        compiler = SceneCompiler(CompilerConfig(max_scene_duration=2))
        graph = linear_graph(make_node("anim-1", "animation", tracks=[move_track(duration=5)]))
        result = compiler.compile(graph)
        assert result.ok
        assert result.scene.duration == 2
        [warning] = result.warnings
        assert warning.code == DiagnosticCode.SCENE_VALIDATION_FAILED
        assert warning.object_ids == ["circle-1"]

    def test_too_many_tracks(self, linear_graph, make_node, move_track):
        compiler = SceneCompiler(CompilerConfig(max_animations=1))
        graph = linear_graph(
            make_node("anim-1", "animation", tracks=[move_track("a"), move_track("b")])
        )
        assert compiler.compile(graph).scene is None


class TestCoverage:
    """Insert coverage rules for scene and frame outputs."""

    @pytest.fixture
    def partly_inserted(self, make_node, make_edge):
        return {
            "nodes": [
                make_node("circle-1", "circle"),
                make_node("square-1", "rectangle"),
                make_node("tri-1", "triangle"),
                make_node("insert-1", "insert"),
                make_node("merge-1", "merge"),
                make_node("scene-1", "scene"),
            ],
            "edges": [
                make_edge("circle-1", "insert-1", edge_id="e1"),
                make_edge("insert-1", "merge-1", target_port="input1", edge_id="e2"),
                make_edge("square-1", "merge-1", target_port="input2", edge_id="e3"),
                make_edge("merge-1", "scene-1", edge_id="e4"),
            ],
        }

    def test_uninserted_and_disconnected_are_warnings(self, compiler, partly_inserted):
        result = compiler.compile(partly_inserted)
        assert result.ok
        assert [o.id for o in result.scene.objects] == ["circle-1"]
        missing = [d for d in result.warnings if d.code == DiagnosticCode.MISSING_INSERT_CONNECTION]
        assert sorted(d.node_id for d in missing) == ["square-1", "tri-1"]

    def test_full_coverage_on_scene_makes_errors(self, compiler, partly_inserted):
        partly_inserted["nodes"][-1]["data"]["requireFullCoverage"] = True
        result = compiler.compile(partly_inserted)
        assert result.scene is None
        assert _error_codes(result) == {DiagnosticCode.MISSING_INSERT_CONNECTION}

    def test_full_coverage_from_config(self, partly_inserted):
        compiler = SceneCompiler(CompilerConfig(require_full_coverage=True))
        assert compiler.compile(partly_inserted).scene is None

    def test_only_uninserted_objects_is_error(self, compiler, make_node, make_edge):
        graph = {
            "nodes": [make_node("circle-1", "circle"), make_node("scene-1", "scene")],
            "edges": [make_edge("circle-1", "scene-1", edge_id="e1")],
        }
        result = compiler.compile(graph)
        assert result.scene is None
        assert DiagnosticCode.SCENE_VALIDATION_FAILED in _error_codes(result)
        assert DiagnosticCode.MISSING_INSERT_CONNECTION in _codes(result)

    def test_frame_accepts_uninserted_objects(self, compiler, make_node, make_edge):
        graph = {
            "nodes": [
                make_node("circle-1", "circle"),
                make_node("frame-1", "frame", width=800, height=600, imageFormat="jpeg"),
            ],
            "edges": [make_edge("circle-1", "frame-1", edge_id="e1")],
        }
        result = compiler.compile(graph)
        assert result.ok, result.diagnostics
        scene = result.scene
        assert scene.duration == 0
        assert scene.canvas.kind == "frame"
        assert scene.canvas.image_format == "jpeg"
        assert scene.canvas.fps is None


class TestPropertyNodes:
    """Canvas, text style and variable bindings."""

    def test_canvas_sets_initial_state(self, compiler, linear_graph, make_node):
        graph = linear_graph(
            make_node(
                "canvas-1",
                "canvas",
                position={"x": 100, "y": 200},
                rotation=90,
                scale={"x": 2, "y": 3},
                opacity=0.5,
                fillColor="#123456",
                strokeColor="#000000",
                strokeWidth=2,
            )
        )
        obj = compiler.compile(graph).scene.objects[0]
        assert (obj.initial_position.x, obj.initial_position.y) == (100, 200)
        assert obj.initial_rotation == 90
        assert (obj.initial_scale.x, obj.initial_scale.y) == (2, 3)
        assert obj.initial_opacity == 0.5
        assert obj.initial_fill_color == "#123456"
        assert obj.properties["color"] == "#123456"
        assert obj.properties["strokeColor"] == "#000000"
        assert obj.properties["strokeWidth"] == 2

    def test_canvas_per_object_assignment(self, compiler, linear_graph, make_node):
        graph = linear_graph(
            make_node(
                "canvas-1",
                "canvas",
                rotation=10,
                perObjectAssignments={"circle-1": {"Canvas.rotation": 45}},
            )
        )
        assert compiler.compile(graph).scene.objects[0].initial_rotation == 45

    def test_later_canvas_replaces_earlier(self, compiler, linear_graph, make_node):
        graph = linear_graph(
            make_node("canvas-1", "canvas", opacity=0.2, rotation=30),
            make_node("canvas-2", "canvas", opacity=0.9),
        )
        obj = compiler.compile(graph).scene.objects[0]
        assert obj.initial_opacity == 0.9
        assert obj.initial_rotation == 30

    def test_text_style_applies_to_text_only(self, compiler, make_node, make_edge):
        graph = {
            "nodes": [
                make_node("text-1", "text", content="Hello", fontSize=32),
                make_node("circle-1", "circle"),
                make_node("merge-1", "merge"),
                make_node("style-1", "textstyle", fontFamily="Inter", fontWeight="bold"),
                make_node("insert-1", "insert"),
                make_node("scene-1", "scene"),
            ],
            "edges": [
                make_edge("text-1", "merge-1", target_port="input1", edge_id="e1"),
                make_edge("circle-1", "merge-1", target_port="input2", edge_id="e2"),
                make_edge("merge-1", "style-1", edge_id="e3"),
                make_edge("style-1", "insert-1", edge_id="e4"),
                make_edge("insert-1", "scene-1", edge_id="e5"),
            ],
        }
        result = compiler.compile(graph)
        assert result.ok, result.diagnostics
        text = result.scene.find_object("text-1")
        assert text.properties["content"] == "Hello"
        assert text.properties["fontSize"] == 32
        assert text.text_style.font_family == "Inter"
        assert text.text_style.font_weight == "bold"
        assert result.scene.find_object("circle-1").text_style is None

    def test_binding_through_result_node(self, compiler, make_node, make_edge):
        graph = {
            "nodes": [
                make_node("k1", "constants", valueType="number", value=2),
                make_node("k2", "constants", valueType="number", value=3),
                make_node("mul", "math_op", operator="multiply"),
                make_node("r1", "result", display_name="Offset"),
                make_node("circle-1", "circle"),
                make_node(
                    "canvas-1",
                    "canvas",
                    position={"x": 1, "y": 1},
                    variableBindings={"Canvas.position.x": {"boundResultNodeId": "r1"}},
                ),
                make_node("insert-1", "insert"),
                make_node("scene-1", "scene"),
            ],
            "edges": [
                make_edge("k1", "mul", target_port="input_a", edge_id="d1"),
                make_edge("k2", "mul", target_port="input_b", edge_id="d2"),
                make_edge("mul", "r1", edge_id="d3"),
                make_edge("r1", "canvas-1", target_port="variables", edge_id="d4"),
                make_edge("circle-1", "canvas-1", edge_id="e1"),
                make_edge("canvas-1", "insert-1", edge_id="e2"),
                make_edge("insert-1", "scene-1", edge_id="e3"),
            ],
        }
        result = compiler.compile(graph)
        assert result.ok, result.diagnostics
        obj = result.scene.objects[0]
        assert obj.initial_position.x == 6
        assert obj.initial_position.y == 1

    def test_binding_to_non_upstream_result_warns(self, compiler, linear_graph, make_node):
        graph = linear_graph(
            make_node(
                "canvas-1",
                "canvas",
                opacity=0.4,
                variableBindings={"Canvas.opacity": {"boundResultNodeId": "r-missing"}},
            )
        )
        result = compiler.compile(graph)
        assert result.ok
        assert result.scene.objects[0].initial_opacity == 0.4
        [warning] = result.warnings
        assert warning.code == DiagnosticCode.UNRESOLVED_BINDING
        assert warning.severity == Severity.WARNING

    def test_timeline_binding_and_batch(self, compiler, make_node, make_edge, move_track):
        graph = {
            "nodes": [
                make_node("k1", "constants", value=2.5),
                make_node("r1", "result"),
                make_node("circle-1", "circle"),
                make_node("insert-1", "insert"),
                make_node(
                    "anim-1",
                    "animation",
                    tracks=[move_track()],
                    variableBindings={"Timeline.move.duration": {"boundResultNodeId": "r1"}},
                ),
                make_node("scene-1", "scene", duration=0),
            ],
            "edges": [
                make_edge("k1", "r1", edge_id="d1"),
                make_edge("r1", "anim-1", target_port="variables", edge_id="d2"),
                make_edge("circle-1", "insert-1", edge_id="e1"),
                make_edge("insert-1", "anim-1", edge_id="e2"),
                make_edge("anim-1", "scene-1", edge_id="e3"),
            ],
        }
        batch = {"Timeline.move.to.x": {"circle-1": {"__default__": 640}}}
        result = compiler.compile(graph, batch)
        assert result.ok, result.diagnostics
        [track] = result.scene.animations
        assert track.duration == 2.5
        assert track.properties["to"] == {"x": 640, "y": 100}
        assert result.scene.duration == 2.5

    def test_negative_duration_override_is_error(self, compiler, circle_scene_graph):
        batch = {"Timeline.move.duration": {"__all__": {"__default__": -1}}}
        result = compiler.compile(circle_scene_graph, batch)
        assert result.scene is None
        assert DiagnosticCode.SCENE_VALIDATION_FAILED in _error_codes(result)

    def test_overflowing_binding_falls_back(self, compiler, make_node, make_edge):
        graph = {
            "nodes": [
                make_node("k1", "constants", value=10),
                make_node("k2", "constants", value=400),
                make_node("pow", "math_op", operator="power"),
                make_node("r1", "result"),
                make_node("circle-1", "circle"),
                make_node(
                    "canvas-1",
                    "canvas",
                    position={"x": 7, "y": 1},
                    variableBindings={"Canvas.position.x": {"boundResultNodeId": "r1"}},
                ),
                make_node("insert-1", "insert"),
                make_node("scene-1", "scene"),
            ],
            "edges": [
                make_edge("k1", "pow", target_port="input_a", edge_id="d1"),
                make_edge("k2", "pow", target_port="input_b", edge_id="d2"),
                make_edge("pow", "r1", edge_id="d3"),
                make_edge("r1", "canvas-1", target_port="variables", edge_id="d4"),
                make_edge("circle-1", "canvas-1", edge_id="e1"),
                make_edge("canvas-1", "insert-1", edge_id="e2"),
                make_edge("insert-1", "scene-1", edge_id="e3"),
            ],
        }
        result = compiler.compile(graph)
        assert result.ok, result.diagnostics
        assert result.scene.objects[0].initial_position.x == 7
        assert DiagnosticCode.UNRESOLVED_BINDING in {d.code for d in result.warnings}


class TestBatchOverridesOnCompile:
    """Batch tables applied through compile()."""

    @pytest.fixture
    def batch(self) -> dict:
        return {
            "Canvas.fillColor": {
                "circle-1": {"__default__": "#00ff00", "promoA": "#ff00ff", "promoB": "#00ff00"}
            }
        }

    def test_default_slot_applies_without_key(self, compiler, circle_scene_graph, batch):
        scene = compiler.compile(circle_scene_graph, batch).scene
        assert scene.objects[0].initial_fill_color == "#00ff00"

    def test_active_key(self, compiler, circle_scene_graph, batch):
        scene = compiler.compile(circle_scene_graph, batch, batch_key="promoA").scene
        assert scene.objects[0].initial_fill_color == "#ff00ff"
        assert scene.objects[0].properties["color"] == "#ff00ff"
