"""Shared pytest fixtures for flowscene tests.

Graphs are built as raw editor JSON (camelCase keys) so every test also
exercises the wire-format parsing the compiler sees in production.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from flowscene.core.caching import NullCache
from flowscene.core.config.loader import reset_app_config_cache
from flowscene.core.config.models import CompilerConfig
from flowscene.core.engine import SceneCompiler
from flowscene.core.graph import GraphIndex

NodeFactory = Callable[..., dict[str, Any]]
EdgeFactory = Callable[..., dict[str, Any]]

# ============================================================================
# Path Fixtures
# ============================================================================


@pytest.fixture
def project_root() -> Path:
    """Get project root directory."""
    return Path(__file__).parent.parent


# ============================================================================
# Graph Builders
# ============================================================================


def _node(node_id: str, node_type: str, display_name: str | None = None, **data: Any) -> dict:
    node: dict[str, Any] = {"id": node_id, "type": node_type, "data": data}
    if display_name is not None:
        node["displayName"] = display_name
    return node


def _edge(
    source: str,
    target: str,
    source_port: str = "output",
    target_port: str = "input",
    edge_id: str | None = None,
) -> dict:
    return {
        "id": edge_id or f"{source}->{target}:{target_port}",
        "source": source,
        "sourcePort": source_port,
        "target": target,
        "targetPort": target_port,
    }


@pytest.fixture
def make_node() -> NodeFactory:
    """Factory for raw node dicts: ``make_node(id, type, **data)``."""
    return _node


@pytest.fixture
def make_edge() -> EdgeFactory:
    """Factory for raw edge dicts: ``make_edge(source, target, ...)``."""
    return _edge


def _move_track(track_id: str = "t1", **overrides: Any) -> dict:
    track = {
        "id": track_id,
        "type": "move",
        "startTime": 0,
        "duration": 1,
        "easing": "linear",
        "properties": {"from": {"x": 0, "y": 0}, "to": {"x": 100, "y": 100}},
    }
    track.update(overrides)
    return track


@pytest.fixture
def move_track() -> Callable[..., dict]:
    """Factory for a move track definition (0,0) -> (100,100), start 0, duration 1."""
    return _move_track


@pytest.fixture
def circle_scene_graph() -> dict:
    """circle (radius 10, #ff0000) -> insert -> animation(move) -> scene(duration 3)."""
    return {
        "nodes": [
            _node("circle-1", "circle", radius=10, color="#ff0000"),
            _node("insert-1", "insert", appearanceTime=0),
            _node("anim-1", "animation", tracks=[_move_track()]),
            _node("scene-1", "scene", duration=3),
        ],
        "edges": [
            _edge("circle-1", "insert-1", edge_id="e1"),
            _edge("insert-1", "anim-1", edge_id="e2"),
            _edge("anim-1", "scene-1", edge_id="e3"),
        ],
    }


@pytest.fixture
def fan_out_graph() -> dict:
    """circle -> {filter-a, filter-b} -> merge -> insert -> scene."""
    return {
        "nodes": [
            _node("circle-1", "circle"),
            _node("square-1", "rectangle"),
            _node("filter-a", "filter", selectedObjectIds=["circle-1"]),
            _node("filter-b", "filter", selectedObjectIds=["circle-1", "square-1"]),
            _node("merge-1", "merge", inputPortCount=2),
            _node("insert-1", "insert"),
            _node("scene-1", "scene"),
        ],
        "edges": [
            _edge("circle-1", "filter-a", edge_id="e1"),
            _edge("circle-1", "filter-b", edge_id="e2"),
            _edge("square-1", "filter-b", edge_id="e3"),
            _edge("filter-a", "merge-1", target_port="input1", edge_id="e4"),
            _edge("filter-b", "merge-1", target_port="input2", edge_id="e5"),
            _edge("merge-1", "insert-1", edge_id="e6"),
            _edge("insert-1", "scene-1", edge_id="e7"),
        ],
    }


# ============================================================================
# Compiler Fixtures
# ============================================================================


@pytest.fixture
def compiler_config() -> CompilerConfig:
    """Default compiler configuration."""
    return CompilerConfig()


@pytest.fixture
def compiler(compiler_config: CompilerConfig) -> SceneCompiler:
    """Compiler with caching disabled so tests never share indexes."""
    return SceneCompiler(compiler_config, cache=NullCache[GraphIndex]())


@pytest.fixture(autouse=True)
def _reset_config_cache():
    """Forget cached app config between tests."""
    reset_app_config_cache()
    yield
    reset_app_config_cache()
