"""Raw graph models as serialized by the editor.

Nodes and edges are read-only inputs to the compiler. Canvas positions and
other presentation fields the editor sends along are ignored.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from flowscene.core.utils.models import WireModel


class NodeType(str, Enum):
    """Closed set of node types the compiler understands."""

    TRIANGLE = "triangle"
    CIRCLE = "circle"
    RECTANGLE = "rectangle"
    TEXT = "text"
    INSERT = "insert"
    FILTER = "filter"
    MERGE = "merge"
    DUPLICATE = "duplicate"
    CANVAS = "canvas"
    ANIMATION = "animation"
    TEXTSTYLE = "textstyle"
    CONSTANTS = "constants"
    RESULT = "result"
    COMPARE = "compare"
    MATH_OP = "math_op"
    BOOLEAN_OP = "boolean_op"
    SCENE = "scene"
    FRAME = "frame"


class NodeCategory(str, Enum):
    """Coarse grouping used by ports, traversal and validation."""

    GEOMETRY = "geometry"
    TIMING = "timing"
    LOGIC = "logic"
    PROPERTY = "property"
    DATA = "data"
    OUTPUT = "output"


GEOMETRY_TYPES = frozenset({NodeType.TRIANGLE, NodeType.CIRCLE, NodeType.RECTANGLE, NodeType.TEXT})
TERMINAL_TYPES = frozenset({NodeType.SCENE, NodeType.FRAME})
OPERATOR_TYPES = frozenset({NodeType.COMPARE, NodeType.MATH_OP, NodeType.BOOLEAN_OP})

_CATEGORIES: dict[NodeType, NodeCategory] = {
    NodeType.TRIANGLE: NodeCategory.GEOMETRY,
    NodeType.CIRCLE: NodeCategory.GEOMETRY,
    NodeType.RECTANGLE: NodeCategory.GEOMETRY,
    NodeType.TEXT: NodeCategory.GEOMETRY,
    NodeType.INSERT: NodeCategory.TIMING,
    NodeType.FILTER: NodeCategory.LOGIC,
    NodeType.MERGE: NodeCategory.LOGIC,
    NodeType.DUPLICATE: NodeCategory.LOGIC,
    NodeType.CANVAS: NodeCategory.PROPERTY,
    NodeType.ANIMATION: NodeCategory.PROPERTY,
    NodeType.TEXTSTYLE: NodeCategory.PROPERTY,
    NodeType.CONSTANTS: NodeCategory.DATA,
    NodeType.RESULT: NodeCategory.DATA,
    NodeType.COMPARE: NodeCategory.DATA,
    NodeType.MATH_OP: NodeCategory.DATA,
    NodeType.BOOLEAN_OP: NodeCategory.DATA,
    NodeType.SCENE: NodeCategory.OUTPUT,
    NodeType.FRAME: NodeCategory.OUTPUT,
}


def parse_node_type(value: str) -> NodeType | None:
    """Map a raw type tag to NodeType, or None for types this build does not know."""
    try:
        return NodeType(value)
    except ValueError:
        return None


def category_of(node_type: NodeType) -> NodeCategory:
    return _CATEGORIES[node_type]


class Node(WireModel):
    """One node of the editor graph.

    Attributes:
        id: Stable identifier; doubles as the drawable object id for geometry nodes.
        type: Raw type tag. Unknown tags are kept so forward-compatible graphs load.
        display_name: User-editable name, unique among nodes.
        data: Type-specific payload, validated lazily by ``payload_for``.
    """

    id: str = Field(min_length=1)
    type: str
    display_name: str | None = Field(default=None)
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def node_type(self) -> NodeType | None:
        return parse_node_type(self.type)

    @property
    def category(self) -> NodeCategory | None:
        nt = self.node_type
        return category_of(nt) if nt is not None else None

    @property
    def is_geometry(self) -> bool:
        return self.node_type in GEOMETRY_TYPES

    @property
    def is_terminal(self) -> bool:
        return self.node_type in TERMINAL_TYPES

    @property
    def label(self) -> str:
        """Display name for messages, falling back to the id."""
        if self.display_name:
            return self.display_name
        identifier = self.data.get("identifier")
        if isinstance(identifier, dict) and identifier.get("displayName"):
            return str(identifier["displayName"])
        return self.id


class Edge(WireModel):
    """Directed connection between an output port and an input port.

    Both the compiler's ``sourcePort``/``targetPort`` keys and the editor's
    ``sourceHandle``/``targetHandle`` keys are accepted.
    """

    id: str = Field(min_length=1)
    source: str
    target: str
    source_port: str = Field(
        default="output",
        validation_alias=AliasChoices("sourcePort", "sourceHandle", "source_port"),
    )
    target_port: str = Field(
        default="input",
        validation_alias=AliasChoices("targetPort", "targetHandle", "target_port"),
    )

    @field_validator("source_port", mode="before")
    @classmethod
    def _default_source_port(cls, value: Any) -> Any:
        return "output" if value is None else value

    @field_validator("target_port", mode="before")
    @classmethod
    def _default_target_port(cls, value: Any) -> Any:
        return "input" if value is None else value


class FlowGraph(WireModel):
    """Immutable node/edge snapshot handed to the compiler."""

    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    def node_map(self) -> dict[str, Node]:
        return {node.id: node for node in self.nodes}

    def nodes_of_type(self, *types: NodeType) -> list[Node]:
        wanted = set(types)
        return [node for node in self.nodes if node.node_type in wanted]


__all__ = [
    "GEOMETRY_TYPES",
    "OPERATOR_TYPES",
    "TERMINAL_TYPES",
    "Edge",
    "FlowGraph",
    "Node",
    "NodeCategory",
    "NodeType",
    "category_of",
    "parse_node_type",
]
