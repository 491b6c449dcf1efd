"""Port tables per node type.

Ports are derived from node configuration on every index build. Merge nodes
are the dynamic case: their input ports follow ``input_port_count``, so an
edge can become dangling when the user shrinks the node.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple, cast

from flowscene.core.graph.models import Node, NodeType
from flowscene.core.graph.payloads import MAX_MERGE_PORTS, MergePayload, payload_for


class PortKind(str, Enum):
    OBJECT_STREAM = "object_stream"
    DATA = "data"


class PortSpec(NamedTuple):
    inputs: dict[str, PortKind]
    outputs: dict[str, PortKind]


OBJECT = PortKind.OBJECT_STREAM
DATA = PortKind.DATA

# Path nodes take an optional data edge on "variables" so that result nodes
# can sit upstream of the fields they are bound to.
_PATH_INPUTS = {"input": OBJECT, "variables": DATA}
_OPERATOR_INPUTS = {"input_a": DATA, "input_b": DATA}

_STATIC_PORTS: dict[NodeType, PortSpec] = {
    NodeType.TRIANGLE: PortSpec({}, {"output": OBJECT}),
    NodeType.CIRCLE: PortSpec({}, {"output": OBJECT}),
    NodeType.RECTANGLE: PortSpec({}, {"output": OBJECT}),
    NodeType.TEXT: PortSpec({}, {"output": OBJECT}),
    NodeType.INSERT: PortSpec(_PATH_INPUTS, {"output": OBJECT}),
    NodeType.FILTER: PortSpec(_PATH_INPUTS, {"output": OBJECT}),
    NodeType.DUPLICATE: PortSpec(_PATH_INPUTS, {"output": OBJECT}),
    NodeType.CANVAS: PortSpec(_PATH_INPUTS, {"output": OBJECT}),
    NodeType.ANIMATION: PortSpec(_PATH_INPUTS, {"output": OBJECT}),
    NodeType.TEXTSTYLE: PortSpec(_PATH_INPUTS, {"output": OBJECT}),
    NodeType.CONSTANTS: PortSpec({}, {"output": DATA}),
    NodeType.RESULT: PortSpec({"input": DATA}, {"output": DATA}),
    NodeType.COMPARE: PortSpec(_OPERATOR_INPUTS, {"output": DATA}),
    NodeType.MATH_OP: PortSpec(_OPERATOR_INPUTS, {"output": DATA}),
    NodeType.BOOLEAN_OP: PortSpec(_OPERATOR_INPUTS, {"output": DATA}),
    NodeType.SCENE: PortSpec({"input": OBJECT}, {}),
    NodeType.FRAME: PortSpec({"input": OBJECT}, {}),
}


def merge_port_id(index: int) -> str:
    """Port id for the 1-based merge input ``index``."""
    return f"input{index}"


def merge_port_index(port_id: str) -> int | None:
    """1-based index of a merge port id, or None if it is not one."""
    if not port_id.startswith("input"):
        return None
    suffix = port_id[len("input") :]
    if not suffix.isdigit():
        return None
    index = int(suffix)
    return index if index >= 1 else None


def valid_merge_ports(node: Node) -> set[str]:
    """Currently valid input ports of a merge node, from its own configuration.

    Counts above ``MAX_MERGE_PORTS`` are clamped; validation reports them.
    """
    payload = cast(MergePayload, payload_for(node))
    count = min(payload.input_port_count, MAX_MERGE_PORTS)
    return {merge_port_id(i) for i in range(1, count + 1)}


def valid_ports(node: Node) -> PortSpec | None:
    """Port table for ``node``, or None for unknown node types."""
    node_type = node.node_type
    if node_type is None:
        return None
    if node_type == NodeType.MERGE:
        return PortSpec(
            {port: OBJECT for port in sorted(valid_merge_ports(node), key=merge_port_index)},
            {"output": OBJECT},
        )
    return _STATIC_PORTS[node_type]


__all__ = [
    "PortKind",
    "PortSpec",
    "merge_port_id",
    "merge_port_index",
    "valid_merge_ports",
    "valid_ports",
]
