"""Graph models, ports and the derived graph index."""

from flowscene.core.graph.index import (
    BranchAvailability,
    GraphIndex,
    VariableRef,
    build_index,
    default_index_cache,
)
from flowscene.core.graph.models import Edge, FlowGraph, Node, NodeCategory, NodeType
from flowscene.core.graph.naming import display_name_diagnostics, validate_display_name
from flowscene.core.graph.payloads import payload_for
from flowscene.core.graph.ports import PortKind, valid_merge_ports, valid_ports

__all__ = [
    "BranchAvailability",
    "Edge",
    "FlowGraph",
    "GraphIndex",
    "Node",
    "NodeCategory",
    "NodeType",
    "PortKind",
    "VariableRef",
    "build_index",
    "default_index_cache",
    "display_name_diagnostics",
    "payload_for",
    "valid_merge_ports",
    "valid_ports",
    "validate_display_name",
]
