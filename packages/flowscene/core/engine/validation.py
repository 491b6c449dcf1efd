"""Structural validation run before any execution path is walked.

Checks are ordered cheapest first. Graph size is checked on the raw graph so
an oversized graph never reaches index construction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from flowscene.core.config.models import CompilerConfig
from flowscene.core.diagnostics import (
    CircularDependencyError,
    Diagnostic,
    DiagnosticCode,
    has_errors,
)
from flowscene.core.graph.index import GraphIndex
from flowscene.core.graph.models import FlowGraph, Node
from flowscene.core.graph.naming import display_name_diagnostics
from flowscene.core.graph.payloads import range_violations

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    """Outcome of structural validation.

    Attributes:
        diagnostics: Everything found, errors and warnings.
        terminal: The single scene/frame terminal, when exactly one exists.
        order: Topological order of all nodes, when the graph is acyclic.
    """

    diagnostics: list[Diagnostic] = field(default_factory=list)
    terminal: Node | None = None
    order: tuple[str, ...] | None = None

    @property
    def ok(self) -> bool:
        return not has_errors(self.diagnostics)


def check_graph_size(graph: FlowGraph, config: CompilerConfig) -> list[Diagnostic]:
    """Reject graphs above the configured node limit."""
    if len(graph.nodes) <= config.max_nodes:
        return []
    return [
        Diagnostic.error(
            DiagnosticCode.GRAPH_TOO_LARGE,
            f"Graph has {len(graph.nodes)} nodes; the limit is {config.max_nodes}",
        )
    ]


def _terminal_diagnostics(index: GraphIndex) -> tuple[list[Diagnostic], Node | None]:
    terminals = [node for node in index.nodes.values() if node.is_terminal]
    if not terminals:
        return [
            Diagnostic.error(
                DiagnosticCode.SCENE_REQUIRED,
                "Graph has no Scene or Frame output node",
            )
        ], None
    if len(terminals) > 1:
        names = ", ".join(t.label for t in terminals)
        return [
            Diagnostic.error(
                DiagnosticCode.TOO_MANY_SCENES,
                f"Graph has {len(terminals)} output nodes ({names}); exactly one is allowed",
                node_id=terminals[1].id,
            )
        ], None
    return [], terminals[0]


def payload_range_diagnostics(index: GraphIndex) -> list[Diagnostic]:
    """Report numeric payload values outside their usable range.

    Every known node is checked, connected or not.
    """
    diagnostics = []
    for node_id, node in index.nodes.items():
        payload = index.payload(node_id)
        if payload is None:
            continue
        for problem in range_violations(payload):
            diagnostics.append(
                Diagnostic.error(
                    DiagnosticCode.NODE_VALIDATION_FAILED,
                    f"{node.label}: {problem}",
                    node_id=node_id,
                )
            )
    return diagnostics


def validate_structure(index: GraphIndex) -> ValidationReport:
    """Validate terminal count, connections, payload ranges, cycles and names.

    Args:
        index: Index of the graph being compiled.

    Returns:
        Report with every diagnostic found. ``order`` is None when the graph
        is cyclic; ``terminal`` is None unless exactly one terminal exists.
    """
    report = ValidationReport()

    terminal_diagnostics, report.terminal = _terminal_diagnostics(index)
    report.diagnostics.extend(terminal_diagnostics)
    report.diagnostics.extend(index.connection_diagnostics)
    report.diagnostics.extend(payload_range_diagnostics(index))

    try:
        report.order = index.topological_order()
    except CircularDependencyError as e:
        report.diagnostics.extend(e.diagnostics)

    report.diagnostics.extend(display_name_diagnostics(index.nodes.values()))

    logger.debug(
        "Structural validation: %d diagnostics (%s)",
        len(report.diagnostics),
        "ok" if report.ok else "failed",
    )
    return report


__all__ = [
    "ValidationReport",
    "check_graph_size",
    "payload_range_diagnostics",
    "validate_structure",
]
