"""Exceptions raised by the compiler.

Compilation reports user-facing problems as ``Diagnostic`` values. These
exceptions exist for the narrower cases where raising is the contract:
direct index queries on a cyclic graph, malformed payloads of a known node
type, and callers that opt into exceptions via ``raise_for_errors()``.
"""

from __future__ import annotations

from collections.abc import Sequence

from flowscene.core.diagnostics.codes import DiagnosticCode
from flowscene.core.diagnostics.models import Diagnostic


class GraphError(Exception):
    """Raised with one or more error diagnostics attached.

    Attributes:
        diagnostics: The diagnostics that caused the failure.
    """

    def __init__(self, diagnostics: Sequence[Diagnostic]) -> None:
        self.diagnostics = list(diagnostics)
        summary = "; ".join(f"{d.code.value}: {d.message}" for d in self.diagnostics)
        super().__init__(summary or "Graph validation failed")

    @property
    def codes(self) -> list[DiagnosticCode]:
        return [d.code for d in self.diagnostics]


class CircularDependencyError(GraphError):
    """Raised by graph-index queries that walk into a cycle.

    Attributes:
        cycle: Node ids forming the cycle, first node repeated at the end.
    """

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        diagnostic = Diagnostic.error(
            DiagnosticCode.CIRCULAR_DEPENDENCY,
            f"Circular dependency detected: {' -> '.join(self.cycle)}",
            node_id=self.cycle[0] if self.cycle else None,
        )
        super().__init__([diagnostic])


class PayloadError(ValueError):
    """A known node type carries a payload missing required fields.

    This is a programming error in whoever produced the graph, distinct from
    the user-facing diagnostic codes.

    Attributes:
        node_id: Offending node.
        node_type: Its declared type.
        reason: What was wrong with the payload.
    """

    def __init__(self, *, node_id: str, node_type: str, reason: str) -> None:
        self.node_id = node_id
        self.node_type = node_type
        self.reason = reason
        super().__init__(f"Invalid payload for {node_type} node '{node_id}': {reason}")


__all__ = ["CircularDependencyError", "GraphError", "PayloadError"]
