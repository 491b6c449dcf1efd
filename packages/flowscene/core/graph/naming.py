"""Display-name rules for user-renamable nodes."""

from __future__ import annotations

from collections.abc import Iterable

from flowscene.core.diagnostics import Diagnostic, DiagnosticCode
from flowscene.core.graph.models import Node


def validate_display_name(
    new_name: str,
    nodes: Iterable[Node],
    exclude_node_id: str | None = None,
) -> str | None:
    """Check a proposed display name against existing nodes.

    Names are compared case-insensitively after trimming whitespace.

    Args:
        new_name: Proposed name.
        nodes: Nodes currently in the graph.
        exclude_node_id: Node being renamed (its current name is not a clash).

    Returns:
        Error message, or None if the name is acceptable.
    """
    candidate = new_name.strip()
    if not candidate:
        return "Name cannot be empty"
    folded = candidate.casefold()
    for node in nodes:
        if node.id == exclude_node_id:
            continue
        if node.label.strip().casefold() == folded:
            return f'Name "{candidate}" is already used'
    return None


def display_name_diagnostics(nodes: Iterable[Node]) -> list[Diagnostic]:
    """Warnings for nodes whose display names collide (case-insensitive)."""
    owners: dict[str, list[Node]] = {}
    for node in nodes:
        if node.display_name is None:
            continue
        owners.setdefault(node.display_name.strip().casefold(), []).append(node)

    diagnostics: list[Diagnostic] = []
    for group in owners.values():
        if len(group) < 2:
            continue
        names = ", ".join(n.id for n in group)
        diagnostics.append(
            Diagnostic.warning(
                DiagnosticCode.NODE_VALIDATION_FAILED,
                f'Display name "{group[0].display_name}" is shared by nodes {names}',
                suggestions=["Rename nodes so every display name is unique"],
                node_id=group[1].id,
            )
        )
    return diagnostics


__all__ = ["display_name_diagnostics", "validate_display_name"]
