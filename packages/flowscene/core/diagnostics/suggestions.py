"""Human-facing titles and suggested fixes per diagnostic code."""

from __future__ import annotations

from typing import NamedTuple

from flowscene.core.diagnostics.codes import DiagnosticCode


class Guidance(NamedTuple):
    title: str
    suggestions: tuple[str, ...]


_FALLBACK = Guidance(
    title="Graph validation failed",
    suggestions=("Check node configuration", "Verify all connections"),
)

_GUIDANCE: dict[DiagnosticCode, Guidance] = {
    DiagnosticCode.SCENE_REQUIRED: Guidance(
        "A Scene or Frame node is required",
        (
            "Add a Scene node from the Output section",
            "Connect your objects to the Scene node",
        ),
    ),
    DiagnosticCode.TOO_MANY_SCENES: Guidance(
        "Only one Scene or Frame node is allowed per graph",
        ("Remove the extra Scene or Frame nodes", "Use a Merge node to combine branches"),
    ),
    DiagnosticCode.DUPLICATE_OBJECT_IDS: Guidance(
        "An object reaches the output more than once",
        (
            "Join parallel branches with a Merge node",
            "Use a Filter node so each branch carries different objects",
        ),
    ),
    DiagnosticCode.CIRCULAR_DEPENDENCY: Guidance(
        "The graph contains a cycle",
        ("Remove the connection that loops back upstream",),
    ),
    DiagnosticCode.MISSING_INSERT_CONNECTION: Guidance(
        "Scene nodes require timed objects via Insert nodes",
        (
            "Add an Insert node between objects and Scene",
            "Check that Insert nodes are properly connected",
        ),
    ),
    DiagnosticCode.INVALID_CONNECTION: Guidance(
        "Invalid connection",
        ("Check port compatibility", "Verify all connections are valid"),
    ),
    DiagnosticCode.NODE_VALIDATION_FAILED: Guidance(
        "A node is not configured correctly",
        ("Check node configuration", "Replace nodes of unsupported types"),
    ),
    DiagnosticCode.SCENE_VALIDATION_FAILED: Guidance(
        "The compiled scene is not valid",
        ("Ensure scenes have connected objects", "Check scene configurations"),
    ),
    DiagnosticCode.MULTIPLE_INSERT_NODES_IN_SERIES: Guidance(
        "An object passes through more than one Insert node",
        ("Keep a single Insert node on each path",),
    ),
    DiagnosticCode.MULTIPLE_RESULT_VALUES: Guidance(
        "A Result node received more than one value",
        ("Connect exactly one value into each Result node",),
    ),
    DiagnosticCode.UNRESOLVED_BINDING: Guidance(
        "A variable binding has no value",
        (
            "Connect a value into the bound Result node",
            "Remove the binding to use the configured value",
        ),
    ),
    DiagnosticCode.GRAPH_TOO_LARGE: Guidance(
        "The graph has too many nodes",
        ("Split the graph into smaller scenes",),
    ),
}


def guidance_for(code: DiagnosticCode) -> Guidance:
    """Return title and suggestions for ``code`` (generic guidance if unmapped)."""
    return _GUIDANCE.get(code, _FALLBACK)


def suggestions_for(code: DiagnosticCode) -> list[str]:
    """Return a fresh list of suggested fixes for ``code``."""
    return list(guidance_for(code).suggestions)


__all__ = ["Guidance", "guidance_for", "suggestions_for"]
