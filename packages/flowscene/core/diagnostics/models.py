"""Diagnostic value objects returned alongside compiled scenes."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import Field

from flowscene.core.diagnostics.codes import DiagnosticCode, Severity
from flowscene.core.diagnostics.suggestions import suggestions_for
from flowscene.core.utils.models import WireModel


class Diagnostic(WireModel):
    """Structured warning or error about the graph.

    Attributes:
        code: Stable code from the shared taxonomy.
        message: Human-readable explanation.
        severity: ``warning`` or ``error``.
        suggestions: Suggested fixes, shown by the editor.
        node_id: Node the editor should highlight, if any.
        edge_ids: Edges involved (e.g. dangling connections).
        object_ids: Drawable objects involved.
    """

    code: DiagnosticCode = Field(description="Stable diagnostic code")
    message: str = Field(description="Human-readable message")
    severity: Severity = Field(description="warning or error")
    suggestions: list[str] = Field(default_factory=list)
    node_id: str | None = Field(default=None)
    edge_ids: list[str] = Field(default_factory=list)
    object_ids: list[str] = Field(default_factory=list)

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    @classmethod
    def error(
        cls,
        code: DiagnosticCode,
        message: str,
        *,
        suggestions: Iterable[str] | None = None,
        node_id: str | None = None,
        edge_ids: Iterable[str] = (),
        object_ids: Iterable[str] = (),
    ) -> Diagnostic:
        """Create an error-level diagnostic, filling default suggestions."""
        return cls._make(Severity.ERROR, code, message, suggestions, node_id, edge_ids, object_ids)

    @classmethod
    def warning(
        cls,
        code: DiagnosticCode,
        message: str,
        *,
        suggestions: Iterable[str] | None = None,
        node_id: str | None = None,
        edge_ids: Iterable[str] = (),
        object_ids: Iterable[str] = (),
    ) -> Diagnostic:
        """Create a warning-level diagnostic, filling default suggestions."""
        return cls._make(Severity.WARNING, code, message, suggestions, node_id, edge_ids, object_ids)

    @classmethod
    def _make(
        cls,
        severity: Severity,
        code: DiagnosticCode,
        message: str,
        suggestions: Iterable[str] | None,
        node_id: str | None,
        edge_ids: Iterable[str],
        object_ids: Iterable[str],
    ) -> Diagnostic:
        return cls(
            code=code,
            message=message,
            severity=severity,
            suggestions=list(suggestions) if suggestions is not None else suggestions_for(code),
            node_id=node_id,
            edge_ids=list(edge_ids),
            object_ids=list(object_ids),
        )


def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
    """True if any diagnostic is error-level."""
    return any(d.is_error for d in diagnostics)


def errors_only(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
    return [d for d in diagnostics if d.is_error]


def warnings_only(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
    return [d for d in diagnostics if not d.is_error]


__all__ = ["Diagnostic", "errors_only", "has_errors", "warnings_only"]
