"""Diagnostic codes, value objects and exceptions."""

from flowscene.core.diagnostics.codes import DiagnosticCode, Severity
from flowscene.core.diagnostics.errors import CircularDependencyError, GraphError, PayloadError
from flowscene.core.diagnostics.models import Diagnostic, errors_only, has_errors, warnings_only
from flowscene.core.diagnostics.suggestions import guidance_for, suggestions_for

__all__ = [
    "CircularDependencyError",
    "Diagnostic",
    "DiagnosticCode",
    "GraphError",
    "PayloadError",
    "Severity",
    "errors_only",
    "guidance_for",
    "has_errors",
    "suggestions_for",
    "warnings_only",
]
