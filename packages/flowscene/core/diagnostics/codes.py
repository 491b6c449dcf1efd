"""Stable diagnostic codes.

The string values are part of the wire contract: the editor keys node
highlighting off them, so they never change once published.
"""

from __future__ import annotations

from enum import Enum


class DiagnosticCode(str, Enum):
    """Codes shared by graph validation and the execution engine."""

    SCENE_REQUIRED = "ErrSceneRequired"
    TOO_MANY_SCENES = "ErrTooManyScenes"
    DUPLICATE_OBJECT_IDS = "ErrDuplicateObjectIds"
    CIRCULAR_DEPENDENCY = "ErrCircularDependency"
    MISSING_INSERT_CONNECTION = "ErrMissingInsertConnection"
    INVALID_CONNECTION = "ErrInvalidConnection"
    NODE_VALIDATION_FAILED = "ErrNodeValidationFailed"
    SCENE_VALIDATION_FAILED = "ErrSceneValidationFailed"
    MULTIPLE_INSERT_NODES_IN_SERIES = "ErrMultipleInsertNodesInSeries"
    MULTIPLE_RESULT_VALUES = "ErrMultipleResultValues"
    UNRESOLVED_BINDING = "ErrUnresolvedBinding"
    GRAPH_TOO_LARGE = "ErrGraphTooLarge"


class Severity(str, Enum):
    """Diagnostic severity. Any ERROR aborts compilation."""

    WARNING = "warning"
    ERROR = "error"


__all__ = ["DiagnosticCode", "Severity"]
