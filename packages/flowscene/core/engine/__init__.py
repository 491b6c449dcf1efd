"""Compilation engine: validation, data evaluation, path execution, assembly."""

from flowscene.core.engine.assembler import SceneAssembler
from flowscene.core.engine.compiler import (
    CompileResult,
    SceneCompiler,
    compile_graph,
    dedupe_diagnostics,
)
from flowscene.core.engine.paths import PathExecutor, PathState
from flowscene.core.engine.plan import ObjectPlan, ScenePlan, TrackPlan
from flowscene.core.engine.validation import ValidationReport, check_graph_size, validate_structure
from flowscene.core.engine.variables import VariableEvaluator, VariableTable

__all__ = [
    "CompileResult",
    "ObjectPlan",
    "PathExecutor",
    "PathState",
    "SceneAssembler",
    "SceneCompiler",
    "ScenePlan",
    "TrackPlan",
    "ValidationReport",
    "VariableEvaluator",
    "VariableTable",
    "check_graph_size",
    "compile_graph",
    "dedupe_diagnostics",
    "validate_structure",
]
