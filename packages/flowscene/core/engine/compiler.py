"""Graph-to-scene compiler.

Stages, each of which may stop compilation with error diagnostics:

1. graph size guardrail (before indexing)
2. structural validation (terminal count, connections, cycles, names)
3. data-node evaluation (result values for bindings)
4. path execution (objects, timing, field sources)
5. assembly (field resolution, track rendering, bounds)

Compilation is a pure function of (graph, overrides, key). It never raises
for user mistakes; those come back as diagnostics on ``CompileResult``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from flowscene.core.caching import DerivationCache
from flowscene.core.config.models import CompilerConfig
from flowscene.core.diagnostics import (
    Diagnostic,
    GraphError,
    errors_only,
    has_errors,
    warnings_only,
)
from flowscene.core.engine.assembler import SceneAssembler
from flowscene.core.engine.paths import PathExecutor
from flowscene.core.engine.plan import ScenePlan
from flowscene.core.engine.validation import check_graph_size, validate_structure
from flowscene.core.engine.variables import VariableEvaluator
from flowscene.core.graph.index import GraphIndex, build_index
from flowscene.core.graph.models import FlowGraph
from flowscene.core.properties.overrides import BatchOverrideTable
from flowscene.core.properties.resolver import PropertyResolver
from flowscene.core.scene.models import Scene
from flowscene.core.tracks.registry import TrackRendererRegistry
from flowscene.core.utils.logging import log_performance

logger = logging.getLogger(__name__)


def dedupe_diagnostics(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
    """Drop repeated diagnostics, keeping first occurrences in order."""
    seen: set[tuple[Any, ...]] = set()
    unique = []
    for d in diagnostics:
        key = (d.code, d.severity, d.message, d.node_id, tuple(d.edge_ids), tuple(d.object_ids))
        if key in seen:
            continue
        seen.add(key)
        unique.append(d)
    return unique


@dataclass(frozen=True)
class CompileResult:
    """Outcome of one compile.

    Attributes:
        scene: Compiled scene, or None when any diagnostic is an error.
        diagnostics: Every warning and error, in discovery order.
        plan: Resolution-ready plan; kept for batch expansion.
    """

    scene: Scene | None
    diagnostics: tuple[Diagnostic, ...] = ()
    plan: ScenePlan | None = None

    @property
    def ok(self) -> bool:
        return self.scene is not None and not has_errors(self.diagnostics)

    @property
    def errors(self) -> list[Diagnostic]:
        return errors_only(self.diagnostics)

    @property
    def warnings(self) -> list[Diagnostic]:
        return warnings_only(self.diagnostics)

    def raise_for_errors(self) -> Scene:
        """Return the scene, or raise ``GraphError`` carrying the errors."""
        if not self.ok or self.scene is None:
            raise GraphError(self.errors)
        return self.scene


class SceneCompiler:
    """Compiles editor graphs into Scene documents.

    Example:
        >>> compiler = SceneCompiler()
        >>> result = compiler.compile(graph)
        >>> if result.ok:
        ...     print(result.scene.duration)
    """

    def __init__(
        self,
        config: CompilerConfig | None = None,
        *,
        resolver: PropertyResolver | None = None,
        registry: TrackRendererRegistry | None = None,
        cache: DerivationCache[GraphIndex] | None = None,
    ) -> None:
        """Initialize the compiler.

        Args:
            config: Guardrails and policies; defaults when None.
            resolver: Property resolver used during assembly.
            registry: Track renderer registry used during assembly.
            cache: Graph index cache; the process-wide cache when None.
        """
        self.config = config or CompilerConfig()
        self.cache = cache
        self.assembler = SceneAssembler(self.config, resolver=resolver, registry=registry)

    def plan(
        self,
        graph: FlowGraph | Mapping[str, Any],
        *,
        index: GraphIndex | None = None,
    ) -> tuple[ScenePlan | None, list[Diagnostic]]:
        """Run every stage up to (not including) assembly.

        Args:
            graph: Graph model or raw editor JSON.
            index: Pre-built index for ``graph``; built (or fetched from cache) when None.

        Returns:
            ``(plan, diagnostics)``; ``plan`` is None if any stage failed.

        Raises:
            PayloadError: If a known node type carries a malformed payload.
        """
        if not isinstance(graph, FlowGraph):
            graph = FlowGraph.model_validate(graph)

        diagnostics = check_graph_size(graph, self.config)
        if diagnostics:
            return None, diagnostics

        if index is None:
            index = build_index(graph, self.cache)

        report = validate_structure(index)
        diagnostics.extend(report.diagnostics)
        if not report.ok or report.order is None or report.terminal is None:
            return None, diagnostics

        variables = VariableEvaluator(index).evaluate(report.order)
        diagnostics.extend(variables.diagnostics)
        if has_errors(diagnostics):
            return None, diagnostics

        plan = PathExecutor(index, self.config).execute(
            report.order, report.terminal, variables.result_values(index)
        )
        diagnostics.extend(plan.diagnostics)
        if has_errors(diagnostics):
            return None, diagnostics
        return plan, diagnostics

    @log_performance
    def compile(
        self,
        graph: FlowGraph | Mapping[str, Any],
        batch_overrides: BatchOverrideTable | Mapping[str, Any] | None = None,
        *,
        batch_key: str | None = None,
        index: GraphIndex | None = None,
    ) -> CompileResult:
        """Compile a graph into a Scene.

        Args:
            graph: Graph model or raw editor JSON.
            batch_overrides: Batch override table; ``__default__`` entries apply
                even without a key.
            batch_key: Active batch key, if compiling one variant.
            index: Pre-built index for ``graph``.

        Returns:
            CompileResult with the scene (or None) and all diagnostics.

        Raises:
            PayloadError: If a known node type carries a malformed payload.
        """
        plan, diagnostics = self.plan(graph, index=index)
        if plan is None:
            result = CompileResult(scene=None, diagnostics=tuple(dedupe_diagnostics(diagnostics)))
            logger.info("Compile failed with %d errors", len(result.errors))
            return result

        batch = BatchOverrideTable.from_mapping(batch_overrides)
        scene, assembly_diagnostics = self.assembler.assemble(plan, batch, batch_key)
        diagnostics.extend(assembly_diagnostics)
        result = CompileResult(
            scene=scene,
            diagnostics=tuple(dedupe_diagnostics(diagnostics)),
            plan=plan,
        )
        if scene is None:
            logger.info("Assembly failed with %d errors", len(result.errors))
        else:
            logger.info(
                "Compiled scene: %d objects, %d tracks, %.2fs (%d warnings)",
                len(scene.objects),
                len(scene.animations),
                scene.duration,
                len(result.warnings),
            )
        return result


def compile_graph(
    graph: FlowGraph | Mapping[str, Any],
    batch_overrides: BatchOverrideTable | Mapping[str, Any] | None = None,
    *,
    batch_key: str | None = None,
    config: CompilerConfig | None = None,
) -> CompileResult:
    """Compile with a throwaway ``SceneCompiler``."""
    return SceneCompiler(config).compile(graph, batch_overrides, batch_key=batch_key)


__all__ = ["CompileResult", "SceneCompiler", "compile_graph", "dedupe_diagnostics"]
