"""Batch variant expansion.

One graph, many data-driven scenes: the graph is planned once and the plan is
assembled once per batch key. Topology never changes between variants, so
object and track ids are identical across them.

Variants share only the read-only plan, so they can be assembled on a thread
pool without coordination.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any

from flowscene.core.diagnostics import Diagnostic, has_errors
from flowscene.core.engine.compiler import CompileResult, SceneCompiler, dedupe_diagnostics
from flowscene.core.engine.plan import ScenePlan
from flowscene.core.graph.models import FlowGraph
from flowscene.core.properties.overrides import BatchOverrideTable
from flowscene.core.scene.models import Scene
from flowscene.core.utils.logging import get_logger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SceneVariant:
    """Scene compiled for one batch key.

    Attributes:
        key: Batch key.
        scene: Scene, or None when assembly failed for this key.
        diagnostics: Assembly diagnostics for this key only.
    """

    key: str
    scene: Scene | None
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def ok(self) -> bool:
        return self.scene is not None and not has_errors(self.diagnostics)


@dataclass(frozen=True)
class BatchResult:
    """Base compile plus one variant per key.

    Attributes:
        base: Compile without an active key (``__default__`` overrides only).
        variants: Variants in key order.
    """

    base: CompileResult
    variants: tuple[SceneVariant, ...] = ()

    @property
    def ok(self) -> bool:
        return self.base.ok and all(v.ok for v in self.variants)

    @property
    def keys(self) -> list[str]:
        return [v.key for v in self.variants]

    def variant(self, key: str) -> SceneVariant:
        for v in self.variants:
            if v.key == key:
                return v
        raise KeyError(key)


def discover_keys(batch_overrides: BatchOverrideTable | Mapping[str, Any] | None) -> list[str]:
    """Union of per-key override keys across every field and scope, sorted."""
    return BatchOverrideTable.from_mapping(batch_overrides).keys()


class BatchExpander:
    """Expands a graph and a batch table into per-key scene variants.

    Example:
        >>> expander = BatchExpander(SceneCompiler(), max_workers=4)
        >>> result = expander.expand(graph, table)
        >>> result.variant("promoA").scene.objects[0].initial_fill_color
        '#ff00ff'
    """

    def __init__(self, compiler: SceneCompiler | None = None, max_workers: int | None = None) -> None:
        """Initialize the expander.

        Args:
            compiler: Compiler to plan and assemble with.
            max_workers: Worker threads; the compiler's ``batch_max_workers`` when None.
        """
        self.compiler = compiler or SceneCompiler()
        self.max_workers = max_workers or self.compiler.config.batch_max_workers

    def expand(
        self,
        graph: FlowGraph | Mapping[str, Any],
        batch_overrides: BatchOverrideTable | Mapping[str, Any] | None,
        *,
        keys: Sequence[str] | None = None,
    ) -> BatchResult:
        """Compile ``graph`` once and assemble it for every batch key.

        Args:
            graph: Graph model or raw editor JSON.
            batch_overrides: Batch override table.
            keys: Keys to expand; every key in the table when None.

        Returns:
            BatchResult. No variants are produced when planning fails.
        """
        table = BatchOverrideTable.from_mapping(batch_overrides)
        base = self.compiler.compile(graph, table)
        if base.plan is None:
            logger.info("Batch expansion skipped: graph failed to compile")
            return BatchResult(base=base)
        variants = self.expand_plan(base.plan, table, keys=keys)
        return BatchResult(base=base, variants=tuple(variants))

    def expand_plan(
        self,
        plan: ScenePlan,
        batch_overrides: BatchOverrideTable | Mapping[str, Any] | None,
        *,
        keys: Sequence[str] | None = None,
    ) -> list[SceneVariant]:
        """Assemble an existing plan once per key.

        Args:
            plan: Plan from ``SceneCompiler.plan`` or ``CompileResult.plan``.
            batch_overrides: Batch override table.
            keys: Keys to expand; every key in the table when None.

        Returns:
            Variants in key order.
        """
        table = BatchOverrideTable.from_mapping(batch_overrides)
        selected = list(keys) if keys is not None else table.keys()

        soft_cap = self.compiler.config.batch_key_soft_cap
        for field_path, scope, count in table.oversized_entries(soft_cap):
            logger.warning(
                "Batch overrides for %s on %s have %d keys (soft cap %d)",
                field_path,
                scope,
                count,
                soft_cap,
            )

        if self.max_workers <= 1 or len(selected) <= 1:
            variants = [self._assemble(plan, table, key) for key in selected]
        else:
            by_key: dict[str, SceneVariant] = {}
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                future_to_key = {
                    executor.submit(self._assemble, plan, table, key): key for key in selected
                }
                for future in as_completed(future_to_key):
                    by_key[future_to_key[future]] = future.result()
            variants = [by_key[key] for key in selected]

        failed = sum(1 for v in variants if not v.ok)
        logger.info("Expanded %d batch variants (%d failed)", len(variants), failed)
        return variants

    def _assemble(self, plan: ScenePlan, table: BatchOverrideTable, key: str) -> SceneVariant:
        variant_logger = get_logger(__name__, batch_key=key)
        scene, diagnostics = self.compiler.assembler.assemble(plan, table, key)
        variant_logger.debug("Assembled variant with %d diagnostics", len(diagnostics))
        return SceneVariant(key=key, scene=scene, diagnostics=tuple(dedupe_diagnostics(diagnostics)))


def expand_batch(
    graph: FlowGraph | Mapping[str, Any],
    batch_overrides: BatchOverrideTable | Mapping[str, Any] | None,
    *,
    compiler: SceneCompiler | None = None,
    max_workers: int | None = None,
) -> BatchResult:
    """Expand with a throwaway ``BatchExpander``."""
    return BatchExpander(compiler, max_workers=max_workers).expand(graph, batch_overrides)


__all__ = [
    "BatchExpander",
    "BatchResult",
    "SceneVariant",
    "discover_keys",
    "expand_batch",
]
