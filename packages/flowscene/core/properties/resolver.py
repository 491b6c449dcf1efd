"""Layered property resolution.

Each layer is a small function returning a ``ResolvedValue`` or None; the
resolver tries them in precedence order and stops at the first hit:

1. variable binding (live value of an upstream result node)
2. batch override for the active key
3. batch ``__default__`` override
4. manual per-object assignment
5. node-level default

Adding a layer means inserting one function into ``DEFAULT_LAYERS``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from flowscene.core.diagnostics import Diagnostic, DiagnosticCode
from flowscene.core.properties.coercion import coerce_field
from flowscene.core.properties.overrides import DEFAULT_SLOT, BatchOverrideTable, FieldSources

logger = logging.getLogger(__name__)


class OverrideLayer(str, Enum):
    BINDING = "binding"
    BATCH_KEY = "batchKey"
    BATCH_DEFAULT = "batchDefault"
    ASSIGNMENT = "assignment"
    DEFAULT = "default"


@dataclass(frozen=True)
class ResolvedValue:
    """Outcome of resolving one field.

    Attributes:
        value: Winning value.
        layer: Layer that supplied it.
        notes: Warnings raised by layers that were skipped on the way down.
    """

    value: Any
    layer: OverrideLayer
    notes: tuple[Diagnostic, ...] = ()


@dataclass(frozen=True)
class ResolutionContext:
    """Inputs for resolving the fields of one object (or one node).

    Attributes:
        sources: Non-batch layer inputs per field path.
        live_values: Evaluated value of each result node.
        batch: Batch override table, if any.
        batch_key: Active batch key; None outside batch expansion.
        visible_results: Result nodes a binding may point at; None skips the check.
    """

    sources: Mapping[str, FieldSources] = field(default_factory=dict)
    live_values: Mapping[str, Any] = field(default_factory=dict)
    batch: BatchOverrideTable | None = None
    batch_key: str | None = None
    visible_results: frozenset[str] | None = None


LayerFn = Callable[[str, str | None, ResolutionContext, list[Diagnostic]], ResolvedValue | None]


def _unresolved(
    field_path: str, object_scope: str | None, src: FieldSources, reason: str
) -> Diagnostic:
    scope = f" for object '{object_scope}'" if object_scope else ""
    return Diagnostic.warning(
        DiagnosticCode.UNRESOLVED_BINDING,
        f"Binding of {field_path}{scope} to '{src.binding}' {reason}; using next override",
        node_id=src.origin_node_id,
        object_ids=[object_scope] if object_scope else [],
    )


def binding_layer(
    field_path: str,
    object_scope: str | None,
    context: ResolutionContext,
    notes: list[Diagnostic],
) -> ResolvedValue | None:
    src = context.sources.get(field_path)
    if src is None or src.binding is None:
        return None
    if context.visible_results is not None and src.binding not in context.visible_results:
        notes.append(_unresolved(field_path, object_scope, src, "is not upstream"))
        return None
    if context.live_values.get(src.binding) is None:
        notes.append(_unresolved(field_path, object_scope, src, "has no value"))
        return None
    coerced = coerce_field(field_path, context.live_values[src.binding])
    if not coerced.ok:
        notes.append(_unresolved(field_path, object_scope, src, f"is invalid ({coerced.warning})"))
        return None
    return ResolvedValue(coerced.value, OverrideLayer.BINDING)


def _batch_lookup(
    field_path: str,
    object_scope: str | None,
    context: ResolutionContext,
    slot: str,
    layer: OverrideLayer,
) -> ResolvedValue | None:
    if context.batch is None:
        return None
    found, raw = context.batch.lookup(field_path, object_scope, slot)
    if not found:
        return None
    coerced = coerce_field(field_path, raw)
    if not coerced.ok:
        logger.warning(
            "Invalid override value, falling back: object=%s field=%s tier=%s (%s)",
            object_scope,
            field_path,
            layer.value,
            coerced.warning,
        )
        return None
    return ResolvedValue(coerced.value, layer)


def batch_key_layer(
    field_path: str,
    object_scope: str | None,
    context: ResolutionContext,
    notes: list[Diagnostic],
) -> ResolvedValue | None:
    if context.batch_key is None:
        return None
    return _batch_lookup(
        field_path, object_scope, context, context.batch_key, OverrideLayer.BATCH_KEY
    )


def batch_default_layer(
    field_path: str,
    object_scope: str | None,
    context: ResolutionContext,
    notes: list[Diagnostic],
) -> ResolvedValue | None:
    return _batch_lookup(field_path, object_scope, context, DEFAULT_SLOT, OverrideLayer.BATCH_DEFAULT)


def assignment_layer(
    field_path: str,
    object_scope: str | None,
    context: ResolutionContext,
    notes: list[Diagnostic],
) -> ResolvedValue | None:
    src = context.sources.get(field_path)
    if src is None or not src.has_assignment:
        return None
    coerced = coerce_field(field_path, src.assignment)
    if not coerced.ok:
        logger.warning(
            "Invalid assignment ignored: object=%s field=%s (%s)",
            object_scope,
            field_path,
            coerced.warning,
        )
        return None
    return ResolvedValue(coerced.value, OverrideLayer.ASSIGNMENT)


def default_layer(
    field_path: str,
    object_scope: str | None,
    context: ResolutionContext,
    notes: list[Diagnostic],
) -> ResolvedValue | None:
    src = context.sources.get(field_path)
    return ResolvedValue(src.default if src is not None else None, OverrideLayer.DEFAULT)


DEFAULT_LAYERS: tuple[LayerFn, ...] = (
    binding_layer,
    batch_key_layer,
    batch_default_layer,
    assignment_layer,
    default_layer,
)


class PropertyResolver:
    """Applies override layers in order and reports which one won.

    Example:
        >>> ctx = ResolutionContext(sources={"Canvas.opacity": FieldSources(default=1)})
        >>> PropertyResolver().resolve("Canvas.opacity", "circle-1", ctx).layer
        <OverrideLayer.DEFAULT: 'default'>
    """

    def __init__(self, layers: Sequence[LayerFn] = DEFAULT_LAYERS) -> None:
        self._layers = tuple(layers)

    def resolve(
        self,
        field_path: str,
        object_scope: str | None,
        context: ResolutionContext,
    ) -> ResolvedValue:
        """Resolve one field.

        Args:
            field_path: Dotted field path, e.g. ``Canvas.position.x``.
            object_scope: Drawable id, or None for node-level resolution.
            context: Layer inputs.

        Returns:
            Winning value, its layer, and any warnings from skipped layers.
        """
        notes: list[Diagnostic] = []
        for layer in self._layers:
            resolved = layer(field_path, object_scope, context, notes)
            if resolved is not None:
                return ResolvedValue(resolved.value, resolved.layer, tuple(notes))
        return ResolvedValue(None, OverrideLayer.DEFAULT, tuple(notes))

    def resolve_many(
        self,
        field_paths: Iterable[str],
        object_scope: str | None,
        context: ResolutionContext,
    ) -> dict[str, ResolvedValue]:
        return {path: self.resolve(path, object_scope, context) for path in field_paths}


__all__ = [
    "DEFAULT_LAYERS",
    "LayerFn",
    "OverrideLayer",
    "PropertyResolver",
    "ResolutionContext",
    "ResolvedValue",
    "assignment_layer",
    "batch_default_layer",
    "batch_key_layer",
    "binding_layer",
    "default_layer",
]
