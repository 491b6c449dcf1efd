"""Evaluation of data nodes (constants, operators, results).

Data nodes are evaluated once per compile, in topological order, before any
execution path runs. Result nodes expose the live values that variable
bindings read.
"""

from __future__ import annotations

import logging
import math
import operator
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, cast

from flowscene.core.diagnostics import Diagnostic, DiagnosticCode
from flowscene.core.graph.index import GraphIndex
from flowscene.core.graph.models import Node, NodeType
from flowscene.core.graph.payloads import (
    BooleanOperator,
    BooleanOpPayload,
    CompareOperator,
    ComparePayload,
    ConstantsPayload,
    MathOperator,
    MathOpPayload,
    ValueType,
)
from flowscene.core.graph.ports import PortKind
from flowscene.core.properties.coercion import coerce_number

logger = logging.getLogger(__name__)


class _TypeMismatch(Exception):
    pass


@dataclass
class VariableTable:
    """Evaluated output of every data node.

    Attributes:
        values: Node id -> evaluated value (None when undefined).
        diagnostics: Problems found while evaluating.
    """

    values: dict[str, Any] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def result_values(self, index: GraphIndex) -> dict[str, Any]:
        """Live values of result nodes only."""
        return {
            node_id: value
            for node_id, value in self.values.items()
            if index.node(node_id).node_type == NodeType.RESULT
        }


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _safe_power(a: float, b: float) -> float:
    # Float operands keep huge exponents bounded; overflow raises OverflowError.
    result = float(a) ** float(b)
    if isinstance(result, complex):
        raise ValueError("complex result")
    return result


_MATH: dict[MathOperator, Callable[[float, float], float]] = {
    MathOperator.ADD: operator.add,
    MathOperator.SUBTRACT: operator.sub,
    MathOperator.MULTIPLY: operator.mul,
    MathOperator.DIVIDE: operator.truediv,
    MathOperator.MODULO: operator.mod,
    MathOperator.POWER: _safe_power,
    MathOperator.MIN: min,
    MathOperator.MAX: max,
}

_COMPARE: dict[CompareOperator, Callable[[Any, Any], bool]] = {
    CompareOperator.GT: operator.gt,
    CompareOperator.LT: operator.lt,
    CompareOperator.EQ: operator.eq,
    CompareOperator.NEQ: operator.ne,
    CompareOperator.GTE: operator.ge,
    CompareOperator.LTE: operator.le,
}


def _constant_value(payload: ConstantsPayload) -> Any:
    raw = payload.value
    if payload.value_type == ValueType.NUMBER:
        coerced = coerce_number(raw)
        if not coerced.ok:
            raise _TypeMismatch(f"constant is not a number: {raw!r}")
        return coerced.value
    if payload.value_type == ValueType.BOOLEAN:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str) and raw.strip().lower() in ("true", "false"):
            return raw.strip().lower() == "true"
        raise _TypeMismatch(f"constant is not a boolean: {raw!r}")
    if not isinstance(raw, str):
        raise _TypeMismatch(f"constant is not a {payload.value_type.value}: {raw!r}")
    return raw


class VariableEvaluator:
    """Evaluates every data node of an indexed graph."""

    def __init__(self, index: GraphIndex) -> None:
        self.index = index

    def evaluate(self, order: tuple[str, ...]) -> VariableTable:
        """Evaluate data nodes following ``order`` (a topological order).

        Args:
            order: Node ids with every edge pointing forward.

        Returns:
            Values plus diagnostics. Type errors are error-level; undefined
            arithmetic (division by zero, overflow) is a warning.
        """
        table = VariableTable()
        for node_id in order:
            node = self.index.node(node_id)
            if node.node_type not in _DATA_TYPES:
                continue
            try:
                table.values[node_id] = self._evaluate_node(node, table)
            except _TypeMismatch as e:
                table.values[node_id] = None
                table.diagnostics.append(
                    Diagnostic.error(
                        DiagnosticCode.NODE_VALIDATION_FAILED,
                        f"{node.label}: {e}",
                        node_id=node.id,
                    )
                )
        logger.debug("Evaluated %d data nodes", len(table.values))
        return table

    def _input(self, node: Node, port: str, table: VariableTable) -> Any:
        for edge in self.index.incoming(node.id, PortKind.DATA):
            if edge.target_port == port:
                return table.values.get(edge.source)
        return None

    def _evaluate_node(self, node: Node, table: VariableTable) -> Any:
        payload = self.index.payload(node.id)
        node_type = node.node_type

        if node_type == NodeType.CONSTANTS:
            return _constant_value(cast(ConstantsPayload, payload))

        if node_type == NodeType.RESULT:
            inputs = self.index.incoming(node.id, PortKind.DATA)
            if len(inputs) > 1:
                table.diagnostics.append(
                    Diagnostic.error(
                        DiagnosticCode.MULTIPLE_RESULT_VALUES,
                        f"{node.label} receives {len(inputs)} values; connect exactly one",
                        node_id=node.id,
                        edge_ids=[e.id for e in inputs],
                    )
                )
                return None
            return table.values.get(inputs[0].source) if inputs else None

        a = self._input(node, "input_a", table)
        b = self._input(node, "input_b", table)

        if node_type == NodeType.BOOLEAN_OP:
            return self._boolean(cast(BooleanOpPayload, payload).operator, a, b)
        if node_type == NodeType.COMPARE:
            return self._compare(cast(ComparePayload, payload).operator, a, b)
        return self._math(node, cast(MathOpPayload, payload).operator, a, b, table)

    @staticmethod
    def _boolean(op: BooleanOperator, a: Any, b: Any) -> bool | None:
        if op == BooleanOperator.NOT:
            if a is None:
                return None
            if not isinstance(a, bool):
                raise _TypeMismatch(f"'not' expects a boolean, got {type(a).__name__}")
            return not a
        if a is None or b is None:
            return None
        if not isinstance(a, bool) or not isinstance(b, bool):
            raise _TypeMismatch(f"'{op.value}' expects booleans")
        if op == BooleanOperator.AND:
            return a and b
        if op == BooleanOperator.OR:
            return a or b
        return a != b

    @staticmethod
    def _compare(op: CompareOperator, a: Any, b: Any) -> bool | None:
        if a is None or b is None:
            return None
        if op in (CompareOperator.EQ, CompareOperator.NEQ):
            return _COMPARE[op](a, b)
        comparable = (_is_number(a) and _is_number(b)) or (
            isinstance(a, str) and isinstance(b, str)
        )
        if not comparable:
            raise _TypeMismatch(
                f"cannot compare {type(a).__name__} with {type(b).__name__} using '{op.value}'"
            )
        return _COMPARE[op](a, b)

    @staticmethod
    def _math(node: Node, op: MathOperator, a: Any, b: Any, table: VariableTable) -> float | None:
        if a is None or b is None:
            return None
        if not _is_number(a) or not _is_number(b):
            raise _TypeMismatch(f"'{op.value}' expects numbers")
        try:
            result = _MATH[op](a, b)
            if isinstance(result, int) and abs(result) > sys.float_info.max:
                raise OverflowError("result out of range")
        except (ZeroDivisionError, OverflowError, ValueError) as e:
            table.diagnostics.append(
                Diagnostic.warning(
                    DiagnosticCode.NODE_VALIDATION_FAILED,
                    f"{node.label}: '{op.value}' is undefined for {a!r} and {b!r} ({e})",
                    node_id=node.id,
                )
            )
            return None
        if isinstance(result, float) and not math.isfinite(result):
            return None
        return result


_DATA_TYPES = frozenset(
    {
        NodeType.CONSTANTS,
        NodeType.RESULT,
        NodeType.COMPARE,
        NodeType.MATH_OP,
        NodeType.BOOLEAN_OP,
    }
)


__all__ = ["VariableEvaluator", "VariableTable"]
