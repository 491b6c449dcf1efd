"""Typed payload models, one per node type.

Payloads ignore unknown fields so newer editors can add data without breaking
older compilers. A payload with the wrong shape for a known node type is a
``PayloadError``. Well-typed numbers outside their usable range are not
rejected here; ``range_violations`` describes them so validation can report
them as diagnostics.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, NamedTuple

from pydantic import Field, ValidationError

from flowscene.core.diagnostics.errors import PayloadError
from flowscene.core.graph.models import Node, NodeType
from flowscene.core.tracks.models import TrackDefinition
from flowscene.core.utils.models import WireModel


class Point(WireModel):
    x: float = 0.0
    y: float = 0.0


class BindingRef(WireModel):
    """Pointer from a field to an upstream result node."""

    bound_result_node_id: str | None = Field(default=None)


class PropertyPayload(WireModel):
    """Fields shared by nodes whose values can be bound or assigned per object.

    Keys are full field paths (``Canvas.position.x``, ``Timeline.move.duration``).

    Attributes:
        variable_bindings: Node-level bindings, applied to every object.
        variable_bindings_by_object: Object-scoped bindings, checked first.
        per_object_assignments: Manual editor assignments keyed by object id.
    """

    variable_bindings: dict[str, BindingRef] = Field(default_factory=dict)
    variable_bindings_by_object: dict[str, dict[str, BindingRef]] = Field(default_factory=dict)
    per_object_assignments: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def binding_for(self, field_path: str, object_id: str | None) -> str | None:
        """Result node bound to ``field_path`` for ``object_id`` (object scope first)."""
        if object_id is not None:
            ref = self.variable_bindings_by_object.get(object_id, {}).get(field_path)
            if ref is not None and ref.bound_result_node_id:
                return ref.bound_result_node_id
        ref = self.variable_bindings.get(field_path)
        if ref is not None and ref.bound_result_node_id:
            return ref.bound_result_node_id
        return None

    def assignment_for(self, field_path: str, object_id: str) -> tuple[bool, Any]:
        """Return ``(found, value)`` for a manual assignment."""
        assigned = self.per_object_assignments.get(object_id, {})
        if field_path in assigned:
            return True, assigned[field_path]
        return False, None

    def touched_paths(self, object_id: str) -> set[str]:
        """Field paths this node binds or assigns for ``object_id``."""
        paths = set(self.variable_bindings)
        paths.update(self.variable_bindings_by_object.get(object_id, {}))
        paths.update(self.per_object_assignments.get(object_id, {}))
        return paths


# ============================================================================
# Geometry
# ============================================================================


class GeometryPayload(WireModel):
    position: Point = Field(default_factory=lambda: Point(x=960, y=540))
    color: str = "#ffffff"
    stroke_color: str | None = None
    stroke_width: float | None = None


class TrianglePayload(GeometryPayload):
    size: float = 80
    color: str = "#ff4444"


class CirclePayload(GeometryPayload):
    radius: float = 50
    color: str = "#4444ff"


class RectanglePayload(GeometryPayload):
    width: float = 100
    height: float = 60
    color: str = "#44ff44"


class TextPayload(GeometryPayload):
    content: str = "Text"
    font_size: float = 24


# ============================================================================
# Flow control
# ============================================================================


class InsertPayload(WireModel):
    appearance_time: float = 0.0


class FilterPayload(WireModel):
    selected_object_ids: list[str] = Field(default_factory=list)


MAX_MERGE_PORTS = 64


class MergePayload(WireModel):
    input_port_count: int = 2


class DuplicatePayload(WireModel):
    count: int = 1


# ============================================================================
# Property nodes
# ============================================================================


class CanvasPayload(PropertyPayload):
    position: Point | None = None
    rotation: float | None = None
    scale: Point | None = None
    opacity: float | None = None
    fill_color: str | None = None
    stroke_color: str | None = None
    stroke_width: float | None = None


class AnimationPayload(PropertyPayload):
    duration: float | None = None
    tracks: list[TrackDefinition] = Field(default_factory=list)

    @property
    def total_duration(self) -> float:
        """Configured duration, or the latest track end when unset."""
        if self.duration is not None:
            return self.duration
        return max((t.end_offset for t in self.tracks), default=0.0)


class TextStylePayload(PropertyPayload):
    font_family: str | None = None
    font_weight: str | None = None
    font_style: str | None = None
    fill_color: str | None = None
    stroke_color: str | None = None
    stroke_width: float | None = None


# ============================================================================
# Data nodes
# ============================================================================


class ValueType(str, Enum):
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    COLOR = "color"


class CompareOperator(str, Enum):
    GT = "gt"
    LT = "lt"
    EQ = "eq"
    NEQ = "neq"
    GTE = "gte"
    LTE = "lte"


class MathOperator(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    MODULO = "modulo"
    POWER = "power"
    MIN = "min"
    MAX = "max"


class BooleanOperator(str, Enum):
    AND = "and"
    OR = "or"
    NOT = "not"
    XOR = "xor"


class ConstantsPayload(WireModel):
    value_type: ValueType = ValueType.NUMBER
    value: Any = 0


class ResultPayload(WireModel):
    pass


class ComparePayload(WireModel):
    operator: CompareOperator = CompareOperator.GT


class MathOpPayload(WireModel):
    operator: MathOperator = MathOperator.ADD


class BooleanOpPayload(WireModel):
    operator: BooleanOperator = BooleanOperator.AND


# ============================================================================
# Terminals
# ============================================================================


class ScenePayload(WireModel):
    width: int = 1920
    height: int = 1080
    fps: int = 60
    duration: float = 4.0
    background_color: str = "#1a1a2e"
    video_preset: str = "medium"
    video_crf: int = 18
    require_full_coverage: bool = False


class FramePayload(WireModel):
    width: int = 1920
    height: int = 1080
    background_color: str = "#1a1a2e"
    image_format: str = "png"
    quality: int = 90


PAYLOAD_MODELS: dict[NodeType, type[WireModel]] = {
    NodeType.TRIANGLE: TrianglePayload,
    NodeType.CIRCLE: CirclePayload,
    NodeType.RECTANGLE: RectanglePayload,
    NodeType.TEXT: TextPayload,
    NodeType.INSERT: InsertPayload,
    NodeType.FILTER: FilterPayload,
    NodeType.MERGE: MergePayload,
    NodeType.DUPLICATE: DuplicatePayload,
    NodeType.CANVAS: CanvasPayload,
    NodeType.ANIMATION: AnimationPayload,
    NodeType.TEXTSTYLE: TextStylePayload,
    NodeType.CONSTANTS: ConstantsPayload,
    NodeType.RESULT: ResultPayload,
    NodeType.COMPARE: ComparePayload,
    NodeType.MATH_OP: MathOpPayload,
    NodeType.BOOLEAN_OP: BooleanOpPayload,
    NodeType.SCENE: ScenePayload,
    NodeType.FRAME: FramePayload,
}


# ============================================================================
# Value ranges
# ============================================================================


class ValueRange(NamedTuple):
    """Allowed interval for one numeric payload field."""

    minimum: float
    maximum: float | None = None
    exclusive_minimum: bool = False

    def contains(self, value: float) -> bool:
        if isinstance(value, float) and not math.isfinite(value):
            return False
        if value < self.minimum:
            return False
        if self.exclusive_minimum and value == self.minimum:
            return False
        return self.maximum is None or value <= self.maximum

    def describe(self) -> str:
        low = f"> {self.minimum:g}" if self.exclusive_minimum else f">= {self.minimum:g}"
        return low if self.maximum is None else f"{low} and <= {self.maximum:g}"


_POSITIVE = ValueRange(0, exclusive_minimum=True)
_NON_NEGATIVE = ValueRange(0)

FIELD_RANGES: dict[type[WireModel], dict[str, ValueRange]] = {
    TrianglePayload: {"size": _POSITIVE},
    CirclePayload: {"radius": _POSITIVE},
    RectanglePayload: {"width": _POSITIVE, "height": _POSITIVE},
    TextPayload: {"font_size": _POSITIVE},
    InsertPayload: {"appearance_time": _NON_NEGATIVE},
    MergePayload: {"input_port_count": ValueRange(1, MAX_MERGE_PORTS)},
    AnimationPayload: {"duration": _NON_NEGATIVE},
    ScenePayload: {
        "width": _POSITIVE,
        "height": _POSITIVE,
        "fps": _POSITIVE,
        "duration": _NON_NEGATIVE,
        "video_crf": ValueRange(0, 51),
    },
    FramePayload: {"width": _POSITIVE, "height": _POSITIVE, "quality": ValueRange(1, 100)},
}


def range_violations(payload: WireModel) -> list[str]:
    """Describe every numeric field of ``payload`` outside its allowed range.

    Unset optional fields are skipped. Track durations on animation payloads
    are checked as well.
    """
    problems = []
    for name, allowed in FIELD_RANGES.get(type(payload), {}).items():
        value = getattr(payload, name)
        if value is not None and not allowed.contains(value):
            problems.append(f"{name} is {value}; expected {allowed.describe()}")
    if isinstance(payload, AnimationPayload):
        for track in payload.tracks:
            if not _NON_NEGATIVE.contains(track.duration):
                problems.append(
                    f"track '{track.id}' duration is {track.duration}; "
                    f"expected {_NON_NEGATIVE.describe()}"
                )
    return problems


def payload_for(node: Node) -> WireModel | None:
    """Validate a node's data against its type's payload model.

    Args:
        node: Node to validate.

    Returns:
        Payload instance, or None when the node type is unknown.

    Raises:
        PayloadError: If the data does not fit the known type's payload.
    """
    node_type = node.node_type
    if node_type is None:
        return None
    model = PAYLOAD_MODELS[node_type]
    try:
        return model.model_validate(node.data)
    except ValidationError as e:
        raise PayloadError(node_id=node.id, node_type=node_type.value, reason=str(e)) from e


__all__ = [
    "FIELD_RANGES",
    "MAX_MERGE_PORTS",
    "PAYLOAD_MODELS",
    "AnimationPayload",
    "BindingRef",
    "BooleanOpPayload",
    "BooleanOperator",
    "CanvasPayload",
    "CirclePayload",
    "CompareOperator",
    "ComparePayload",
    "ConstantsPayload",
    "DuplicatePayload",
    "FilterPayload",
    "FramePayload",
    "GeometryPayload",
    "InsertPayload",
    "MathOpPayload",
    "MathOperator",
    "MergePayload",
    "Point",
    "PropertyPayload",
    "RectanglePayload",
    "ResultPayload",
    "ScenePayload",
    "TextPayload",
    "TextStylePayload",
    "TrianglePayload",
    "ValueRange",
    "ValueType",
    "payload_for",
    "range_violations",
]
