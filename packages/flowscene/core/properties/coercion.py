"""Value coercion for override layers.

Override values arrive from spreadsheets and editor text boxes, so numbers
may be strings. A value that cannot be coerced to its field's kind is
rejected and resolution falls through to the next layer.
"""

from __future__ import annotations

import math
import sys
from collections.abc import Callable
from typing import Any, NamedTuple

from flowscene.core.properties.field_paths import FieldKind, field_kind
from flowscene.core.tracks.models import Easing


class Coerced(NamedTuple):
    ok: bool
    value: Any = None
    warning: str | None = None


def coerce_number(value: Any) -> Coerced:
    if isinstance(value, bool):
        return Coerced(False, warning="expected number, got boolean")
    if isinstance(value, int):
        if abs(value) <= sys.float_info.max:
            return Coerced(True, value)
        return Coerced(False, warning="number out of range")
    if isinstance(value, float):
        if math.isfinite(value):
            return Coerced(True, value)
        return Coerced(False, warning="expected finite number")
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value)
        except ValueError:
            return Coerced(False, warning="expected number")
        if math.isfinite(parsed):
            return Coerced(True, parsed)
    return Coerced(False, warning="expected number")


def coerce_string(value: Any) -> Coerced:
    if isinstance(value, str):
        return Coerced(True, value)
    return Coerced(False, warning="expected string")


def coerce_easing(value: Any) -> Coerced:
    try:
        return Coerced(True, Easing(value).value)
    except ValueError:
        return Coerced(False, warning=f"expected one of {[e.value for e in Easing]}")


def _passthrough(value: Any) -> Coerced:
    return Coerced(True, value)


COERCERS: dict[FieldKind, Callable[[Any], Coerced]] = {
    FieldKind.NUMBER: coerce_number,
    FieldKind.STRING: coerce_string,
    FieldKind.COLOR: coerce_string,
    FieldKind.EASING: coerce_easing,
    FieldKind.ANY: _passthrough,
}


def coerce_field(field_path: str, value: Any) -> Coerced:
    """Coerce ``value`` to the kind registered for ``field_path``."""
    if value is None:
        return Coerced(False, warning="value is undefined")
    return COERCERS[field_kind(field_path)](value)


__all__ = ["COERCERS", "Coerced", "coerce_easing", "coerce_field", "coerce_number", "coerce_string"]
