"""Field-path catalogue, override tables and the layered property resolver."""

from flowscene.core.properties.coercion import Coerced, coerce_field
from flowscene.core.properties.field_paths import FieldKind, field_kind, timeline_path
from flowscene.core.properties.overrides import (
    ALL_OBJECTS,
    DEFAULT_SLOT,
    BatchOverrideTable,
    FieldSources,
)
from flowscene.core.properties.resolver import (
    DEFAULT_LAYERS,
    OverrideLayer,
    PropertyResolver,
    ResolutionContext,
    ResolvedValue,
)

__all__ = [
    "ALL_OBJECTS",
    "DEFAULT_LAYERS",
    "DEFAULT_SLOT",
    "BatchOverrideTable",
    "Coerced",
    "FieldKind",
    "FieldSources",
    "OverrideLayer",
    "PropertyResolver",
    "ResolutionContext",
    "ResolvedValue",
    "coerce_field",
    "field_kind",
    "timeline_path",
]
