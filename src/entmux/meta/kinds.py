"""Closed set of field kinds and the per-kind write rules."""

from __future__ import annotations

from dataclasses import MISSING, Field, fields, is_dataclass
from enum import Enum
import types
from typing import Any, Optional, Union, get_args, get_origin, get_type_hints

from entmux.errors import InvalidDataTypeError


class FieldKind(str, Enum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    RECORD = "record"
    COLLECTION = "collection"
    OPAQUE = "opaque"


_SCALAR_KINDS: dict[type, FieldKind] = {
    str: FieldKind.STRING,
    bool: FieldKind.BOOL,
    int: FieldKind.INT,
    float: FieldKind.FLOAT,
}

_COLLECTION_ORIGINS = (list, tuple, set, frozenset)


def _unwrap_optional(hint: Any) -> Any:
    origin = get_origin(hint)
    if origin is Union or (hasattr(types, "UnionType") and origin is types.UnionType):
        args = [arg for arg in get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def resolve_kind(hint: Any) -> tuple[FieldKind, Optional[type]]:
    """Classify a type hint.

    Returns the kind and its target type: the record class for RECORD, the
    element type for COLLECTION, otherwise None.
    """

    hint = _unwrap_optional(hint)
    if isinstance(hint, type) and hint in _SCALAR_KINDS:
        return _SCALAR_KINDS[hint], None
    origin = get_origin(hint)
    if origin in _COLLECTION_ORIGINS:
        args = [arg for arg in get_args(hint) if arg is not Ellipsis]
        element = _unwrap_optional(args[0]) if args else None
        return FieldKind.COLLECTION, element if isinstance(element, type) else None
    if hint in _COLLECTION_ORIGINS:
        return FieldKind.COLLECTION, None
    if isinstance(hint, type) and is_dataclass(hint):
        return FieldKind.RECORD, hint
    return FieldKind.OPAQUE, None


def zero_value(kind: FieldKind, hint: Any, building: frozenset = frozenset()) -> Any:
    """Zero value for a field of the given kind.

    An optional record, or a record type already in ``building``, is None.
    """

    if kind is FieldKind.STRING:
        return ""
    if kind is FieldKind.INT:
        return 0
    if kind is FieldKind.FLOAT:
        return 0.0
    if kind is FieldKind.BOOL:
        return False
    if kind is FieldKind.COLLECTION:
        return []
    if kind is FieldKind.RECORD:
        target = _unwrap_optional(hint)
        if target is not hint or target in building:
            return None
        return zero_record(target, building)
    return None


def field_default(fld: Field, kind: FieldKind, hint: Any, building: frozenset = frozenset()) -> Any:
    if fld.default is not MISSING:
        return fld.default
    if fld.default_factory is not MISSING:
        return fld.default_factory()
    return zero_value(kind, hint, building)


def zero_record(cls: type, building: frozenset = frozenset()) -> Any:
    """Instantiate ``cls`` with every init field at its default or zero value."""

    building = building | {cls}
    hints = get_type_hints(cls)
    values: dict[str, Any] = {}
    for fld in fields(cls):
        if not fld.init:
            continue
        hint = hints.get(fld.name, Any)
        kind, _ = resolve_kind(hint)
        values[fld.name] = field_default(fld, kind, hint, building)
    return cls(**values)


def is_zero(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return value is False
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    if is_dataclass(value) and not isinstance(value, type):
        return all(is_zero(getattr(value, fld.name)) for fld in fields(value))
    return False


def is_empty_payload(value: Any) -> bool:
    """Payload values treated as absent by the decoder."""

    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


def _accepts_opaque(hint: Any, value: Any) -> bool:
    target = _unwrap_optional(hint)
    if target is Any or target is object:
        return True
    target = get_origin(target) or target
    if not isinstance(target, type):
        return True
    return isinstance(value, target)


def coerce(kind: FieldKind, hint: Any, value: Any, *, name: str) -> Any:
    """Return ``value`` converted for a field of ``kind``.

    Raises InvalidDataTypeError when the value does not fit.
    """

    if kind is FieldKind.STRING:
        if isinstance(value, str):
            return value
    elif kind is FieldKind.INT:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
    elif kind is FieldKind.FLOAT:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif kind is FieldKind.BOOL:
        if isinstance(value, bool):
            return value
    elif kind is FieldKind.COLLECTION:
        if isinstance(value, (list, tuple)):
            return list(value)
    elif kind is FieldKind.RECORD:
        target = _unwrap_optional(hint)
        if isinstance(value, target):
            return value
    elif _accepts_opaque(hint, value):
        return value
    raise InvalidDataTypeError(
        f"Invalid data type for field {name}: expected {kind.value}, got {type(value).__name__}.",
        field=name,
    )
