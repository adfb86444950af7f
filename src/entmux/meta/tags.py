"""Field annotation tags and name resolution.

Annotations live in ``dataclasses.field(metadata=...)``. ``efield`` builds
that metadata from keyword arguments::

    @dataclass
    class User:
        id: str = efield(bson="_id", json="-")
        name: str = efield(id="user", json="name", handle="c")
        email: str = efield(json="email", axis="true", index="true", handle="c")
"""

from __future__ import annotations

from dataclasses import MISSING, Field, field
from typing import Any, Callable, Mapping, Optional


JSON_TAG = "json"
BSON_TAG = "bson"
ID_TAG = "id"
AXIS_TAG = "axis"
INDEX_TAG = "index"
HANDLE_TAG = "handle"
VALIDATE_TAG = "validate"

ABSENT_VALUE = "-"

# Request keys prefer the external (JSON) name; document keys prefer the
# storage (BSON) name.
PRIORITY_JSON_BSON: tuple[str, ...] = (JSON_TAG, BSON_TAG)
PRIORITY_BSON_JSON: tuple[str, ...] = (BSON_TAG, JSON_TAG)


def _tag_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def efield(
    *,
    id: Optional[str] = None,
    json: Optional[str] = None,
    bson: Optional[str] = None,
    axis: str | bool | None = None,
    index: str | bool | None = None,
    handle: Optional[str] = None,
    validate: Optional[str] = None,
    default: Any = MISSING,
    default_factory: Callable[[], Any] | Any = MISSING,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Any:
    """Return a dataclass field carrying entmux annotation metadata."""

    tags: dict[str, Any] = dict(metadata or {})
    for key, value in (
        (ID_TAG, id),
        (JSON_TAG, json),
        (BSON_TAG, bson),
        (AXIS_TAG, axis),
        (INDEX_TAG, index),
        (HANDLE_TAG, handle),
        (VALIDATE_TAG, validate),
    ):
        if value is not None:
            tags[key] = _tag_text(value)
    if default is not MISSING:
        return field(default=default, metadata=tags)
    if default_factory is not MISSING:
        return field(default_factory=default_factory, metadata=tags)
    return field(metadata=tags)


def tag(fld: Field, key: str) -> str:
    """Return the string value of a tag, or ``""`` when it is not set."""

    return _tag_text(fld.metadata.get(key))


def defined(value: str) -> bool:
    return bool(value) and value != ABSENT_VALUE


def name_by_priority(fld: Field, priority: tuple[str, ...]) -> str:
    """Return the first defined tag in ``priority``, else the field name.

    Always returns a non-empty name.
    """

    for key in priority:
        value = tag(fld, key)
        if defined(value):
            return value
    return fld.name


def request_key(fld: Field) -> str:
    return name_by_priority(fld, PRIORITY_JSON_BSON)


def storage_key(fld: Field) -> str:
    return name_by_priority(fld, PRIORITY_BSON_JSON)
