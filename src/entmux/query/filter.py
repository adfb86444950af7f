"""Axis filters and document encoding for entity values."""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any, Optional

from entmux.config import DEFAULT_CONFIG, MuxConfig
from entmux.meta import tags
from entmux.meta.kinds import is_zero


def _require_record(value: Any) -> None:
    if not is_dataclass(value) or isinstance(value, type):
        raise TypeError(f"Expected a dataclass instance, got {type(value).__name__}.")


def axis_filter(value: Any, config: MuxConfig | None = None) -> Optional[dict[str, Any]]:
    """Build a filter that singles out ``value`` in its collection.

    Fields are scanned in declaration order. A non-zero primary-key field
    short-circuits with ``{"_id": value}``; otherwise the first affirmative
    axis field with a non-zero value is used, keyed by its storage name.
    Returns None when neither exists; callers must not treat that as "match
    everything".
    """

    _require_record(value)
    cfg = config or DEFAULT_CONFIG
    for fld in fields(value):
        current = getattr(value, fld.name)
        if is_zero(current):
            continue
        if tags.tag(fld, tags.BSON_TAG) == cfg.primary_key:
            return {cfg.primary_key: current}
        if cfg.is_affirmative(tags.tag(fld, tags.AXIS_TAG)):
            return {tags.storage_key(fld): current}
    return None


def _encode(value: Any, config: MuxConfig) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return to_document(value, config)
    if isinstance(value, (list, tuple)):
        return [_encode(item, config) for item in value]
    return value


def to_document(value: Any, config: MuxConfig | None = None) -> dict[str, Any]:
    """Encode a dataclass instance as a store document.

    Keys are storage names (bson, then json, then field name). A zero-valued
    primary-key field is left out so the store can assign one.
    """

    _require_record(value)
    cfg = config or DEFAULT_CONFIG
    document: dict[str, Any] = {}
    for fld in fields(value):
        key = tags.storage_key(fld)
        current = getattr(value, fld.name)
        if key == cfg.primary_key and is_zero(current):
            continue
        document[key] = _encode(current, cfg)
    return document
