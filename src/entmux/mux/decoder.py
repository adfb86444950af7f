"""Recursive decoding of request payloads into registered dataclasses."""

from __future__ import annotations

from dataclasses import fields as dataclass_fields
from typing import TYPE_CHECKING, Any, Mapping, Optional

from entmux.errors import (
    DecodeError,
    FieldWriteError,
    InvalidEmbeddedPayloadError,
    InvalidEntityReferenceError,
    NoCreatableFieldsError,
)
from entmux.logging import get_logger
from entmux.meta.entity import EntityMetadata
from entmux.meta.field import FieldDescriptor, Token
from entmux.meta.kinds import FieldKind, coerce, field_default, is_empty_payload, resolve_kind

if TYPE_CHECKING:
    from entmux.mux.registry import EntityRegistry


logger = get_logger(__name__)


class PayloadDecoder:
    """Decode payload mappings against an EntityRegistry.

    Only CREATE fields are read, each under its request key. Embedded
    entities are decoded recursively and stored by value. Field-level write
    failures leave the field at its zero value and are reported through
    ``field_errors``; structural failures raise a DecodeError whose
    ``partial`` holds the value assembled so far.
    """

    def __init__(self, registry: "EntityRegistry") -> None:
        self.registry = registry

    def decode(
        self,
        entity_id: str,
        payload: Any,
        *,
        field_errors: Optional[list[FieldWriteError]] = None,
    ) -> Any:
        metadata = self.registry.get(entity_id)
        if metadata is None:
            raise InvalidEntityReferenceError(f"Invalid entity reference: {entity_id!r}.")
        values = _zero_values(metadata)

        creatable = metadata.fields_for(Token.CREATE)
        if not creatable:
            raise NoCreatableFieldsError(
                f"Entity '{entity_id}' has no creatable fields.",
                partial=_build(metadata, values),
            )
        if not isinstance(payload, Mapping):
            raise InvalidEmbeddedPayloadError(
                f"Payload for '{entity_id}' must be a mapping, got {type(payload).__name__}.",
                partial=_build(metadata, values),
            )

        for fd in creatable:
            raw = payload.get(fd.request_key)
            if is_empty_payload(raw):
                continue
            if fd.name not in values:
                # Fields excluded from __init__ cannot be populated.
                continue
            try:
                if fd.embedded is not None:
                    values[fd.name] = self._decode_embedded(fd, raw, field_errors)
                else:
                    values[fd.name] = self._write_scalar(fd, raw)
            except DecodeError as exc:
                raise type(exc)(str(exc), partial=_build(metadata, values)) from exc
            except FieldWriteError as exc:
                logger.info(
                    "field_write_skipped",
                    entity_id=entity_id,
                    field=fd.name,
                    error=str(exc),
                )
                if field_errors is not None:
                    field_errors.append(exc)
        return _build(metadata, values)

    def _decode_embedded(
        self,
        fd: FieldDescriptor,
        raw: Any,
        field_errors: Optional[list[FieldWriteError]],
    ) -> Any:
        ref = fd.embedded
        assert ref is not None
        if ref.is_record:
            if not isinstance(raw, Mapping):
                raise InvalidEmbeddedPayloadError(
                    f"Field {fd.name} expects an embedded object, got {type(raw).__name__}."
                )
            return self.decode(ref.entity_id, raw, field_errors=field_errors)

        if not isinstance(raw, (list, tuple)):
            raise InvalidEmbeddedPayloadError(
                f"Field {fd.name} expects a list of embedded objects, got {type(raw).__name__}."
            )
        decoded: list[Any] = []
        for position, item in enumerate(raw):
            if not isinstance(item, Mapping):
                raise InvalidEmbeddedPayloadError(
                    f"Field {fd.name}[{position}] must be an object, got {type(item).__name__}."
                )
            decoded.append(self.decode(ref.entity_id, item, field_errors=field_errors))
        return decoded

    def _write_scalar(self, fd: FieldDescriptor, raw: Any) -> Any:
        value = coerce(fd.kind, fd.type, raw, name=fd.name)
        if fd.kind is FieldKind.STRING and fd.validator is not None:
            fd.validator.validate(value, field=fd.name)
        return value


def _zero_values(metadata: EntityMetadata) -> dict[str, Any]:
    hints = {fd.name: fd.type for fd in metadata.fields}
    values: dict[str, Any] = {}
    for fld in dataclass_fields(metadata.source_type):
        if not fld.init:
            continue
        hint = hints.get(fld.name, Any)
        kind, _ = resolve_kind(hint)
        values[fld.name] = field_default(fld, kind, hint, frozenset({metadata.source_type}))
    return values


def _build(metadata: EntityMetadata, values: Mapping[str, Any]) -> Any:
    return metadata.source_type(**values)

