"""Pydantic models describing the creation payload of registered entities."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, create_model

from entmux.meta.field import FieldDescriptor, Token
from entmux.meta.kinds import FieldKind
from entmux.mux.registry import EntityRegistry


_SCALAR_TYPES: dict[FieldKind, Any] = {
    FieldKind.STRING: str,
    FieldKind.INT: int,
    FieldKind.FLOAT: float,
    FieldKind.BOOL: bool,
    FieldKind.COLLECTION: list[Any],
    FieldKind.RECORD: dict[str, Any],
    FieldKind.OPAQUE: Any,
}


def _model_name(entity_id: str) -> str:
    parts = [part for part in entity_id.replace("-", "_").split("_") if part]
    return "".join(part[:1].upper() + part[1:] for part in parts) + "Payload"


def _attribute_name(fd: FieldDescriptor) -> str:
    if fd.name.startswith("_"):
        return f"field{fd.name}"
    return fd.name


class _Builder:
    def __init__(self, registry: EntityRegistry) -> None:
        self.registry = registry
        self.models: dict[str, type[BaseModel]] = {}
        self.building: set[str] = set()

    def annotation(self, fd: FieldDescriptor) -> Any:
        ref = fd.embedded
        if ref is None or ref.entity_id in self.building:
            return _SCALAR_TYPES[fd.kind]
        nested = self.model(ref.entity_id)
        if ref.is_collection:
            return list[nested]  # type: ignore[valid-type]
        return nested

    def model(self, entity_id: str) -> type[BaseModel]:
        if entity_id in self.models:
            return self.models[entity_id]
        metadata = self.registry.metadata(entity_id)
        self.building.add(entity_id)
        try:
            definitions: dict[str, Any] = {}
            for fd in metadata.fields_for(Token.CREATE):
                description = fd.validator.source if fd.validator is not None else None
                definitions[_attribute_name(fd)] = (
                    Optional[self.annotation(fd)],
                    Field(default=None, alias=fd.request_key, description=description or None),
                )
            model = create_model(
                _model_name(entity_id),
                __config__=ConfigDict(populate_by_name=True, extra="ignore"),
                **definitions,
            )
        finally:
            self.building.discard(entity_id)
        self.models[entity_id] = model
        return model


def build_payload_model(registry: EntityRegistry, entity_id: str) -> type[BaseModel]:
    """Build a pydantic model for the CREATE fields of ``entity_id``.

    Fields are keyed by request key and all optional, matching the decoder,
    which skips absent and empty values. Embedded entities become nested
    models (or lists of them); a self-referencing embedding falls back to a
    plain mapping.
    """

    return _Builder(registry).model(entity_id)


def build_payload_schema(registry: EntityRegistry, entity_id: str) -> dict[str, Any]:
    return build_payload_model(registry, entity_id).model_json_schema(by_alias=True)
