"""Compiled entity metadata."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

from entmux.meta.field import ClassifiedType, FieldDescriptor, Token


@dataclass(frozen=True)
class EntityMetadata:
    """Entity identifier, source type and classified fields of one entity.

    ``collection`` is the store handle; it is None for storage-suppressed
    entities, which are still registered for decoding and embedding.
    """

    entity_id: str
    source_type: type
    fields: tuple[FieldDescriptor, ...]
    collection: Optional[Any] = None
    suppressed: bool = False

    def fields_for(self, token: Token) -> list[FieldDescriptor]:
        """Fields carrying ``token``, in declaration order."""
        return [fd for fd in self.fields if fd.has(token)]

    @property
    def classifications(self) -> dict[Token, list[FieldDescriptor]]:
        return {token: self.fields_for(token) for token in Token}

    @property
    def identity_field(self) -> Optional[FieldDescriptor]:
        found = self.fields_for(Token.IDENTITY)
        return found[0] if found else None

    def field(self, name: str) -> FieldDescriptor:
        for fd in self.fields:
            if fd.name == name:
                return fd
        raise KeyError(name)

    def index_keys(self, direction: int = 1) -> list[tuple[str, int]]:
        """Keys of the combined index over AXIS+INDEX fields."""
        return [
            (fd.storage_key, direction)
            for fd in self.fields
            if fd.has(Token.AXIS) and fd.has(Token.INDEX)
        ]

    def with_fields(self, fields: tuple[FieldDescriptor, ...]) -> "EntityMetadata":
        return replace(self, fields=fields)

    def to_dict(self) -> dict[str, object]:
        return {
            "entity_id": self.entity_id,
            "source_type": self.source_type.__name__,
            "suppressed": self.suppressed,
            "fields": [
                {
                    "name": fd.name,
                    "kind": fd.kind.value,
                    "request_key": fd.request_key,
                    "storage_key": fd.storage_key,
                    "tokens": sorted(token.value for token in fd.tokens),
                    "embedded": fd.embedded.entity_id if fd.embedded else None,
                }
                for fd in self.fields
            ],
        }


def compile_metadata(classified: ClassifiedType, collection: Optional[Any] = None) -> EntityMetadata:
    return EntityMetadata(
        entity_id=classified.entity_id,
        source_type=classified.source_type,
        fields=classified.fields,
        collection=collection,
        suppressed=classified.suppressed,
    )
