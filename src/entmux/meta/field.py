"""Field classification from dataclass annotations."""

from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass, replace
from enum import Enum
from typing import Any, Optional, get_type_hints

from entmux.config import DEFAULT_CONFIG, MuxConfig
from entmux.errors import NonRecordDefinitionError
from entmux.meta import tags
from entmux.meta.kinds import FieldKind, resolve_kind
from entmux.meta.validator import StringValidator, string_validator


class Token(str, Enum):
    """Operational role attached to a field."""

    IDENTITY = "identity"
    AXIS = "axis"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    INDEX = "index"


@dataclass(frozen=True)
class EmbeddingReference:
    """Link from a field to the registered entity its values decode into."""

    entity_id: str
    is_collection: bool = False
    is_record: bool = False

    def __post_init__(self) -> None:
        if self.is_collection == self.is_record:
            raise ValueError("EmbeddingReference must be exactly one of collection or record.")


@dataclass(frozen=True)
class FieldDescriptor:
    """Compiled view of one dataclass field."""

    name: str
    type: Any
    kind: FieldKind
    request_key: str
    storage_key: str
    tokens: frozenset[Token]
    target_type: Optional[type] = None
    embedded: Optional[EmbeddingReference] = None
    validator: Optional[StringValidator] = None

    def has(self, token: Token) -> bool:
        return token in self.tokens


@dataclass(frozen=True)
class ClassifiedType:
    """Classifier output for one record type."""

    source_type: type
    fields: tuple[FieldDescriptor, ...]
    entity_id: str = ""
    suppressed: bool = False


class FieldClassifier:
    """Turn a dataclass's field annotations into FieldDescriptors."""

    def __init__(self, config: MuxConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG
        tokens = self.config.tokens
        self._handle_tokens = (
            (Token.CREATE, tokens.create),
            (Token.EDIT, tokens.edit),
            (Token.DELETE, tokens.delete),
        )

    def classify(self, definition: Any) -> ClassifiedType:
        source_type = definition if isinstance(definition, type) else type(definition)
        if not is_dataclass(source_type):
            raise NonRecordDefinitionError(
                f"Entity definition must be a dataclass, got {source_type.__name__}."
            )
        hints = get_type_hints(source_type)

        descriptors: list[FieldDescriptor] = []
        identity: str = ""
        identity_index: Optional[int] = None
        for position, fld in enumerate(fields(source_type)):
            id_tag = tags.tag(fld, tags.ID_TAG)
            if tags.defined(id_tag):
                # Last identity-tagged field in declaration order wins.
                identity = id_tag
                identity_index = position
            descriptors.append(self._describe(fld, hints.get(fld.name, Any)))

        suppressed = False
        if identity_index is not None:
            prefix = self.config.suppress_prefix
            if identity.startswith(prefix):
                identity = identity[len(prefix):]
                suppressed = True
            if identity:
                winner = descriptors[identity_index]
                descriptors[identity_index] = _with_token(winner, Token.IDENTITY)
        return ClassifiedType(
            source_type=source_type,
            fields=tuple(descriptors),
            entity_id=identity,
            suppressed=suppressed,
        )

    def _describe(self, fld: Any, hint: Any) -> FieldDescriptor:
        kind, target_type = resolve_kind(hint)
        found: set[Token] = set()

        handle = tags.tag(fld, tags.HANDLE_TAG)
        for token, char in self._handle_tokens:
            if char in handle:
                found.add(token)

        axis = self.config.is_affirmative(tags.tag(fld, tags.AXIS_TAG))
        if axis:
            found.add(Token.AXIS)
            if self.config.is_affirmative(tags.tag(fld, tags.INDEX_TAG)):
                found.add(Token.INDEX)

        validator = None
        validate_tag = tags.tag(fld, tags.VALIDATE_TAG)
        if validate_tag:
            validator = string_validator(validate_tag)

        return FieldDescriptor(
            name=fld.name,
            type=hint,
            kind=kind,
            request_key=tags.request_key(fld),
            storage_key=tags.storage_key(fld),
            tokens=frozenset(found),
            target_type=target_type,
            validator=validator,
        )


def _with_token(descriptor: FieldDescriptor, token: Token) -> FieldDescriptor:
    return replace(descriptor, tokens=descriptor.tokens | {token})
