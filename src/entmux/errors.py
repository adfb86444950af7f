"""Custom exceptions for entity registration, decoding and persistence."""

from __future__ import annotations

from typing import Any


class EntMuxError(Exception):
    """Base exception for entmux failures."""


class ConfigurationError(EntMuxError):
    """Raised when entity definitions cannot be compiled or registered."""


class StoreUninitializedError(ConfigurationError):
    """Raised when registration is attempted without a store."""

    def __init__(self) -> None:
        super().__init__("Store uninitialized; cannot register entities.")


class MissingIdentityError(ConfigurationError):
    """Raised when a definition carries no identity annotation."""

    def __init__(self, tag: str, type_name: str) -> None:
        super().__init__(f"Missing identity annotation: no '{tag}' tag on '{type_name}'.")
        self.type_name = type_name


class DuplicateIdentifierError(ConfigurationError):
    """Raised when two definitions resolve to the same entity identifier."""

    def __init__(self, entity_id: str, type_name: str) -> None:
        super().__init__(f"Duplicate identifier '{entity_id}' on '{type_name}'.")
        self.entity_id = entity_id
        self.type_name = type_name


class UnknownPresetError(ConfigurationError):
    """Raised when a validation tag names an undefined preset."""


class NonRecordDefinitionError(ConfigurationError):
    """Raised when a definition is not a dataclass type."""


class DecodeError(EntMuxError):
    """Structural failure while decoding a request payload.

    ``partial`` holds whatever value had been assembled when decoding stopped.
    """

    def __init__(self, message: str, *, partial: Any = None) -> None:
        super().__init__(message)
        self.partial = partial


class InvalidEntityReferenceError(DecodeError):
    """Raised when decoding targets an unregistered entity identifier."""


class InvalidEmbeddedPayloadError(DecodeError):
    """Raised when an embedded payload is not a mapping (or list of mappings)."""


class NoCreatableFieldsError(DecodeError):
    """Raised when an entity declares no CREATE-classified fields."""


class FieldWriteError(EntMuxError):
    """Field-level write failure; recovered locally by the decoder."""

    def __init__(self, message: str, *, field: str) -> None:
        super().__init__(message)
        self.field = field


class InvalidDataTypeError(FieldWriteError):
    """Raised when a payload value does not fit the field kind."""


class FieldValidationError(FieldWriteError):
    """Raised when a string value is rejected by the field validator."""


class EntityError(EntMuxError):
    """Raised when an entity operation cannot be carried out."""


class IncompatibleEntityTypeError(EntityError):
    """Raised when a value does not match the entity's source type."""


class AxisUndefinedError(EntityError):
    """Raised when no axis filter can be built for a value."""

    def __init__(self) -> None:
        super().__init__("Entity axis undefined; no filter can be constructed.")


class AddedIdParseError(EntityError):
    """Raised when an insert succeeded but returned no usable identifier."""


class StoreError(EntMuxError):
    """Raised when store configuration or query evaluation fails."""


class ContextError(EntMuxError):
    """Raised when a request context cannot be used."""


class MuxContextNotFoundError(ContextError):
    """Raised when a request carries no MuxContext."""


class MuxContextCorruptError(ContextError):
    """Raised when the request's context slot holds something other than a MuxContext."""


class BadRequestError(EntMuxError):
    """Raised when an inbound payload is malformed at the transport boundary."""
