"""Annotation tags, field classification and compiled entity metadata."""

from entmux.meta.tags import efield, request_key, storage_key
from entmux.meta.kinds import FieldKind
from entmux.meta.field import (
    ClassifiedType,
    EmbeddingReference,
    FieldClassifier,
    FieldDescriptor,
    Token,
)
from entmux.meta.entity import EntityMetadata, compile_metadata
from entmux.meta.validator import StringValidator, string_validator

__all__ = [
    "efield",
    "request_key",
    "storage_key",
    "FieldKind",
    "ClassifiedType",
    "EmbeddingReference",
    "FieldClassifier",
    "FieldDescriptor",
    "Token",
    "EntityMetadata",
    "compile_metadata",
    "StringValidator",
    "string_validator",
]
