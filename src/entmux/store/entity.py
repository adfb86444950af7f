"""CRUD operations for one registered entity."""

from __future__ import annotations

from typing import Any, Optional

from entmux.config import DEFAULT_CONFIG, MuxConfig
from entmux.errors import (
    AddedIdParseError,
    AxisUndefinedError,
    EntityError,
    IncompatibleEntityTypeError,
)
from entmux.logging import get_logger
from entmux.meta.entity import EntityMetadata
from entmux.query.filter import axis_filter, to_document
from entmux.query.spec import ESpec, merge_documents
from entmux.store.base import Collection, Document


logger = get_logger(__name__)


class Entity:
    """Typed access to an entity's collection.

    Values are located through their axis filter (primary key first, then
    the first non-zero axis field), so edits and deletes never touch more
    than one document.
    """

    def __init__(self, metadata: EntityMetadata, config: MuxConfig | None = None) -> None:
        self.metadata = metadata
        self.config = config or DEFAULT_CONFIG

    @property
    def entity_id(self) -> str:
        return self.metadata.entity_id

    @property
    def collection(self) -> Collection:
        if self.metadata.collection is None:
            raise EntityError(f"Entity '{self.entity_id}' has no collection (storage suppressed).")
        return self.metadata.collection

    def _check(self, value: Any) -> None:
        if type(value) is not self.metadata.source_type:
            raise IncompatibleEntityTypeError(
                f"Incompatible entity type: expected {self.metadata.source_type.__name__}, "
                f"got {type(value).__name__}."
            )

    def _filter(self, value: Any) -> Document:
        self._check(value)
        filt = axis_filter(value, self.config)
        if filt is None:
            raise AxisUndefinedError()
        return filt

    def add(self, value: Any) -> Any:
        """Insert ``value`` and return the generated document identifier."""
        self._check(value)
        result = self.collection.insert_one(to_document(value, self.config))
        if result.inserted_id is None:
            raise AddedIdParseError("Added entity but failed to read the inserted id.")
        logger.debug("entity_added", entity_id=self.entity_id, inserted_id=str(result.inserted_id))
        return result.inserted_id

    def edit(self, value: Any, spec: ESpec | list[ESpec]) -> Optional[Document]:
        """Update the document matching ``value``; returns it as it was before the update."""
        filt = self._filter(value)
        specs = spec if isinstance(spec, list) else [spec]
        return self.collection.find_one_and_update(filt, merge_documents(specs, update=True))

    def exists(self, value: Any) -> tuple[bool, Optional[Document]]:
        filt = self._filter(value)
        found = self.collection.find_one(filt)
        return found is not None, found

    def find(self, spec: ESpec | list[ESpec]) -> Optional[Document]:
        specs = spec if isinstance(spec, list) else [spec]
        return self.collection.find_one(merge_documents(specs))

    def delete(self, value: Any) -> Optional[Document]:
        filt = self._filter(value)
        return self.collection.find_one_and_delete(filt)

    def optimize(self) -> Optional[str]:
        """Create the combined axis index. Returns its name, or None when no field qualifies."""
        keys = self.metadata.index_keys(self.config.index_direction)
        if not keys:
            return None
        return self.collection.create_index(keys, unique=self.config.unique_axis_index)
