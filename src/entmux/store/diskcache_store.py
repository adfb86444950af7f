"""Embedded document store backed by diskcache."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional
import copy
import uuid

from diskcache import Index

from entmux.config import store_dir
from entmux.errors import StoreError
from entmux.logging import get_logger
from entmux.store.base import Collection, Document, InsertOneResult, Store
from entmux.store.match import apply_update, matches


logger = get_logger(__name__)

_ID_KEY = "_id"


def _index_name(keys: list[tuple[str, int]]) -> str:
    return "_".join(f"{name}_{direction}" for name, direction in keys)


class DiskCacheCollection(Collection):
    """A collection of documents kept in a diskcache Index, in insertion order."""

    def __init__(self, name: str, directory: Path) -> None:
        self.name = name
        self.directory = directory
        self._documents = Index(str(directory / "documents"))
        self._indexes = Index(str(directory / "indexes"))

    def _unique_conflict(self, document: Document, *, skip_id: Any = None) -> Optional[str]:
        for index_name, spec in self._indexes.items():
            if not spec.get("unique"):
                continue
            fields = [name for name, _ in spec["keys"]]
            if any(name not in document for name in fields):
                continue
            probe = {name: document[name] for name in fields}
            for doc_id, existing in self._documents.items():
                if doc_id == skip_id:
                    continue
                if all(existing.get(name) == value for name, value in probe.items()):
                    return index_name
        return None

    def insert_one(self, document: Document) -> InsertOneResult:
        stored = copy.deepcopy(document)
        doc_id = stored.get(_ID_KEY) or uuid.uuid4().hex
        stored[_ID_KEY] = doc_id
        with self._documents.transact():
            if doc_id in self._documents:
                raise StoreError(f"Duplicate key {_ID_KEY}={doc_id!r} in {self.name}.")
            conflict = self._unique_conflict(stored)
            if conflict is not None:
                raise StoreError(f"Duplicate key for index {conflict} in {self.name}.")
            self._documents[doc_id] = stored
        return InsertOneResult(inserted_id=doc_id)

    def _first(self, filter: Document) -> Optional[tuple[Any, Document]]:
        for doc_id, document in self._documents.items():
            if matches(document, filter):
                return doc_id, document
        return None

    def find_one(self, filter: Document) -> Optional[Document]:
        found = self._first(filter)
        return copy.deepcopy(found[1]) if found else None

    def find_one_and_update(self, filter: Document, update: Document) -> Optional[Document]:
        """Apply ``update`` to the first match; returns the document before the update."""
        with self._documents.transact():
            found = self._first(filter)
            if found is None:
                return None
            doc_id, document = found
            updated = apply_update(document, update)
            if updated.get(_ID_KEY) != doc_id:
                raise StoreError(f"Updates may not change {_ID_KEY}.")
            conflict = self._unique_conflict(updated, skip_id=doc_id)
            if conflict is not None:
                raise StoreError(f"Duplicate key for index {conflict} in {self.name}.")
            self._documents[doc_id] = updated
        return document

    def find_one_and_delete(self, filter: Document) -> Optional[Document]:
        with self._documents.transact():
            found = self._first(filter)
            if found is None:
                return None
            doc_id, document = found
            del self._documents[doc_id]
        return document

    def create_index(self, keys: list[tuple[str, int]], *, unique: bool = False) -> str:
        if not keys:
            raise StoreError("Index requires at least one key.")
        name = _index_name(keys)
        self._indexes[name] = {"keys": [list(item) for item in keys], "unique": unique}
        logger.debug("index_created", collection=self.name, index=name, unique=unique)
        return name

    def index_information(self) -> dict[str, dict[str, Any]]:
        return dict(self._indexes.items())

    def count(self) -> int:
        return len(self._documents)


class DiskCacheStore(Store):
    """Store whose collections live under one directory on disk."""

    def __init__(self, directory: Path | str | None = None) -> None:
        self.directory = Path(directory) if directory is not None else store_dir()
        self._collections: dict[str, DiskCacheCollection] = {}

    def collection(self, name: str) -> DiskCacheCollection:
        if not name or "/" in name or name.startswith("."):
            raise StoreError(f"Invalid collection name: {name!r}")
        if name not in self._collections:
            self._collections[name] = DiskCacheCollection(name, self.directory / name)
        return self._collections[name]

    def close(self) -> None:
        for collection in self._collections.values():
            collection._documents.cache.close()
            collection._indexes.cache.close()
        self._collections.clear()
