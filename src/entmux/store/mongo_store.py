"""MongoDB store adapter.

The pymongo driver is imported on first use, so the rest of the package works
without it. Tests can pass any ``client`` object that behaves like a
``MongoClient`` (``client[database][collection]``).
"""

from __future__ import annotations

from typing import Any, Optional

from entmux.config import MongoCfg
from entmux.errors import StoreError
from entmux.store.base import Collection, Document, InsertOneResult, Store


_INDEX_MAX_TIME_MS = 3000


class MongoCollection(Collection):
    """Thin pass-through over a pymongo collection; driver errors are not wrapped."""

    def __init__(self, name: str, handle: Any) -> None:
        self.name = name
        self.handle = handle

    def insert_one(self, document: Document) -> InsertOneResult:
        result = self.handle.insert_one(dict(document))
        return InsertOneResult(inserted_id=result.inserted_id)

    def find_one(self, filter: Document) -> Optional[Document]:
        return self.handle.find_one(filter)

    def find_one_and_update(self, filter: Document, update: Document) -> Optional[Document]:
        return self.handle.find_one_and_update(filter, update)

    def find_one_and_delete(self, filter: Document) -> Optional[Document]:
        return self.handle.find_one_and_delete(filter)

    def create_index(self, keys: list[tuple[str, int]], *, unique: bool = False) -> str:
        return self.handle.create_index(keys, unique=unique, maxTimeMS=_INDEX_MAX_TIME_MS)


class MongoStore(Store):
    def __init__(self, cfg: MongoCfg | None = None, *, client: Any = None) -> None:
        self.cfg = cfg or MongoCfg.from_env()
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                from pymongo import MongoClient  # type: ignore
            except Exception as exc:  # pragma: no cover - optional dependency
                raise StoreError(
                    "pymongo is required for MongoStore. Install with `pip install pymongo`."
                ) from exc
            self._client = MongoClient(self.cfg.uri)
        return self._client

    def collection(self, name: str) -> MongoCollection:
        return MongoCollection(name, self.client[self.cfg.database][name])

    def close(self) -> None:
        if self._client is not None and hasattr(self._client, "close"):
            self._client.close()
        self._client = None
