"""Store and collection interfaces required by the registry and entities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


Document = dict[str, Any]


@dataclass(frozen=True)
class InsertOneResult:
    inserted_id: Any


class Collection:
    """Abstract per-entity collection.

    Every operation may raise; errors are passed through to callers unchanged.
    """

    name: str

    def insert_one(self, document: Document) -> InsertOneResult:  # pragma: no cover - interface
        raise NotImplementedError

    def find_one(self, filter: Document) -> Optional[Document]:  # pragma: no cover - interface
        raise NotImplementedError

    def find_one_and_update(
        self, filter: Document, update: Document
    ) -> Optional[Document]:  # pragma: no cover - interface
        raise NotImplementedError

    def find_one_and_delete(self, filter: Document) -> Optional[Document]:  # pragma: no cover - interface
        raise NotImplementedError

    def create_index(
        self, keys: list[tuple[str, int]], *, unique: bool = False
    ) -> str:  # pragma: no cover - interface
        raise NotImplementedError


class Store:
    """Abstract store handing out named collections."""

    def collection(self, name: str) -> Collection:  # pragma: no cover - interface
        raise NotImplementedError
