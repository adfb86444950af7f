from __future__ import annotations

import unittest
from dataclasses import dataclass, field
from typing import Any, Optional

from entmux.errors import (
    DuplicateIdentifierError,
    EntityError,
    MissingIdentityError,
    StoreError,
    StoreUninitializedError,
)
from entmux.meta.field import Token
from entmux.mux.registry import EntityRegistry, create
from entmux.store.base import Collection, InsertOneResult, Store


class _MemoryCollection(Collection):
    def __init__(self, name: str, fail_index: bool = False) -> None:
        self.name = name
        self.fail_index = fail_index
        self.indexes: list[tuple[list[tuple[str, int]], bool]] = []

    def insert_one(self, document: dict[str, Any]) -> InsertOneResult:
        return InsertOneResult(inserted_id="1")

    def create_index(self, keys: list[tuple[str, int]], *, unique: bool = False) -> str:
        if self.fail_index:
            raise StoreError("index build timed out")
        self.indexes.append((keys, unique))
        return "_".join(f"{k}_{d}" for k, d in keys)


class _MemoryStore(Store):
    def __init__(self, fail_index: bool = False) -> None:
        self.fail_index = fail_index
        self.collections: dict[str, _MemoryCollection] = {}

    def collection(self, name: str) -> _MemoryCollection:
        coll = _MemoryCollection(name, self.fail_index)
        self.collections[name] = coll
        return coll


@dataclass
class ENoID:
    f1: int = field(default=0, metadata={"json": "f_1", "bson": "f1", "id": ""})
    f2: int = field(default=0, metadata={"json": "f_2", "bson": "f2", "id": "-"})


@dataclass
class EDupID1:
    f1: int = field(default=0, metadata={"json": "f_1", "bson": "f1", "id": "<id>"})


@dataclass
class EDupID2:
    f2: int = field(default=0, metadata={"json": "f_2", "bson": "f2", "id": "<id>"})


@dataclass
class ENoDupID3:
    f1: int = field(default=0, metadata={"json": "f_1", "bson": "f1", "id": "<id>"})
    f2: int = field(default=0, metadata={"json": "f_2", "bson": "f2", "id": "<new_id>"})


@dataclass
class ENoDBColl:
    f1: int = field(default=0, metadata={"json": "f1", "id": "!no-coll", "handle": "c"})


@dataclass
class Member:
    id: str = field(default="", metadata={"bson": "_id", "json": "-", "id": "member"})
    email: str = field(
        default="",
        metadata={"json": "email", "axis": "true", "index": "true", "handle": "c"},
    )
    team: Optional["Team"] = field(default=None, metadata={"json": "team", "handle": "c"})


@dataclass
class Team:
    name: str = field(default="", metadata={"json": "name", "id": "team", "handle": "c", "axis": "true"})
    members: list[Member] = field(default_factory=list, metadata={"json": "members", "handle": "c"})
    alumni: list[Member] = field(default_factory=list, metadata={"json": "alumni"})


class TestRegistryCreate(unittest.TestCase):
    def test_store_uninitialized(self) -> None:
        with self.assertRaises(StoreUninitializedError):
            create(None)
        with self.assertRaises(StoreUninitializedError):
            create(None, EDupID1)

    def test_missing_identity(self) -> None:
        with self.assertRaises(MissingIdentityError) as ctx:
            create(_MemoryStore(), ENoID)
        self.assertEqual(ctx.exception.type_name, "ENoID")
        self.assertIn("Missing identity annotation", str(ctx.exception))

    def test_duplicate_identifier_keeps_first(self) -> None:
        registry = EntityRegistry(_MemoryStore())
        with self.assertRaises(DuplicateIdentifierError) as ctx:
            registry.register(EDupID1, EDupID2)
        self.assertEqual(ctx.exception.entity_id, "<id>")
        self.assertEqual(len(registry), 1)
        self.assertIs(registry.metadata("<id>").source_type, EDupID1)
        self.assertEqual(registry.entity_id_for(EDupID1), "<id>")
        self.assertIsNone(registry.entity_id_for(EDupID2))

    def test_last_identity_avoids_duplicate(self) -> None:
        registry = create(_MemoryStore(), EDupID2, ENoDupID3)
        self.assertEqual(sorted(registry.entity_ids()), ["<id>", "<new_id>"])

    def test_suppressed_entity_has_no_collection(self) -> None:
        store = _MemoryStore()
        registry = create(store, ENoDBColl)
        self.assertIn("no-coll", registry)
        self.assertIsNone(registry.collection("no-coll"))
        self.assertNotIn("no-coll", store.collections)
        with self.assertRaises(EntityError):
            registry.entity("no-coll").collection

    def test_unknown_entity_lookup(self) -> None:
        registry = create(_MemoryStore())
        self.assertIsNone(registry.get("missing"))
        with self.assertRaises(EntityError):
            registry.metadata("missing")

    def test_collections_created_per_entity(self) -> None:
        store = _MemoryStore()
        registry = create(store, Member, Team)
        self.assertEqual(sorted(store.collections), ["member", "team"])
        self.assertIs(registry.collection("member"), store.collections["member"])


class TestRegistryIndexing(unittest.TestCase):
    def test_index_built_over_axis_index_fields(self) -> None:
        store = _MemoryStore()
        create(store, Member, Team)
        self.assertEqual(store.collections["member"].indexes, [([("email", 1)], True)])
        self.assertEqual(store.collections["team"].indexes, [])

    def test_index_failure_does_not_roll_back_registration(self) -> None:
        registry = create(_MemoryStore(fail_index=True), Member)
        self.assertIn("member", registry)
        self.assertIsInstance(registry.index_errors["member"], StoreError)


class TestEmbeddingLinker(unittest.TestCase):
    def test_forward_references_linked_after_registration(self) -> None:
        registry = create(_MemoryStore(), Member, Team)

        team_field = registry.metadata("member").field("team")
        self.assertIsNotNone(team_field.embedded)
        self.assertEqual(team_field.embedded.entity_id, "team")
        self.assertTrue(team_field.embedded.is_record)
        self.assertFalse(team_field.embedded.is_collection)

        members = registry.metadata("team").field("members")
        self.assertEqual(members.embedded.entity_id, "member")
        self.assertTrue(members.embedded.is_collection)

    def test_non_create_fields_are_not_linked(self) -> None:
        registry = create(_MemoryStore(), Member, Team)
        self.assertIsNone(registry.metadata("team").field("alumni").embedded)

    def test_linking_is_order_independent(self) -> None:
        first = create(_MemoryStore(), Member, Team)
        second = create(_MemoryStore(), Team, Member)
        for entity_id in ("member", "team"):
            self.assertEqual(
                first.metadata(entity_id).to_dict(),
                second.metadata(entity_id).to_dict(),
            )

    def test_late_registration_links_earlier_entities(self) -> None:
        registry = EntityRegistry(_MemoryStore())
        registry.register(Member)
        self.assertIsNone(registry.metadata("member").field("team").embedded)
        registry.register(Team)
        self.assertEqual(registry.metadata("member").field("team").embedded.entity_id, "team")

    def test_classification_summary(self) -> None:
        registry = create(_MemoryStore(), Member, Team)
        classes = registry.metadata("member").classifications
        self.assertEqual([fd.name for fd in classes[Token.CREATE]], ["email", "team"])
        self.assertEqual([fd.name for fd in classes[Token.IDENTITY]], ["id"])


if __name__ == "__main__":
    unittest.main()
