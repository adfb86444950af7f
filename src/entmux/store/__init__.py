"""Store interfaces, implementations and the entity CRUD wrapper."""

from entmux.store.base import Collection, InsertOneResult, Store
from entmux.store.diskcache_store import DiskCacheCollection, DiskCacheStore
from entmux.store.mongo_store import MongoCollection, MongoStore
from entmux.store.entity import Entity

__all__ = [
    "Collection",
    "InsertOneResult",
    "Store",
    "DiskCacheCollection",
    "DiskCacheStore",
    "MongoCollection",
    "MongoStore",
    "Entity",
]
