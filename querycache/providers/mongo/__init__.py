"""MongoDB providers on pymongo's asyncio API.

- MongoCollectionHandle / MongoCollectionResolver -- cache-table access.
- MongoQueryExecutor -- runs aggregate and mapReduce on a source collection.
- MongoConnectionManager -- per-database client registry.
- CachedCollection -- a source collection with cached query methods.
"""

from querycache.providers.mongo.cached_collection import CachedCollection
from querycache.providers.mongo.collections import MongoCollectionHandle, MongoCollectionResolver
from querycache.providers.mongo.connection import (
    MongoConnectionManager,
    build_connection_string,
    object_id,
    object_ids,
)
from querycache.providers.mongo.executor import MongoQueryExecutor

__all__ = [
    "CachedCollection",
    "MongoCollectionHandle",
    "MongoCollectionResolver",
    "MongoConnectionManager",
    "MongoQueryExecutor",
    "build_connection_string",
    "object_id",
    "object_ids",
]
