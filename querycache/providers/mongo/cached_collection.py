"""A MongoDB collection with cached aggregate / mapReduce methods.

Binds a :class:`MongoQueryExecutor` for the collection and a
:class:`MongoCollectionResolver` for its database to one
:class:`QueryCache`, so callers can write::

    reports = CachedCollection(db.get_collection("events"))
    rows = await reports.cached_aggregate("reportCache", [{"$match": {"x": 1}}])

The cache collection lives in the same database as the source collection.
"""

from __future__ import annotations

from typing import Any

from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from querycache.models.cache import DEFAULT_CACHE_COLLECTION, CacheOptions
from querycache.providers.mongo.collections import MongoCollectionResolver
from querycache.providers.mongo.executor import MongoQueryExecutor
from querycache.services.query_cache import QueryCache


class CachedCollection:
    """Source collection plus a query cache in the same database."""

    def __init__(
        self,
        collection: AsyncCollection,
        default_cache_collection: str = DEFAULT_CACHE_COLLECTION,
    ) -> None:
        self._collection = collection
        self._cache = QueryCache(
            MongoQueryExecutor(collection),
            MongoCollectionResolver(collection.database),
            default_cache_collection=default_cache_collection,
        )

    @classmethod
    def from_database(
        cls,
        database: AsyncDatabase,
        name: str,
        default_cache_collection: str = DEFAULT_CACHE_COLLECTION,
    ) -> CachedCollection:
        return cls(database.get_collection(name), default_cache_collection)

    @property
    def collection(self) -> AsyncCollection:
        return self._collection

    @property
    def name(self) -> str:
        return self._collection.name

    async def cached_aggregate(
        self,
        cache_options: CacheOptions | dict[str, Any] | str | None,
        pipeline: list[dict[str, Any]],
        options: dict[str, Any] | None = None,
    ) -> Any:
        """Aggregate through the cache.  See :meth:`QueryCache.aggregate`."""
        return await self._cache.aggregate(cache_options, pipeline, options)

    async def cached_map_reduce(
        self,
        cache_options: CacheOptions | dict[str, Any] | str | None,
        map_: Any,
        reduce: Any,
        options: dict[str, Any] | None = None,
    ) -> Any:
        """mapReduce through the cache.  See :meth:`QueryCache.map_reduce`."""
        return await self._cache.map_reduce(cache_options, map_, reduce, options)
