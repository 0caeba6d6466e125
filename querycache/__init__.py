"""querycache -- read-through result caching for MongoDB aggregate and mapReduce.

Quick start::

    from querycache import QueryCache
    from querycache.providers.mongo import MongoCollectionResolver, MongoQueryExecutor

    cache = QueryCache(MongoQueryExecutor(events), MongoCollectionResolver(db))
    rows = await cache.aggregate("reportCache", [{"$match": {"x": 1}}])

Handler-style calls are also available::

    await cached_aggregate(executor, resolver, "reportCache", pipeline, complete)
"""

from querycache.models.cache import DEFAULT_CACHE_COLLECTION, CacheEntry, CacheOptions
from querycache.services.fingerprint import fingerprint
from querycache.services.query_cache import QueryCache, cached_aggregate, cached_map_reduce
from querycache.utils.errors import (
    CacheLookupError,
    CacheWriteError,
    ConfigurationError,
    FingerprintError,
    MongoConnectionError,
    QueryCacheError,
    QueryExecutionError,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CACHE_COLLECTION",
    "CacheEntry",
    "CacheLookupError",
    "CacheOptions",
    "CacheWriteError",
    "ConfigurationError",
    "FingerprintError",
    "MongoConnectionError",
    "QueryCache",
    "QueryCacheError",
    "QueryExecutionError",
    "cached_aggregate",
    "cached_map_reduce",
    "fingerprint",
]
