"""Custom exception hierarchy for querycache.

All package exceptions inherit from :class:`QueryCacheError`, which carries
an optional ``collection_name`` so callers can tell which collection (the
cache table, the source collection, or a map/reduce output collection) was
involved in the failure.

The hierarchy follows the stages of a cached query:

    QueryCacheError  (base -- catch-all for any querycache error)
    +-- CacheLookupError       (reading the cache entry failed)
    +-- QueryExecutionError    (the underlying aggregate / mapReduce failed)
    +-- CacheWriteError        (write-through failed after a successful query)
    +-- FingerprintError       (query arguments could not be hashed)
    +-- ConfigurationError     (missing / invalid connection configuration)
    +-- MongoConnectionError   (the Mongo client could not connect)

Each stage raises its own subclass and chains the original exception, so a
caller can, for example, fall back to the live result on CacheWriteError
while treating QueryExecutionError as fatal.
"""


class QueryCacheError(Exception):
    """Base exception for all querycache errors.

    The ``__str__`` method prefixes the collection name in brackets for log
    scanning, e.g. ``[queryCache] Cache lookup failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected query cache error occurred",
        collection_name: str | None = None,
    ) -> None:
        self._message = message
        self._collection_name = collection_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def collection_name(self) -> str | None:
        return self._collection_name

    def __str__(self) -> str:
        if self._collection_name:
            return f"[{self._collection_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Cached query stages
# ---------------------------------------------------------------------------

class CacheLookupError(QueryCacheError):
    """Raised when reading a cache entry fails.  No query is executed."""

    def __init__(
        self,
        message: str = "Cache lookup failed",
        collection_name: str | None = None,
    ) -> None:
        super().__init__(message=message, collection_name=collection_name)


class QueryExecutionError(QueryCacheError):
    """Raised when the underlying aggregate or mapReduce fails.  Nothing is cached."""

    def __init__(
        self,
        message: str = "Query execution failed",
        collection_name: str | None = None,
    ) -> None:
        super().__init__(message=message, collection_name=collection_name)


class CacheWriteError(QueryCacheError):
    """Raised when the write-through upsert fails after a successful query.

    The live result was computed but is not returned: the caller is told
    that the cache could not be updated.
    """

    def __init__(
        self,
        message: str = "Cache write-through failed",
        collection_name: str | None = None,
    ) -> None:
        super().__init__(message=message, collection_name=collection_name)


class FingerprintError(QueryCacheError):
    """Raised when query arguments cannot be serialized into a cache key."""

    def __init__(
        self,
        message: str = "Query arguments could not be fingerprinted",
        collection_name: str | None = None,
    ) -> None:
        super().__init__(message=message, collection_name=collection_name)


# ---------------------------------------------------------------------------
# Connection / configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(QueryCacheError):
    """Raised when connection configuration is invalid or missing."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        collection_name: str | None = None,
    ) -> None:
        super().__init__(message=message, collection_name=collection_name)


class MongoConnectionError(QueryCacheError):
    """Raised when a MongoDB client cannot be created or fails to connect."""

    def __init__(
        self,
        message: str = "Could not connect to MongoDB",
        collection_name: str | None = None,
    ) -> None:
        super().__init__(message=message, collection_name=collection_name)
