"""Utility modules for querycache.

- **errors** -- exception hierarchy rooted at QueryCacheError; each stage of
  a cached query (lookup, execution, write-through) raises its own subclass.
- **logging** -- structlog setup with console output in development and
  JSON in production.
"""

from querycache.utils.errors import (
    CacheLookupError,
    CacheWriteError,
    ConfigurationError,
    FingerprintError,
    MongoConnectionError,
    QueryCacheError,
    QueryExecutionError,
)
from querycache.utils.logging import configure_logging, get_logger

__all__ = [
    "CacheLookupError",
    "CacheWriteError",
    "ConfigurationError",
    "FingerprintError",
    "MongoConnectionError",
    "QueryCacheError",
    "QueryExecutionError",
    "configure_logging",
    "get_logger",
]
