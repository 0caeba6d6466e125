"""Pydantic models for querycache.

- :mod:`querycache.models.cache` -- CacheOptions and the persisted CacheEntry.
- :mod:`querycache.models.connection` -- MongoConfig / HostConfig used by the
  connection manager.
"""

from querycache.models.cache import DEFAULT_CACHE_COLLECTION, CacheEntry, CacheOptions
from querycache.models.connection import HostConfig, MongoConfig

__all__ = [
    "DEFAULT_CACHE_COLLECTION",
    "CacheEntry",
    "CacheOptions",
    "HostConfig",
    "MongoConfig",
]
