"""Cache models for cached aggregate / mapReduce queries.

Defines Pydantic v2 models for the per-call cache options and the record
persisted in the cache collection.  Both models are frozen; a forced update
produces a fresh CacheEntry rather than mutating the stored one.

Field names are snake_case in Python and camelCase on the wire
(``cacheCollectionName``, ``queryHash``, ...), so documents written by other
clients of the same cache collection stay readable.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CACHE_COLLECTION = "queryCache"


# ---------------------------------------------------------------------------
# CacheOptions: how a single cached call reads and writes the cache.
# ---------------------------------------------------------------------------
class CacheOptions(BaseModel):
    """Per-call cache behaviour.

    A bare string passed where options are expected is shorthand for
    ``CacheOptions(cache_collection_name=<string>)``; see
    :func:`querycache.services.arguments.coerce_cache_options`.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Collection in the same database that holds CacheEntry documents.
    cache_collection_name: str = Field(
        default=DEFAULT_CACHE_COLLECTION, alias="cacheCollectionName"
    )
    # Re-run the query and overwrite the entry even on a cache hit.
    force_update_cache: bool = Field(default=False, alias="forceUpdateCache")

    @field_validator("cache_collection_name", mode="before")
    @classmethod
    def _default_when_blank(cls, value: Any) -> Any:
        if value is None or value == "":
            return DEFAULT_CACHE_COLLECTION
        return value

    @field_validator("force_update_cache", mode="before")
    @classmethod
    def _falsy_when_missing(cls, value: Any) -> Any:
        return False if value is None else value


# ---------------------------------------------------------------------------
# CacheEntry: the document stored in the cache collection.
# ---------------------------------------------------------------------------
class CacheEntry(BaseModel):
    """One cached query result, keyed by the fingerprint of its arguments.

    ``cached_result`` is the raw result for aggregate and inline mapReduce
    queries, or the name of the output collection for mapReduce queries
    that write to a collection.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    query_hash: str = Field(alias="queryHash")
    cached_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc),  # noqa: UP017
        alias="cachedAt",
    )
    cached_result: Any = Field(default=None, alias="cachedResult")

    @property
    def key_filter(self) -> dict[str, str]:
        """Filter selecting this entry's document in the cache collection."""
        return {"queryHash": self.query_hash}

    def to_document(self) -> dict[str, Any]:
        """Return the document written to the cache collection.

        Built by hand rather than through ``model_dump`` so BSON-specific
        values inside the result (ObjectId, Decimal128, ...) reach the
        driver untouched.
        """
        return {
            "queryHash": self.query_hash,
            "cachedAt": self.cached_at,
            "cachedResult": self.cached_result,
        }
