"""Cached aggregate and mapReduce queries.

Every cached call follows the same path:

    1. Fingerprint the positional query arguments.
    2. Resolve the cache collection named by the call's CacheOptions.
    3. Look up ``{"queryHash": <fingerprint>}``.
    4. HIT (entry found, ``force_update_cache`` off): return the stored
       result without touching the executor.
    5. MISS: run the real query, upsert the new CacheEntry, return the live
       result.

Two surfaces share this logic:

* :class:`QueryCache` -- coroutine methods that return the result or raise a
  :class:`~querycache.utils.errors.QueryCacheError` subclass.
* :func:`cached_aggregate` / :func:`cached_map_reduce` -- free functions that
  take the executor and resolver explicitly plus a variable-length call
  ending in a completion handler ``complete(err, result)``.

Nothing here retries, locks, or expires entries.  Two concurrent misses on
the same fingerprint both run the query and both upsert; the last write wins.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import structlog

from querycache.interfaces.collection_resolver import ICollectionHandle, ICollectionResolver
from querycache.interfaces.query_executor import IQueryExecutor
from querycache.models.cache import DEFAULT_CACHE_COLLECTION, CacheEntry, CacheOptions
from querycache.services.arguments import (
    CompletionHandler,
    coerce_cache_options,
    normalize_call,
)
from querycache.services.fingerprint import fingerprint
from querycache.services.result_shape import from_cached, to_cacheable, uses_inline_output
from querycache.utils.errors import (
    CacheLookupError,
    CacheWriteError,
    ConfigurationError,
    QueryCacheError,
    QueryExecutionError,
)
from querycache.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def _positional(*args: Any) -> tuple[Any, ...]:
    """Drop a trailing ``None`` options argument.

    Keeps ``aggregate(opts, pipeline)`` and the handler form
    ``cached_aggregate(..., opts, pipeline, complete)`` on the same key.
    """
    if args and args[-1] is None:
        return args[:-1]
    return args


class QueryCache:
    """Read-through cache for aggregate and mapReduce queries.

    Parameters
    ----------
    executor:
        Runs the real queries on a cache miss.
    resolver:
        Resolves the cache collection and mapReduce output collections.
    default_cache_collection:
        Cache collection used when a call's options do not name one.
    """

    def __init__(
        self,
        executor: IQueryExecutor,
        resolver: ICollectionResolver,
        default_cache_collection: str = DEFAULT_CACHE_COLLECTION,
    ) -> None:
        self._executor = executor
        self._resolver = resolver
        self._default_cache_collection = default_cache_collection

    @property
    def default_cache_collection(self) -> str:
        return self._default_cache_collection

    # ------------------------------------------------------------------
    # Public coroutine API
    # ------------------------------------------------------------------

    async def aggregate(
        self,
        cache_options: CacheOptions | dict[str, Any] | str | None,
        pipeline: list[dict[str, Any]],
        options: dict[str, Any] | None = None,
    ) -> Any:
        """Return the cached result of an aggregation, running it on a miss.

        Raises
        ------
        CacheLookupError
            The cache entry could not be read.
        QueryExecutionError
            The aggregation failed; nothing was cached.
        CacheWriteError
            The aggregation succeeded but its result could not be cached.
        """
        return await self.run_aggregate(
            coerce_cache_options(cache_options, self._default_cache_collection),
            _positional(pipeline, options),
        )

    async def map_reduce(
        self,
        cache_options: CacheOptions | dict[str, Any] | str | None,
        map_: Any,
        reduce: Any,
        options: dict[str, Any] | None = None,
    ) -> Any:
        """Return the cached result of a mapReduce, running it on a miss.

        With ``options["out"]["inline"]`` truthy the result is the list of
        documents; otherwise it is a handle to the output collection.
        Raises the same errors as :meth:`aggregate`.
        """
        return await self.run_map_reduce(
            coerce_cache_options(cache_options, self._default_cache_collection),
            _positional(map_, reduce, options),
        )

    # ------------------------------------------------------------------
    # Normalized entry points
    # ------------------------------------------------------------------

    async def run_aggregate(
        self, cache_options: CacheOptions, query_args: Sequence[Any]
    ) -> Any:
        """Cached aggregate over already-normalized arguments."""
        query_hash = fingerprint(query_args)
        cache_collection = self._resolver.resolve_collection(cache_options.cache_collection_name)

        entry = await self._lookup(cache_collection, query_hash)
        if entry and not cache_options.force_update_cache:
            _logger.debug("query_cache_hit", operation="aggregate", query_hash=query_hash,
                          cache_collection=cache_collection.name)
            return entry.get("cachedResult")

        _logger.debug("query_cache_miss", operation="aggregate", query_hash=query_hash,
                      cache_collection=cache_collection.name,
                      forced=bool(entry) and cache_options.force_update_cache)
        result = await self._execute("aggregate", self._executor.execute_aggregate, query_args)
        await self._write_through(cache_collection, query_hash, result)
        return result

    async def run_map_reduce(
        self, cache_options: CacheOptions, query_args: Sequence[Any]
    ) -> Any:
        """Cached mapReduce over already-normalized arguments."""
        query_hash = fingerprint(query_args)
        cache_collection = self._resolver.resolve_collection(cache_options.cache_collection_name)
        inline = uses_inline_output(query_args)

        entry = await self._lookup(cache_collection, query_hash)
        if entry and not cache_options.force_update_cache:
            _logger.debug("query_cache_hit", operation="mapReduce", query_hash=query_hash,
                          cache_collection=cache_collection.name, inline=inline)
            return from_cached(entry.get("cachedResult"), inline, self._resolver)

        _logger.debug("query_cache_miss", operation="mapReduce", query_hash=query_hash,
                      cache_collection=cache_collection.name, inline=inline,
                      forced=bool(entry) and cache_options.force_update_cache)
        result = await self._execute("mapReduce", self._executor.execute_map_reduce, query_args)
        await self._write_through(cache_collection, query_hash, to_cacheable(result, inline))
        return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @staticmethod
    async def _lookup(
        cache_collection: ICollectionHandle, query_hash: str
    ) -> dict[str, Any] | None:
        try:
            return await cache_collection.find_one({"queryHash": query_hash})
        except Exception as exc:
            raise CacheLookupError(
                f"Cache lookup failed: {exc}", collection_name=cache_collection.name
            ) from exc

    @staticmethod
    async def _execute(
        operation: str,
        run: Callable[..., Awaitable[Any]],
        query_args: Sequence[Any],
    ) -> Any:
        try:
            return await run(*query_args)
        except QueryCacheError:
            raise
        except Exception as exc:
            raise QueryExecutionError(f"{operation} failed: {exc}") from exc

    @staticmethod
    async def _write_through(
        cache_collection: ICollectionHandle, query_hash: str, cached_result: Any
    ) -> None:
        entry = CacheEntry(query_hash=query_hash, cached_result=cached_result)
        try:
            await cache_collection.upsert(entry.key_filter, entry.to_document())
        except Exception as exc:
            raise CacheWriteError(
                f"Cache write-through failed: {exc}", collection_name=cache_collection.name
            ) from exc
        _logger.debug("query_cache_written", query_hash=query_hash,
                      cache_collection=cache_collection.name)


# ----------------------------------------------------------------------
# Completion-handler API
# ----------------------------------------------------------------------

async def _settle(complete: CompletionHandler | None, pending: Awaitable[Any]) -> None:
    """Await *pending* and report its outcome to *complete* exactly once."""
    try:
        result = await pending
    except QueryCacheError as exc:
        outcome = complete(exc, None)
    else:
        outcome = complete(None, result)
    if inspect.isawaitable(outcome):
        await outcome


async def _run_normalized(
    executor: IQueryExecutor,
    resolver: ICollectionResolver,
    args: Sequence[Any],
    operation: str,
) -> Any:
    try:
        call = normalize_call(args)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid cache options: {exc}") from exc
    cache = QueryCache(executor, resolver)
    run = cache.run_aggregate if operation == "aggregate" else cache.run_map_reduce
    return await run(call.cache_options, _positional(*call.query_args))


async def cached_aggregate(
    executor: IQueryExecutor,
    resolver: ICollectionResolver,
    *args: Any,
) -> None:
    """Cached aggregate reporting through a completion handler.

    Call as ``await cached_aggregate(executor, resolver, cache_options,
    pipeline[, options], complete)``.  *cache_options* may be a collection
    name, a mapping, a CacheOptions or ``None``.  ``complete(None, result)``
    is called on success and ``complete(error, None)`` on failure; errors are
    never raised to the caller.  Unusable cache options are reported as
    :class:`ConfigurationError`.  *complete* may be a plain function or a
    coroutine function.
    """
    complete = args[-1] if args else None
    await _settle(complete, _run_normalized(executor, resolver, args, "aggregate"))


async def cached_map_reduce(
    executor: IQueryExecutor,
    resolver: ICollectionResolver,
    *args: Any,
) -> None:
    """Cached mapReduce reporting through a completion handler.

    Call as ``await cached_map_reduce(executor, resolver, cache_options,
    map, reduce[, options], complete)``.  See :func:`cached_aggregate`.
    """
    complete = args[-1] if args else None
    await _settle(complete, _run_normalized(executor, resolver, args, "mapReduce"))
