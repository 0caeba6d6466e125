"""Argument normalization for the completion-handler API.

``cached_aggregate`` and ``cached_map_reduce`` accept a variable-length call
of the form::

    cache_options, <query args...>, complete

This module splits such a call into its three parts once, at the call
boundary, so the caching logic only ever sees a :class:`CacheOptions`, an
ordered tuple of query arguments, and the handler.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import ValidationError

from querycache.models.cache import DEFAULT_CACHE_COLLECTION, CacheOptions

CompletionHandler = Callable[[BaseException | None, Any], Any]

_NAME_KEYS = frozenset({"cacheCollectionName", "cache_collection_name"})


@dataclass(frozen=True)
class NormalizedCall:
    """A cached-query call split into options, query arguments and handler."""

    cache_options: CacheOptions
    query_args: tuple[Any, ...]
    complete: CompletionHandler | None


def coerce_cache_options(
    value: CacheOptions | Mapping[str, Any] | str | None,
    default_collection: str = DEFAULT_CACHE_COLLECTION,
) -> CacheOptions:
    """Turn any accepted cache-options form into a :class:`CacheOptions`.

    Args:
        value: ``None`` (all defaults), a collection name string, a mapping
            using snake_case or camelCase keys, or a CacheOptions instance.
        default_collection: Cache collection used when *value* names none.

    Raises:
        TypeError: If *value* is none of the accepted forms, or a mapping
            whose values do not validate.
    """
    if isinstance(value, CacheOptions):
        return value
    if isinstance(value, str):
        return CacheOptions(cache_collection_name=value)
    if value is None:
        return CacheOptions(cache_collection_name=default_collection)
    if isinstance(value, Mapping):
        try:
            options = CacheOptions.model_validate(dict(value))
        except ValidationError as exc:
            msg = f"invalid cache options {dict(value)!r}: {exc.errors()[0]['msg']}"
            raise TypeError(msg) from exc
        if not any(value.get(key) for key in _NAME_KEYS):
            options = options.model_copy(update={"cache_collection_name": default_collection})
        return options
    msg = f"cache options must be a string, mapping or CacheOptions, got {type(value).__name__}"
    raise TypeError(msg)


def normalize_call(
    args: Sequence[Any],
    default_collection: str = DEFAULT_CACHE_COLLECTION,
) -> NormalizedCall:
    """Split ``(cache_options, *query_args, complete)`` into its parts.

    The last argument is always taken as the completion handler; it is not
    validated here, so a missing handler only shows up when it is called.
    """
    remaining = list(args)
    complete = remaining.pop() if remaining else None
    cache_options = coerce_cache_options(
        remaining[0] if remaining else None, default_collection
    )
    return NormalizedCall(
        cache_options=cache_options,
        query_args=tuple(remaining[1:]),
        complete=complete,
    )
