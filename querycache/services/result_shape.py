"""Result shape handling for cached mapReduce queries.

mapReduce either returns its documents directly (``out: {"inline": 1}``) or
writes them to a collection and returns a handle to it.  Inline results are
cached as-is; collection outputs are cached by name and turned back into a
handle on a hit.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from querycache.interfaces.collection_resolver import ICollectionHandle, ICollectionResolver

# Position of the options argument in (map, reduce, options).
_OPTIONS_INDEX = 2


def uses_inline_output(query_args: Sequence[Any]) -> bool:
    """Return ``True`` if the mapReduce options request inline output."""
    if len(query_args) <= _OPTIONS_INDEX:
        return False
    options = query_args[_OPTIONS_INDEX]
    if not isinstance(options, Mapping):
        return False
    out = options.get("out")
    return isinstance(out, Mapping) and bool(out.get("inline"))


def to_cacheable(result: Any, inline: bool) -> Any:
    """Return the value to store as ``cachedResult`` for a live result."""
    if inline:
        return result
    if result is None:
        return None
    return getattr(result, "name", None)


def from_cached(
    cached_result: Any,
    inline: bool,
    resolver: ICollectionResolver,
) -> list[Any] | ICollectionHandle | None:
    """Return the value handed to the caller for a stored ``cachedResult``."""
    if inline:
        return cached_result
    if cached_result is None:
        return None
    return resolver.resolve_collection(cached_result)
