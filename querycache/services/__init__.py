"""Caching services.

- **arguments** -- splits handler-style calls into options, query args and
  completion handler.
- **fingerprint** -- deterministic cache keys for query arguments.
- **result_shape** -- inline vs. output-collection handling for mapReduce.
- **query_cache** -- the QueryCache service and the handler-style
  ``cached_aggregate`` / ``cached_map_reduce`` functions.
"""

from querycache.services.arguments import NormalizedCall, coerce_cache_options, normalize_call
from querycache.services.fingerprint import fingerprint
from querycache.services.query_cache import QueryCache, cached_aggregate, cached_map_reduce
from querycache.services.result_shape import uses_inline_output

__all__ = [
    "NormalizedCall",
    "QueryCache",
    "cached_aggregate",
    "cached_map_reduce",
    "coerce_cache_options",
    "fingerprint",
    "normalize_call",
    "uses_inline_output",
]
