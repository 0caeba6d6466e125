"""Deterministic cache keys for query arguments.

The fingerprint of a call is the MD5 digest of its positional query
arguments serialized as extended JSON, base64-encoded (24 characters).
mapReduce functions are hashed by their source text, so two calls with the
same JavaScript (or the same Python source) share a cache entry.

Known limitation: dict key order is part of the serialized form, so
``{"a": 1, "b": 2}`` and ``{"b": 2, "a": 1}`` produce different keys.  MongoDB
treats key order as significant in several places (``$sort`` stages, for
one), so keys are not re-sorted.
"""

from __future__ import annotations

import base64
import hashlib
import inspect
from collections.abc import Sequence
from typing import Any

from bson import json_util
from bson.code import Code

from querycache.utils.errors import FingerprintError


def _hashable_form(value: Any) -> Any:
    """Replace code values with their source text; leave data untouched."""
    if isinstance(value, Code):
        # Scoped code keeps its $code/$scope form so the scope is hashed too.
        return value if value.scope else str(value)
    if callable(value):
        # getsource returns the whole enclosing line for a lambda.
        if getattr(value, "__name__", None) == "<lambda>":
            msg = "Lambdas cannot be fingerprinted by source; pass a def function or bson.Code"
            raise FingerprintError(msg)
        try:
            return inspect.getsource(value)
        except (OSError, TypeError) as exc:
            msg = f"Cannot read source of {value!r} for fingerprinting; pass it as bson.Code"
            raise FingerprintError(msg) from exc
    return value


def fingerprint(query_args: Sequence[Any]) -> str:
    """Return the cache key for an ordered tuple of query arguments.

    Args:
        query_args: The positional arguments of the underlying query,
            e.g. ``(pipeline, options)`` or ``(map, reduce, options)``.

    Returns:
        A 24-character base64 MD5 digest.

    Raises:
        FingerprintError: If an argument cannot be serialized.
    """
    normalized = [_hashable_form(value) for value in query_args]
    try:
        serialized = json_util.dumps(normalized)
    except (TypeError, ValueError) as exc:
        msg = f"Query arguments are not serializable: {exc}"
        raise FingerprintError(msg) from exc

    # Advisory cache key, not a security boundary.
    digest = hashlib.md5(serialized.encode("utf-8"), usedforsecurity=False).digest()
    return base64.b64encode(digest).decode("ascii")
