"""Runs aggregate and mapReduce queries against one MongoDB collection.

pymongo 4 no longer ships ``Collection.map_reduce``, so mapReduce is issued as
the ``mapReduce`` database command.  Aggregation results are always
materialized into a list; cursors are never returned.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from bson.code import Code
from bson.son import SON
from pymongo.asynchronous.collection import AsyncCollection

from querycache.interfaces.query_executor import IQueryExecutor
from querycache.providers.mongo.collections import MongoCollectionHandle
from querycache.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# mapReduce options that carry JavaScript rather than data.
_CODE_OPTIONS = ("finalize",)


def _as_code(value: Any) -> Code:
    """Coerce a JavaScript function given as ``Code`` or ``str`` to ``Code``."""
    if isinstance(value, Code):
        return value
    if isinstance(value, str):
        return Code(value)
    msg = f"mapReduce functions must be bson.Code or JavaScript source strings, got {type(value).__name__}"
    raise TypeError(msg)


def _is_inline(out: Any) -> bool:
    return isinstance(out, Mapping) and bool(out.get("inline"))


class MongoQueryExecutor(IQueryExecutor):
    """Executes queries on *collection*, the source of the cached data."""

    def __init__(self, collection: AsyncCollection) -> None:
        self._collection = collection

    @property
    def collection(self) -> AsyncCollection:
        return self._collection

    async def execute_aggregate(
        self,
        pipeline: list[dict[str, Any]],
        options: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        cursor = await self._collection.aggregate(pipeline, **(options or {}))
        results = await cursor.to_list()
        _logger.debug("aggregate_executed", collection=self._collection.name,
                      stages=len(pipeline), results=len(results))
        return results

    async def execute_map_reduce(
        self,
        map_: Any,
        reduce: Any,
        options: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]] | MongoCollectionHandle:
        options = dict(options or {})
        if "out" not in options:
            msg = "mapReduce requires an 'out' option, e.g. {'inline': 1} or a collection name"
            raise ValueError(msg)
        out = options.pop("out")

        command = SON([
            ("mapReduce", self._collection.name),
            ("map", _as_code(map_)),
            ("reduce", _as_code(reduce)),
            ("out", out),
        ])
        for key, value in options.items():
            command[key] = _as_code(value) if key in _CODE_OPTIONS else value

        database = self._collection.database
        response = await database.command(command)

        if _is_inline(out):
            results = response.get("results", [])
            _logger.debug("map_reduce_executed", collection=self._collection.name,
                          inline=True, results=len(results))
            return results

        # The server reports either a bare collection name or {db, collection}.
        target = response.get("result")
        if isinstance(target, Mapping):
            if target.get("db"):
                database = database.client.get_database(target["db"])
            target = target.get("collection")
        _logger.debug("map_reduce_executed", collection=self._collection.name,
                      inline=False, output_collection=target)
        return MongoCollectionHandle(database.get_collection(target))
