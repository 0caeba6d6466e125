"""Abstract base class for the expensive queries being cached.

An executor runs the real aggregate / mapReduce against a source collection.
The cache only calls it on a miss or a forced update.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from querycache.interfaces.collection_resolver import ICollectionHandle


class IQueryExecutor(ABC):
    """Contract for running aggregate and mapReduce queries.

    Both operations are async and may raise any exception; the cache wraps
    failures in :class:`~querycache.utils.errors.QueryExecutionError`.
    """

    @abstractmethod
    async def execute_aggregate(
        self,
        pipeline: list[dict[str, Any]],
        options: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Run an aggregation pipeline and return the materialized results.

        Parameters
        ----------
        pipeline:
            The aggregation stages.
        options:
            Driver options for the aggregation (``allowDiskUse``, ...).

        Returns
        -------
        list[dict]
            All result documents.  Streaming cursors are not supported.
        """

    @abstractmethod
    async def execute_map_reduce(
        self,
        map_: Any,
        reduce: Any,
        options: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]] | ICollectionHandle:
        """Run a mapReduce job.

        Parameters
        ----------
        map_:
            The map function, as ``bson.Code`` or a JavaScript source string.
        reduce:
            The reduce function, same representation as *map_*.
        options:
            mapReduce options.  ``out`` selects the output mode: with
            ``{"inline": 1}`` the results are returned directly; otherwise
            they are written to a collection.

        Returns
        -------
        list[dict] or ICollectionHandle
            The result documents for inline output, or a handle to the output
            collection.
        """
