"""In-process collection store.

Dict-backed stand-in for a MongoDB database, suitable for development and
tests.  Implements :class:`ICollectionResolver` / :class:`ICollectionHandle`
so a :class:`~querycache.services.query_cache.QueryCache` can run without a
server.  Not shared across processes.
"""

from __future__ import annotations

import copy
from typing import Any

import structlog

from querycache.interfaces.collection_resolver import ICollectionHandle, ICollectionResolver
from querycache.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def _matches(document: dict[str, Any], filter: dict[str, Any]) -> bool:
    return all(key in document and document[key] == value for key, value in filter.items())


class MemoryCollectionHandle(ICollectionHandle):
    """A named list of documents supporting equality lookups and upserts.

    Documents are deep-copied on the way in and out, so callers never share
    state with the store.
    """

    def __init__(self, name: str, documents: list[dict[str, Any]]) -> None:
        self._name = name
        self._documents = documents

    @property
    def name(self) -> str:
        return self._name

    @property
    def documents(self) -> list[dict[str, Any]]:
        """A copy of every stored document, in insertion order."""
        return copy.deepcopy(self._documents)

    async def find_one(self, filter: dict[str, Any]) -> dict[str, Any] | None:
        for document in self._documents:
            if _matches(document, filter):
                return copy.deepcopy(document)
        return None

    async def upsert(self, filter: dict[str, Any], document: dict[str, Any]) -> None:
        # No await between match and write, so this is atomic on the event loop.
        stored = copy.deepcopy(document)
        for index, existing in enumerate(self._documents):
            if _matches(existing, filter):
                self._documents[index] = stored
                _logger.debug("memory_document_replaced", collection=self._name)
                return
        self._documents.append(stored)
        _logger.debug("memory_document_inserted", collection=self._name)

    async def insert_many(self, documents: list[dict[str, Any]]) -> None:
        """Append *documents*, e.g. to seed a mapReduce output collection."""
        self._documents.extend(copy.deepcopy(documents))


class MemoryCollectionResolver(ICollectionResolver):
    """Resolves handles onto a shared dict of named document lists.

    Handles resolved for the same name see the same documents.
    """

    def __init__(self) -> None:
        self._collections: dict[str, list[dict[str, Any]]] = {}

    def resolve_collection(self, name: str) -> MemoryCollectionHandle:
        return MemoryCollectionHandle(name, self._collections.setdefault(name, []))

    def collection_names(self) -> list[str]:
        """Names of every collection resolved so far."""
        return list(self._collections)
