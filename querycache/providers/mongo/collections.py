"""MongoDB collection adapters built on pymongo's asyncio API."""

from __future__ import annotations

from typing import Any

from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from querycache.interfaces.collection_resolver import ICollectionHandle, ICollectionResolver


class MongoCollectionHandle(ICollectionHandle):
    """Wraps an :class:`AsyncCollection` as an :class:`ICollectionHandle`.

    The underlying collection stays reachable through :attr:`collection` for
    anything beyond the cache's two operations.
    """

    def __init__(self, collection: AsyncCollection) -> None:
        self._collection = collection

    @property
    def name(self) -> str:
        return self._collection.name

    @property
    def collection(self) -> AsyncCollection:
        return self._collection

    async def find_one(self, filter: dict[str, Any]) -> dict[str, Any] | None:
        return await self._collection.find_one(filter)

    async def upsert(self, filter: dict[str, Any], document: dict[str, Any]) -> None:
        await self._collection.replace_one(filter, document, upsert=True)

    async def find(self, filter: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Return every document matching *filter* (all documents by default)."""
        return await self._collection.find(filter or {}).to_list()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MongoCollectionHandle):
            return NotImplemented
        return self._collection == other._collection

    def __hash__(self) -> int:
        return hash(self._collection.full_name)

    def __repr__(self) -> str:
        return f"MongoCollectionHandle({self._collection.full_name!r})"


class MongoCollectionResolver(ICollectionResolver):
    """Resolves collections by name within one :class:`AsyncDatabase`."""

    def __init__(self, database: AsyncDatabase) -> None:
        self._database = database

    @property
    def database(self) -> AsyncDatabase:
        return self._database

    def resolve_collection(self, name: str) -> MongoCollectionHandle:
        return MongoCollectionHandle(self._database.get_collection(name))
