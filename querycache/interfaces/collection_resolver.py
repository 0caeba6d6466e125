"""Abstract base classes for collection access.

The cached query services never talk to a database driver directly.  They
resolve collections by name through an :class:`ICollectionResolver` and read
or write cache entries through the returned :class:`ICollectionHandle`.
The MongoDB adapter lives in ``querycache.providers.mongo``; an in-process
store for development and tests lives in ``querycache.providers.memory``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICollectionHandle(ABC):
    """Contract for a named collection in the cache's database.

    Only the two key-value operations needed by the cache are required.
    Concrete handles may expose more (e.g. the underlying driver object).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The collection's name, as passed to ``resolve_collection``."""

    @abstractmethod
    async def find_one(self, filter: dict[str, Any]) -> dict[str, Any] | None:
        """Return the first document matching *filter*, or ``None``.

        Parameters
        ----------
        filter:
            Equality filter, e.g. ``{"queryHash": "..."}``.
        """

    @abstractmethod
    async def upsert(self, filter: dict[str, Any], document: dict[str, Any]) -> None:
        """Replace the document matching *filter* with *document*, inserting
        it if none matches.

        Must be atomic per key so concurrent writers never create duplicates.

        Parameters
        ----------
        filter:
            Equality filter identifying the document.
        document:
            Full replacement document.
        """


class ICollectionResolver(ABC):
    """Contract for resolving collection handles by name.

    Resolution is synchronous and always succeeds: a handle is returned even
    if the collection does not exist yet.
    """

    @abstractmethod
    def resolve_collection(self, name: str) -> ICollectionHandle:
        """Return a handle to the collection called *name*."""
