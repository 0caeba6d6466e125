"""Shared pytest fixtures for the querycache test suite."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from querycache.interfaces.collection_resolver import ICollectionHandle, ICollectionResolver
from querycache.interfaces.query_executor import IQueryExecutor
from querycache.providers.memory.memory_store import MemoryCollectionResolver

# ---------------------------------------------------------------------------
# Query arguments
# ---------------------------------------------------------------------------


@pytest.fixture
def pipeline() -> list[dict[str, Any]]:
    """The aggregation pipeline used throughout the orchestration tests."""
    return [{"$match": {"x": 1}}]


@pytest.fixture
def aggregate_result() -> list[dict[str, Any]]:
    return [{"_id": "a", "total": 3}, {"_id": "b", "total": 5}]


# ---------------------------------------------------------------------------
# Collaborator mocks
# ---------------------------------------------------------------------------


def _make_handle(name: str, entry: dict[str, Any] | None = None) -> AsyncMock:
    """Build a mock ICollectionHandle whose find_one returns *entry*."""
    handle = AsyncMock(spec=ICollectionHandle)
    handle.name = name
    handle.find_one.return_value = entry
    handle.upsert.return_value = None
    return handle


@pytest.fixture
def make_handle():  # noqa: ANN201
    """Factory fixture: ``make_handle(name, entry=None)`` builds a mock handle."""
    return _make_handle


@pytest.fixture
def cache_handle() -> AsyncMock:
    """Mock cache collection that misses by default."""
    return _make_handle("queryCache")


@pytest.fixture
def resolver(cache_handle: AsyncMock) -> MagicMock:
    """Mock resolver returning ``cache_handle`` for any name.

    Tests that need distinct handles per name replace ``side_effect``.
    """
    mock = MagicMock(spec=ICollectionResolver)
    mock.resolve_collection.return_value = cache_handle
    return mock


@pytest.fixture
def executor(aggregate_result: list[dict[str, Any]]) -> AsyncMock:
    """Mock query executor returning ``aggregate_result`` for aggregates."""
    mock = AsyncMock(spec=IQueryExecutor)
    mock.execute_aggregate.return_value = aggregate_result
    mock.execute_map_reduce.return_value = [{"_id": "a", "value": 3}]
    return mock


@pytest.fixture
def memory_resolver() -> MemoryCollectionResolver:
    """A fresh in-process collection store."""
    return MemoryCollectionResolver()
