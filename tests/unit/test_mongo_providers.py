"""Unit tests for the MongoDB adapters, using mocked pymongo objects."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson.code import Code
from bson.son import SON

from querycache.providers.mongo.cached_collection import CachedCollection
from querycache.providers.mongo.collections import MongoCollectionHandle, MongoCollectionResolver
from querycache.providers.mongo.executor import MongoQueryExecutor

MAP_JS = "function () { emit(this.category, this.amount); }"
REDUCE_JS = "function (key, values) { return Array.sum(values); }"


def _collection(name: str = "events", database: MagicMock | None = None) -> MagicMock:
    collection = MagicMock()
    collection.name = name
    collection.full_name = f"reports.{name}"
    collection.database = database if database is not None else MagicMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.replace_one = AsyncMock()
    collection.aggregate = AsyncMock()
    return collection


def _database(response: dict | None = None) -> MagicMock:
    database = MagicMock()
    database.command = AsyncMock(return_value=response or {})
    database.get_collection.side_effect = lambda name: _collection(name, database)
    return database


# ======================================================================
# MongoCollectionHandle / MongoCollectionResolver
# ======================================================================


class TestMongoCollectionHandle:
    @pytest.mark.asyncio
    async def test_find_one_delegates(self) -> None:
        collection = _collection()
        collection.find_one.return_value = {"queryHash": "k"}
        handle = MongoCollectionHandle(collection)

        assert await handle.find_one({"queryHash": "k"}) == {"queryHash": "k"}
        collection.find_one.assert_awaited_once_with({"queryHash": "k"})

    @pytest.mark.asyncio
    async def test_upsert_replaces_with_upsert_flag(self) -> None:
        collection = _collection()
        handle = MongoCollectionHandle(collection)

        await handle.upsert({"queryHash": "k"}, {"queryHash": "k", "cachedResult": 1})

        collection.replace_one.assert_awaited_once_with(
            {"queryHash": "k"}, {"queryHash": "k", "cachedResult": 1}, upsert=True,
        )

    @pytest.mark.asyncio
    async def test_find_lists_documents(self) -> None:
        collection = _collection()
        cursor = MagicMock()
        cursor.to_list = AsyncMock(return_value=[{"_id": 1}])
        collection.find.return_value = cursor

        assert await MongoCollectionHandle(collection).find() == [{"_id": 1}]
        collection.find.assert_called_once_with({})

    def test_name_equality_and_repr(self) -> None:
        collection = _collection("mr_out")
        handle = MongoCollectionHandle(collection)

        assert handle.name == "mr_out"
        assert handle.collection is collection
        assert handle == MongoCollectionHandle(collection)
        assert hash(handle) == hash("reports.mr_out")
        assert repr(handle) == "MongoCollectionHandle('reports.mr_out')"


class TestMongoCollectionResolver:
    def test_resolves_by_name(self) -> None:
        database = _database()
        resolver = MongoCollectionResolver(database)

        handle = resolver.resolve_collection("queryCache")

        assert isinstance(handle, MongoCollectionHandle)
        assert handle.name == "queryCache"
        assert resolver.database is database
        database.get_collection.assert_called_once_with("queryCache")


# ======================================================================
# MongoQueryExecutor
# ======================================================================


class TestExecuteAggregate:
    @pytest.mark.asyncio
    async def test_materializes_cursor(self) -> None:
        collection = _collection()
        cursor = MagicMock()
        cursor.to_list = AsyncMock(return_value=[{"n": 1}])
        collection.aggregate.return_value = cursor
        pipeline = [{"$match": {"x": 1}}]

        result = await MongoQueryExecutor(collection).execute_aggregate(pipeline)

        assert result == [{"n": 1}]
        collection.aggregate.assert_awaited_once_with(pipeline)

    @pytest.mark.asyncio
    async def test_options_become_keyword_arguments(self) -> None:
        collection = _collection()
        cursor = MagicMock()
        cursor.to_list = AsyncMock(return_value=[])
        collection.aggregate.return_value = cursor

        await MongoQueryExecutor(collection).execute_aggregate([], {"allowDiskUse": True})

        collection.aggregate.assert_awaited_once_with([], allowDiskUse=True)


class TestExecuteMapReduce:
    @pytest.mark.asyncio
    async def test_inline_command_shape_and_results(self) -> None:
        database = _database({"results": [{"_id": "a", "value": 3}], "ok": 1})
        collection = _collection("events", database)

        result = await MongoQueryExecutor(collection).execute_map_reduce(
            MAP_JS, REDUCE_JS, {"out": {"inline": 1}, "query": {"x": 1}},
        )

        assert result == [{"_id": "a", "value": 3}]
        (command,), _ = database.command.await_args
        assert isinstance(command, SON)
        assert list(command)[:4] == ["mapReduce", "map", "reduce", "out"]
        assert command["mapReduce"] == "events"
        assert command["map"] == Code(MAP_JS)
        assert isinstance(command["reduce"], Code)
        assert command["out"] == {"inline": 1}
        assert command["query"] == {"x": 1}

    @pytest.mark.asyncio
    async def test_code_arguments_kept(self) -> None:
        database = _database({"results": []})
        collection = _collection("events", database)
        map_code = Code(MAP_JS, {"factor": 2})

        await MongoQueryExecutor(collection).execute_map_reduce(
            map_code, REDUCE_JS, {"out": {"inline": 1}, "finalize": "function (k, v) { return v; }"},
        )

        (command,), _ = database.command.await_args
        assert command["map"] is map_code
        assert isinstance(command["finalize"], Code)

    @pytest.mark.asyncio
    async def test_named_output_returns_handle(self) -> None:
        database = _database({"result": "mr_totals", "ok": 1})
        collection = _collection("events", database)

        result = await MongoQueryExecutor(collection).execute_map_reduce(
            MAP_JS, REDUCE_JS, {"out": "mr_totals"},
        )

        assert isinstance(result, MongoCollectionHandle)
        assert result.name == "mr_totals"
        database.get_collection.assert_called_with("mr_totals")

    @pytest.mark.asyncio
    async def test_output_in_other_database(self) -> None:
        database = _database({"result": {"db": "archive", "collection": "mr_totals"}})
        other = _database()
        database.client.get_database.return_value = other
        collection = _collection("events", database)

        result = await MongoQueryExecutor(collection).execute_map_reduce(
            MAP_JS, REDUCE_JS, {"out": {"replace": "mr_totals", "db": "archive"}},
        )

        database.client.get_database.assert_called_once_with("archive")
        other.get_collection.assert_called_once_with("mr_totals")
        assert result.name == "mr_totals"

    @pytest.mark.asyncio
    async def test_missing_out_rejected(self) -> None:
        database = _database()
        collection = _collection("events", database)

        with pytest.raises(ValueError, match="out"):
            await MongoQueryExecutor(collection).execute_map_reduce(MAP_JS, REDUCE_JS)
        database.command.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_javascript_function_rejected(self) -> None:
        collection = _collection()

        with pytest.raises(TypeError, match="int"):
            await MongoQueryExecutor(collection).execute_map_reduce(
                42, REDUCE_JS, {"out": {"inline": 1}},
            )


# ======================================================================
# CachedCollection
# ======================================================================


class TestCachedCollection:
    @pytest.mark.asyncio
    async def test_cached_aggregate_miss_writes_to_same_database(self) -> None:
        database = _database()
        source = _collection("events", database)
        cursor = MagicMock()
        cursor.to_list = AsyncMock(return_value=[{"n": 1}])
        source.aggregate.return_value = cursor
        cache_collection = _collection("reportCache", database)
        database.get_collection.side_effect = None
        database.get_collection.return_value = cache_collection

        result = await CachedCollection(source).cached_aggregate("reportCache", [{"$match": {}}])

        assert result == [{"n": 1}]
        database.get_collection.assert_called_with("reportCache")
        cache_collection.replace_one.assert_awaited_once()
        (key_filter, document), kwargs = cache_collection.replace_one.await_args
        assert key_filter == {"queryHash": document["queryHash"]}
        assert document["cachedResult"] == [{"n": 1}]
        assert kwargs == {"upsert": True}

    @pytest.mark.asyncio
    async def test_cached_aggregate_hit_skips_source(self) -> None:
        database = _database()
        source = _collection("events", database)
        cache_collection = _collection("queryCache", database)
        cache_collection.find_one.return_value = {"queryHash": "k", "cachedResult": ["cached"]}
        database.get_collection.side_effect = None
        database.get_collection.return_value = cache_collection

        result = await CachedCollection(source).cached_aggregate(None, [{"$match": {}}])

        assert result == ["cached"]
        source.aggregate.assert_not_awaited()
        database.get_collection.assert_called_with("queryCache")

    @pytest.mark.asyncio
    async def test_cached_map_reduce_inline(self) -> None:
        database = _database({"results": [{"_id": "a", "value": 1}]})
        wrapped = CachedCollection.from_database(database, "events", "mrCache")
        cache_collection = _collection("mrCache", database)
        database.get_collection.side_effect = None
        database.get_collection.return_value = cache_collection

        result = await wrapped.cached_map_reduce(None, MAP_JS, REDUCE_JS, {"out": {"inline": 1}})

        assert result == [{"_id": "a", "value": 1}]
        assert wrapped.name == "events"
        database.command.assert_awaited_once()
        database.get_collection.assert_called_with("mrCache")
        cache_collection.replace_one.assert_awaited_once()

    def test_exposes_collection(self) -> None:
        source = _collection("events")
        wrapped = CachedCollection(source)
        assert wrapped.collection is source
        assert wrapped.name == "events"
