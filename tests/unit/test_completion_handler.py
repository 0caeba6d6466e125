"""Unit tests for the handler-style cached_aggregate / cached_map_reduce."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from querycache.providers.memory.memory_store import MemoryCollectionResolver
from querycache.services.query_cache import QueryCache, cached_aggregate, cached_map_reduce
from querycache.utils.errors import CacheWriteError, ConfigurationError, QueryExecutionError

MAP_JS = "function () { emit(this.category, this.amount); }"
REDUCE_JS = "function (key, values) { return Array.sum(values); }"


class TestCachedAggregateHandler:
    @pytest.mark.asyncio
    async def test_success_reported_once(
        self, executor: AsyncMock, resolver: MagicMock, pipeline: list, aggregate_result: list,
    ) -> None:
        complete = MagicMock()

        await cached_aggregate(executor, resolver, "myCache", pipeline, complete)

        complete.assert_called_once_with(None, aggregate_result)
        resolver.resolve_collection.assert_called_once_with("myCache")
        executor.execute_aggregate.assert_awaited_once_with(pipeline)

    @pytest.mark.asyncio
    async def test_options_argument_forwarded(
        self, executor: AsyncMock, resolver: MagicMock, pipeline: list,
    ) -> None:
        complete = MagicMock()

        await cached_aggregate(
            executor, resolver, {"cacheCollectionName": "c"}, pipeline, {"allowDiskUse": True},
            complete,
        )

        executor.execute_aggregate.assert_awaited_once_with(pipeline, {"allowDiskUse": True})
        complete.assert_called_once()

    @pytest.mark.asyncio
    async def test_error_passed_to_handler_not_raised(
        self, executor: AsyncMock, resolver: MagicMock, pipeline: list,
    ) -> None:
        executor.execute_aggregate.side_effect = RuntimeError("boom")
        complete = MagicMock()

        await cached_aggregate(executor, resolver, "myCache", pipeline, complete)

        complete.assert_called_once()
        err, result = complete.call_args.args
        assert isinstance(err, QueryExecutionError)
        assert result is None

    @pytest.mark.asyncio
    async def test_write_error_passed_to_handler(
        self, executor: AsyncMock, resolver: MagicMock, cache_handle: AsyncMock, pipeline: list,
    ) -> None:
        cache_handle.upsert.side_effect = RuntimeError("disk full")
        complete = MagicMock()

        await cached_aggregate(executor, resolver, "myCache", pipeline, complete)

        err, result = complete.call_args.args
        assert isinstance(err, CacheWriteError)
        assert result is None

    @pytest.mark.asyncio
    async def test_async_handler_is_awaited(
        self, executor: AsyncMock, resolver: MagicMock, pipeline: list, aggregate_result: list,
    ) -> None:
        complete = AsyncMock()

        await cached_aggregate(executor, resolver, "myCache", pipeline, complete)

        complete.assert_awaited_once_with(None, aggregate_result)

    @pytest.mark.asyncio
    async def test_handler_exception_propagates_without_second_call(
        self, executor: AsyncMock, resolver: MagicMock, pipeline: list,
    ) -> None:
        complete = MagicMock(side_effect=RuntimeError("handler bug"))

        with pytest.raises(RuntimeError, match="handler bug"):
            await cached_aggregate(executor, resolver, "myCache", pipeline, complete)

        assert complete.call_count == 1

    @pytest.mark.asyncio
    async def test_shares_keys_with_coroutine_api(
        self, executor: AsyncMock, pipeline: list, aggregate_result: list,
    ) -> None:
        store = MemoryCollectionResolver()
        complete = MagicMock()

        await cached_aggregate(executor, store, "myCache", pipeline, complete)
        result = await QueryCache(executor, store).aggregate("myCache", pipeline)

        assert result == aggregate_result
        executor.execute_aggregate.assert_awaited_once()


class TestCachedMapReduceHandler:
    @pytest.mark.asyncio
    async def test_inline_miss_then_hit(self, executor: AsyncMock) -> None:
        store = MemoryCollectionResolver()
        rows = [{"_id": "a", "value": 3}]
        executor.execute_map_reduce.return_value = rows
        options = {"out": {"inline": 1}}
        first, second = MagicMock(), MagicMock()

        await cached_map_reduce(executor, store, "mrCache", MAP_JS, REDUCE_JS, options, first)
        await cached_map_reduce(executor, store, "mrCache", MAP_JS, REDUCE_JS, options, second)

        first.assert_called_once_with(None, rows)
        second.assert_called_once_with(None, rows)
        executor.execute_map_reduce.assert_awaited_once_with(MAP_JS, REDUCE_JS, options)

    @pytest.mark.asyncio
    async def test_output_collection_hit_returns_handle(self, executor: AsyncMock) -> None:
        store = MemoryCollectionResolver()
        executor.execute_map_reduce.return_value = store.resolve_collection("mr_totals")
        options = {"out": "mr_totals"}
        first, second = MagicMock(), MagicMock()

        await cached_map_reduce(executor, store, "mrCache", MAP_JS, REDUCE_JS, options, first)
        await cached_map_reduce(executor, store, "mrCache", MAP_JS, REDUCE_JS, options, second)

        (stored,) = store.resolve_collection("mrCache").documents
        assert stored["cachedResult"] == "mr_totals"
        err, handle = second.call_args.args
        assert err is None
        assert handle.name == "mr_totals"
        executor.execute_map_reduce.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_error_passed_to_handler(self, executor: AsyncMock, resolver: MagicMock) -> None:
        executor.execute_map_reduce.side_effect = RuntimeError("JS error")
        complete = MagicMock()

        await cached_map_reduce(executor, resolver, "mrCache", MAP_JS, REDUCE_JS, complete)

        err, result = complete.call_args.args
        assert isinstance(err, QueryExecutionError)
        assert result is None


class TestHandlerArgumentNormalization:
    @pytest.mark.asyncio
    async def test_invalid_option_values_passed_to_handler(
        self, executor: AsyncMock, resolver: MagicMock, pipeline: list,
    ) -> None:
        complete = MagicMock()

        await cached_aggregate(executor, resolver, {"cacheCollectionName": 123}, pipeline, complete)

        err, result = complete.call_args.args
        assert isinstance(err, ConfigurationError)
        assert isinstance(err.__cause__, TypeError)
        assert result is None
        executor.execute_aggregate.assert_not_awaited()
        resolver.resolve_collection.assert_not_called()

    @pytest.mark.asyncio
    async def test_unsupported_options_type_passed_to_handler(
        self, executor: AsyncMock, resolver: MagicMock,
    ) -> None:
        complete = MagicMock()

        await cached_map_reduce(executor, resolver, 42, MAP_JS, REDUCE_JS, complete)

        err, _ = complete.call_args.args
        assert isinstance(err, ConfigurationError)

    @pytest.mark.asyncio
    async def test_trailing_none_options_share_key_with_coroutine_api(
        self, executor: AsyncMock, pipeline: list, aggregate_result: list,
    ) -> None:
        store = MemoryCollectionResolver()
        complete = MagicMock()

        await cached_aggregate(executor, store, "c", pipeline, None, complete)
        result = await QueryCache(executor, store).aggregate("c", pipeline, None)

        complete.assert_called_once_with(None, aggregate_result)
        assert result == aggregate_result
        assert executor.execute_aggregate.await_count == 1
        assert len(store.resolve_collection("c").documents) == 1
