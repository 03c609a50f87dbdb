"""Integration test for AsyncEngine against an in-memory SQLite database."""

from __future__ import annotations

import asyncio
from contextlib import aclosing
from dataclasses import dataclass

import pytest

from row_stream.core.connection import AsyncConnectionManager
from row_stream.core.engine import AsyncEngine
from row_stream.core.exceptions import (
    QueryCancelledError,
    QueryExecutionError,
    ScriptBatchError,
)


@dataclass
class Person:
    id: int
    name: str


class TestAsyncStreaming:
    async def test_fetch_all_structured(self, async_engine: AsyncEngine) -> None:
        rows = await async_engine.fetch_all("SELECT id, name, addr FROM people ORDER BY id", Person)
        assert rows == [Person(1, "Alice"), Person(2, "Bob")]

    async def test_dict_target_parses_documents(self, async_engine: AsyncEngine) -> None:
        row = await async_engine.fetch_one("SELECT tags FROM people WHERE id = :id", dict, {"id": 1})
        assert row == {"tags": ["a", "b"]}

    async def test_fetch_one_releases_connection(
        self, async_engine: AsyncEngine, async_manager: AsyncConnectionManager
    ) -> None:
        assert await async_engine.fetch_one("SELECT name FROM people ORDER BY id", str) == "Alice"
        assert len(async_manager._pool) == 1
        assert await async_engine.fetch_one("SELECT name FROM people WHERE id = 99", str) is None

    async def test_early_exit_with_aclosing(
        self, async_engine: AsyncEngine, async_manager: AsyncConnectionManager
    ) -> None:
        async with aclosing(async_engine.stream("SELECT id FROM people ORDER BY id", int)) as rows:
            async for value in rows:
                assert value == 1
                break
        assert len(async_manager._pool) == 1

    async def test_cancel_with_asyncio_event(
        self, async_engine: AsyncEngine, async_manager: AsyncConnectionManager
    ) -> None:
        cancel = asyncio.Event()
        seen: list[int] = []
        with pytest.raises(QueryCancelledError):
            async for value in async_engine.stream(
                "SELECT id FROM people ORDER BY id", int, cancel=cancel
            ):
                seen.append(value)
                cancel.set()
        assert seen == [1]
        assert len(async_manager._pool) == 1

    async def test_driver_error_wrapped(self, async_engine: AsyncEngine) -> None:
        with pytest.raises(QueryExecutionError):
            await async_engine.fetch_all("SELECT * FROM missing_table")

    async def test_timeout_does_not_count_consumer_pauses(self, async_engine: AsyncEngine) -> None:
        counting = (
            "WITH RECURSIVE n(i) AS (SELECT 1 UNION ALL SELECT i + 1 FROM n LIMIT 2000) "
            "SELECT i FROM n"
        )
        values: list[int] = []
        async with aclosing(async_engine.stream(counting, int, timeout=0.5)) as rows:
            async for value in rows:
                if not values:
                    await asyncio.sleep(0.7)
                values.append(value)
        assert len(values) == 2000



class TestAsyncScripts:
    async def test_run_script(self, async_engine: AsyncEngine) -> None:
        script = "CREATE TABLE notes (body TEXT)\nGO\nINSERT INTO notes VALUES ('a')\nGO\nSELECT body FROM notes"
        assert await async_engine.run_script(script) == ["a"]

    async def test_failed_batch(self, async_engine: AsyncEngine) -> None:
        with pytest.raises(ScriptBatchError) as exc_info:
            await async_engine.run_script("SELECT 1\nGO\nSELEC 2")
        assert exc_info.value.batch_index == 1
