"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest

from row_stream.core.connection import (
    AsyncConnectionManager,
    ConnectionConfig,
    ConnectionManager,
)
from row_stream.core.engine import AsyncEngine, Engine

CREATE_PEOPLE = """
CREATE TABLE people (
    id      INTEGER PRIMARY KEY,
    name    TEXT NOT NULL,
    addr    TEXT,
    tags    TEXT,
    status  TEXT,
    born    TEXT,
    score   REAL
)
"""

SEED_PEOPLE = [
    "INSERT INTO people VALUES (1, 'Alice', '{\"city\": \"X\"}', '[\"a\", \"b\"]', "
    "'active', '1990-05-01', 9.5)",
    "INSERT INTO people VALUES (2, 'Bob', NULL, NULL, 'inactive', NULL, NULL)",
]


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config with no pause between batches."""
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1, batch_delay=0)


@pytest.fixture
def manager(sqlite_config: ConnectionConfig) -> Iterator[ConnectionManager]:
    """Connection manager over a seeded in-memory database."""
    mgr = ConnectionManager(sqlite_config)
    with mgr.get_connection() as conn:
        conn.execute(CREATE_PEOPLE)
        for statement in SEED_PEOPLE:
            conn.execute(statement)
        conn.commit()
    yield mgr
    mgr.close_pool()


@pytest.fixture
def engine(manager: ConnectionManager) -> Engine:
    return Engine(manager)


@pytest.fixture
async def async_manager(sqlite_config: ConnectionConfig) -> AsyncIterator[AsyncConnectionManager]:
    """Async connection manager over a seeded in-memory database."""
    mgr = AsyncConnectionManager(sqlite_config)
    async with mgr.get_connection() as conn:
        await conn.execute(CREATE_PEOPLE)
        for statement in SEED_PEOPLE:
            await conn.execute(statement)
        await conn.commit()
    yield mgr
    await mgr.close_pool()


@pytest.fixture
def async_engine(async_manager: AsyncConnectionManager) -> AsyncEngine:
    return AsyncEngine(async_manager)
