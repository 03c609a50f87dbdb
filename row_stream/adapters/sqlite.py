"""SQLite adapter - sync (sqlite3 stdlib) and async (aiosqlite).

sqlite3 reports no declared column types, so every column resolves to
SemanticType.UNKNOWN. Timeouts are enforced with a progress-handler
deadline that interrupts the running statement. The deadline is armed
for the duration of one execute or one fetch and cleared afterwards, so
a consumer pausing between rows never trips it.
"""

from __future__ import annotations

import sqlite3
import time
from collections.abc import Callable
from typing import Any

from row_stream.core.connection import ConnectionConfig
from row_stream.core.schema import SemanticType

# VM instructions between deadline checks
_PROGRESS_STEPS = 1000


def _deadline_handler(timeout: float) -> Callable[[], bool]:
    deadline = time.monotonic() + timeout

    def _expired() -> bool:
        return time.monotonic() > deadline

    return _expired


class _SqliteCommon:
    @property
    def paramstyle(self) -> str:
        return "named"

    def resolve_type(self, type_code: Any) -> SemanticType:
        return SemanticType.UNKNOWN

    def add_message_sink(self, connection: Any, sink: Callable[[str], None]) -> None:
        """SQLite emits no informational messages."""
        return None

    def remove_message_sink(self, connection: Any, handle: Any) -> None:
        return None


class SqliteSyncAdapter(_SqliteCommon):
    """Synchronous SQLite adapter using stdlib sqlite3."""

    def create_pool(self, config: ConnectionConfig) -> list[sqlite3.Connection]:
        """Create a 'pool' (list of connections) for SQLite."""
        pool: list[sqlite3.Connection] = []
        for _ in range(config.pool_size):
            conn = sqlite3.connect(config.database)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            pool.append(conn)
        return pool

    def acquire_connection(self, pool: list[sqlite3.Connection]) -> sqlite3.Connection:
        """Acquire a connection from the pool."""
        if not pool:
            raise RuntimeError("No connections available in pool")
        return pool.pop()

    def release_connection(
        self, connection: sqlite3.Connection, pool: list[sqlite3.Connection]
    ) -> None:
        """Clear any deadline and return the connection to the pool."""
        connection.set_progress_handler(None, 0)
        pool.append(connection)

    def close_pool(self, pool: list[sqlite3.Connection]) -> None:
        """Close all connections in the pool."""
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: dict[str, Any] | tuple[Any, ...] | None = None,
        timeout: float | None = None,
    ) -> sqlite3.Cursor:
        """Execute SQL and return a cursor."""
        if not timeout:
            return connection.execute(sql, params if params is not None else {})
        connection.set_progress_handler(_deadline_handler(timeout), _PROGRESS_STEPS)
        try:
            return connection.execute(sql, params if params is not None else {})
        finally:
            connection.set_progress_handler(None, 0)

    def fetch(
        self, connection: sqlite3.Connection, cursor: sqlite3.Cursor, timeout: float | None = None
    ) -> Any:
        """Fetch one row under a fresh deadline."""
        if not timeout:
            return cursor.fetchone()
        connection.set_progress_handler(_deadline_handler(timeout), _PROGRESS_STEPS)
        try:
            return cursor.fetchone()
        finally:
            connection.set_progress_handler(None, 0)


class SqliteAsyncAdapter(_SqliteCommon):
    """Asynchronous SQLite adapter using aiosqlite."""

    async def create_pool_async(self, config: ConnectionConfig) -> list[Any]:
        """Create async SQLite connection pool."""
        import aiosqlite

        pool: list[Any] = []
        for _ in range(config.pool_size):
            conn = await aiosqlite.connect(config.database)
            conn.row_factory = aiosqlite.Row
            await conn.execute("PRAGMA journal_mode=WAL")
            pool.append(conn)
        return pool

    async def acquire_connection_async(self, pool: list[Any]) -> Any:
        """Acquire an async connection from the pool."""
        if not pool:
            raise RuntimeError("No connections available in pool")
        return pool.pop()

    async def release_connection_async(self, connection: Any, pool: list[Any]) -> None:
        """Clear any deadline and return the connection to the pool."""
        await connection.set_progress_handler(None, 0)
        pool.append(connection)

    async def close_pool_async(self, pool: list[Any]) -> None:
        """Close all async connections."""
        for conn in pool:
            await conn.close()
        pool.clear()

    async def execute_async(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | tuple[Any, ...] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Execute SQL asynchronously and return a cursor."""
        if not timeout:
            return await connection.execute(sql, params if params is not None else {})
        await connection.set_progress_handler(_deadline_handler(timeout), _PROGRESS_STEPS)
        try:
            return await connection.execute(sql, params if params is not None else {})
        finally:
            await connection.set_progress_handler(None, 0)

    async def fetch_async(self, connection: Any, cursor: Any, timeout: float | None = None) -> Any:
        """Fetch one row under a fresh deadline."""
        if not timeout:
            return await cursor.fetchone()
        await connection.set_progress_handler(_deadline_handler(timeout), _PROGRESS_STEPS)
        try:
            return await cursor.fetchone()
        finally:
            await connection.set_progress_handler(None, 0)
