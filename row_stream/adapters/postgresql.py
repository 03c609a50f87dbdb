"""PostgreSQL adapter - sync and async using psycopg (v3+).

Queries run on named server-side cursors, so each fetch pulls one row
from the server instead of the whole result set landing in client memory
at execute time. Statements that DECLARE cannot wrap (DDL, DML, CALL) run
on an ordinary client-side cursor.
"""

from __future__ import annotations

import itertools
import re
from collections.abc import Callable
from typing import Any

from row_stream.core.connection import ConnectionConfig
from row_stream.core.schema import SemanticType

# Applies to the current transaction only; cleared by commit/rollback
_SET_TIMEOUT = "SELECT set_config('statement_timeout', %s, true)"

# Leading comments and parentheses are skipped
_QUERY_PATTERN = re.compile(
    r"^(?:\s|--[^\n]*|/\*.*?\*/|\()*(?:SELECT|WITH|VALUES|TABLE)\b",
    re.IGNORECASE | re.DOTALL,
)

_cursor_ids = itertools.count(1)


def is_query(sql: str) -> bool:
    """True when *sql* is a statement a server-side cursor can DECLARE."""
    return _QUERY_PATTERN.match(sql) is not None


def _cursor_name() -> str:
    return f"row_stream_{next(_cursor_ids)}"


_TYPE_NAMES: dict[str, SemanticType] = {
    "text": SemanticType.TEXT,
    "varchar": SemanticType.TEXT,
    "bpchar": SemanticType.TEXT,
    "char": SemanticType.TEXT,
    "name": SemanticType.TEXT,
    "citext": SemanticType.TEXT,
    "xml": SemanticType.TEXT,
    "int2": SemanticType.INTEGER,
    "int4": SemanticType.INTEGER,
    "int8": SemanticType.INTEGER,
    "oid": SemanticType.INTEGER,
    "float4": SemanticType.FLOAT,
    "float8": SemanticType.FLOAT,
    "numeric": SemanticType.DECIMAL,
    "money": SemanticType.DECIMAL,
    "bool": SemanticType.BOOLEAN,
    "timestamp": SemanticType.DATETIME,
    "timestamptz": SemanticType.DATETIME,
    "date": SemanticType.DATE,
    "time": SemanticType.TIME,
    "timetz": SemanticType.TIME,
    "interval": SemanticType.INTERVAL,
    "uuid": SemanticType.UUID,
    "bytea": SemanticType.BINARY,
    "json": SemanticType.JSON,
    "jsonb": SemanticType.JSON,
}


def _build_conninfo(config: ConnectionConfig) -> str:
    """Build a libpq connection string from config fields."""
    if config.extra.get("connection_string"):
        return str(config.extra["connection_string"])
    parts: list[str] = []
    if config.host is not None:
        parts.append(f"host={config.host}")
    if config.port is not None:
        parts.append(f"port={config.port}")
    if config.user is not None:
        parts.append(f"user={config.user}")
    if config.password is not None:
        parts.append(f"password={config.password}")
    parts.append(f"dbname={config.database}")
    return " ".join(parts)


def _timeout_ms(timeout: float) -> str:
    return str(int(timeout * 1000))


class _PostgresqlCommon:
    @property
    def paramstyle(self) -> str:
        return "pyformat"

    def resolve_type(self, type_code: Any) -> SemanticType:
        from psycopg.postgres import types as pg_types

        info = pg_types.get(type_code)
        if info is None:
            return SemanticType.UNKNOWN
        return _TYPE_NAMES.get(info.name, SemanticType.UNKNOWN)

    def add_message_sink(self, connection: Any, sink: Callable[[str], None]) -> Any:
        """Forward NOTICE/INFO messages (RAISE NOTICE, VACUUM VERBOSE ...)."""

        def _handler(diagnostic: Any) -> None:
            sink(diagnostic.message_primary or "")

        connection.add_notice_handler(_handler)
        return _handler

    def remove_message_sink(self, connection: Any, handle: Any) -> None:
        if handle is not None:
            connection.remove_notice_handler(handle)


class PostgresqlSyncAdapter(_PostgresqlCommon):
    """Synchronous PostgreSQL adapter using psycopg (v3+)."""

    def create_pool(self, config: ConnectionConfig) -> list[Any]:
        import psycopg

        conninfo = _build_conninfo(config)
        pool: list[Any] = []
        for _ in range(config.pool_size):
            pool.append(psycopg.connect(conninfo))
        return pool

    def acquire_connection(self, pool: list[Any]) -> Any:
        if not pool:
            raise RuntimeError("No connections available in pool")
        return pool.pop()

    def release_connection(self, connection: Any, pool: list[Any]) -> None:
        pool.append(connection)

    def close_pool(self, pool: list[Any]) -> None:
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | tuple[Any, ...] | None = None,
        timeout: float | None = None,
    ) -> Any:
        if timeout:
            connection.execute(_SET_TIMEOUT, (_timeout_ms(timeout),))
        if not is_query(sql):
            return connection.execute(sql, params)
        cursor = connection.cursor(name=_cursor_name())
        cursor.execute(sql, params)
        return cursor

    def fetch(self, connection: Any, cursor: Any, timeout: float | None = None) -> Any:
        return cursor.fetchone()


class PostgresqlAsyncAdapter(_PostgresqlCommon):
    """Asynchronous PostgreSQL adapter using psycopg (v3+) async support."""

    async def create_pool_async(self, config: ConnectionConfig) -> list[Any]:
        import psycopg

        conninfo = _build_conninfo(config)
        pool: list[Any] = []
        for _ in range(config.pool_size):
            pool.append(await psycopg.AsyncConnection.connect(conninfo))
        return pool

    async def acquire_connection_async(self, pool: list[Any]) -> Any:
        if not pool:
            raise RuntimeError("No connections available in pool")
        return pool.pop()

    async def release_connection_async(self, connection: Any, pool: list[Any]) -> None:
        pool.append(connection)

    async def close_pool_async(self, pool: list[Any]) -> None:
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
        if timeout:
            await connection.execute(_SET_TIMEOUT, (_timeout_ms(timeout),))
        if not is_query(sql):
            return await connection.execute(sql, params)
        cursor = connection.cursor(name=_cursor_name())
        await cursor.execute(sql, params)
        return cursor

    async def fetch_async(
        self, connection: Any, cursor: Any, timeout: float | None = None
    ) -> Any:
        return await cursor.fetchone()
