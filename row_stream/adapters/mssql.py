"""SQL Server adapter - sync only, using pyodbc.

PRINT output and other informational messages are read from
``cursor.messages`` after execution and after every fetch. Result-less
leading statements (``SET NOCOUNT``, ``PRINT``, row counts) are skipped
so the returned cursor is positioned on the first result set, if any.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from row_stream.core.connection import ConnectionConfig
from row_stream.core.schema import SemanticType, semantic_type_for

_DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"


def _build_connection_string(config: ConnectionConfig) -> str:
    """Build an ODBC connection string from config fields."""
    if config.extra.get("connection_string"):
        return str(config.extra["connection_string"])
    server = config.host or "localhost"
    if config.port is not None:
        server = f"{server},{config.port}"
    parts = [
        f"DRIVER={{{config.extra.get('odbc_driver', _DEFAULT_ODBC_DRIVER)}}}",
        f"SERVER={server}",
        f"DATABASE={config.database}",
    ]
    if config.user is not None:
        parts.append(f"UID={config.user}")
    if config.password is not None:
        parts.append(f"PWD={config.password}")
    for key, value in config.extra.get("odbc_options", {}).items():
        parts.append(f"{key}={value}")
    return ";".join(parts)


class MssqlSyncAdapter:
    """Synchronous SQL Server adapter using pyodbc."""

    def __init__(self) -> None:
        self._sinks: dict[int, Callable[[str], None]] = {}
        # Last delivered messages list per connection; pyodbc replaces the
        # list on execute and nextset and leaves it in place between fetches
        self._delivered: dict[int, Any] = {}

    @property
    def paramstyle(self) -> str:
        return "qmark"

    def resolve_type(self, type_code: Any) -> SemanticType:
        return semantic_type_for(type_code)

    def add_message_sink(self, connection: Any, sink: Callable[[str], None]) -> int:
        handle = id(connection)
        self._sinks[handle] = sink
        return handle

    def remove_message_sink(self, connection: Any, handle: Any) -> None:
        self._sinks.pop(handle, None)
        self._delivered.pop(handle, None)

    def _drain_messages(self, connection: Any, cursor: Any) -> None:
        sink = self._sinks.get(id(connection))
        if sink is None:
            return
        messages = cursor.messages
        if not messages or messages is self._delivered.get(id(connection)):
            return
        self._delivered[id(connection)] = messages
        for _state, text in messages:
            sink(text)

    def create_pool(self, config: ConnectionConfig) -> list[Any]:
        import pyodbc

        connection_string = _build_connection_string(config)
        pool: list[Any] = []
        for _ in range(config.pool_size):
            pool.append(pyodbc.connect(connection_string, autocommit=False))
        return pool

    def acquire_connection(self, pool: list[Any]) -> Any:
        if not pool:
            raise RuntimeError("No connections available in pool")
        return pool.pop()

    def release_connection(self, connection: Any, pool: list[Any]) -> None:
        connection.timeout = 0
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
        connection.timeout = int(timeout) if timeout else 0
        cursor = connection.cursor()
        if params:
            cursor.execute(sql, params)
        else:
            cursor.execute(sql)
        self._drain_messages(connection, cursor)
        while cursor.description is None and cursor.nextset():
            self._drain_messages(connection, cursor)
        return cursor

    def fetch(self, connection: Any, cursor: Any, timeout: float | None = None) -> Any:
        """Fetch one row, forwarding messages raised while producing it.

        Once the current result set is exhausted, later result sets are
        walked only to deliver their messages.
        """
        row = cursor.fetchone()
        self._drain_messages(connection, cursor)
        if row is None:
            while cursor.nextset():
                self._drain_messages(connection, cursor)
        return row
