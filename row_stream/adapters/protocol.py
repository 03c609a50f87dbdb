"""Database adapter protocols.

Every adapter module implements these protocols so the cursor layer can
stay driver-independent.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from row_stream.core.connection import ConnectionConfig
from row_stream.core.schema import SemanticType

MessageSink = Callable[[str], None]


@runtime_checkable
class SyncAdapter(Protocol):
    """Synchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Parameter binding style: 'named', 'pyformat' or 'qmark'."""
        ...

    def create_pool(self, config: ConnectionConfig) -> Any:
        """Create a connection pool."""
        ...

    def acquire_connection(self, pool: Any) -> Any:
        """Acquire a connection from the pool."""
        ...

    def release_connection(self, connection: Any, pool: Any) -> None:
        """Release a connection back to the pool, clearing per-call state."""
        ...

    def close_pool(self, pool: Any) -> None:
        """Close the pool and release all connections."""
        ...

    def execute(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | tuple[Any, ...] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Execute SQL and return a cursor positioned before the first row."""
        ...

    def fetch(self, connection: Any, cursor: Any, timeout: float | None = None) -> Any:
        """Fetch the next row, or None when the result set is exhausted.

        *timeout* bounds this fetch only; time spent by the consumer between
        fetches is never counted.
        """
        ...

    def resolve_type(self, type_code: Any) -> SemanticType:
        """Map a ``cursor.description`` type code to a SemanticType."""
        ...

    def add_message_sink(self, connection: Any, sink: MessageSink) -> Any:
        """Route server informational messages to *sink*; returns a handle."""
        ...

    def remove_message_sink(self, connection: Any, handle: Any) -> None:
        """Stop routing messages for a handle from add_message_sink."""
        ...


@runtime_checkable
class AsyncAdapter(Protocol):
    """Asynchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Parameter binding style: 'named', 'pyformat' or 'qmark'."""
        ...

    async def create_pool_async(self, config: ConnectionConfig) -> Any:
        """Create an async connection pool."""
        ...

    async def acquire_connection_async(self, pool: Any) -> Any:
        """Acquire a connection from the async pool."""
        ...

    async def release_connection_async(self, connection: Any, pool: Any) -> None:
        """Release a connection back to the async pool."""
        ...

    async def close_pool_async(self, pool: Any) -> None:
        """Close the async pool."""
        ...

    async def execute_async(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | tuple[Any, ...] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Execute SQL asynchronously and return a cursor."""
        ...

    async def fetch_async(
        self, connection: Any, cursor: Any, timeout: float | None = None
    ) -> Any:
        """Fetch the next row asynchronously, or None when exhausted."""
        ...

    def resolve_type(self, type_code: Any) -> SemanticType:
        """Map a ``cursor.description`` type code to a SemanticType."""
        ...

    def add_message_sink(self, connection: Any, sink: MessageSink) -> Any:
        """Route server informational messages to *sink*; returns a handle."""
        ...

    def remove_message_sink(self, connection: Any, handle: Any) -> None:
        """Stop routing messages for a handle from add_message_sink."""
        ...
