"""Query execution engine.

The Engine binds parameters, executes through the adapter and streams
rows through a RowMapper for the requested target. Defaults for
timeouts, batch separator and inter-batch delay come from the
ConnectionConfig.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from contextlib import aclosing, closing
from typing import Any, TypeVar

from row_stream.core.connection import (
    AsyncConnectionManager,
    ConnectionConfig,
    ConnectionManager,
)
from row_stream.core.cursor import (
    CancellationSignal,
    MessageSink,
    stream_query,
    stream_query_async,
)
from row_stream.core.params import ParamsInput
from row_stream.core.script import run_script, run_script_async

T = TypeVar("T")


class Engine:
    """Synchronous query execution engine."""

    def __init__(self, connection_manager: ConnectionManager) -> None:
        self._connection_manager = connection_manager
        self._config = connection_manager.config

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> Engine:
        """Create an Engine from a ConnectionConfig."""
        return cls(ConnectionManager(config))

    def __enter__(self) -> Engine:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._connection_manager.close_pool()

    def stream(
        self,
        query: str,
        target: type[T] = dict,  # type: ignore[assignment]
        params: ParamsInput = None,
        *,
        timeout: float | None = None,
        cancel: CancellationSignal | None = None,
        on_message: MessageSink | None = None,
    ) -> Iterator[T]:
        """Lazily yield one *target* per row of *query*.

        The iterator is single-pass; iterate again by calling stream again.
        """
        return stream_query(
            self._connection_manager,
            query,
            target,
            params,
            timeout=self._config.query_timeout if timeout is None else timeout,
            cancel=cancel,
            on_message=on_message,
        )

    def fetch_all(
        self,
        query: str,
        target: type[T] = dict,  # type: ignore[assignment]
        params: ParamsInput = None,
        **options: Any,
    ) -> list[T]:
        """Fetch all rows mapped to *target*."""
        return list(self.stream(query, target, params, **options))

    def fetch_one(
        self,
        query: str,
        target: type[T] = dict,  # type: ignore[assignment]
        params: ParamsInput = None,
        **options: Any,
    ) -> T | None:
        """Return the first mapped row, or None for an empty result.

        Remaining rows are not fetched.
        """
        with closing(self.stream(query, target, params, **options)) as rows:  # type: ignore[type-var]
            return next(rows, None)

    def run_script(
        self,
        script: str,
        *,
        timeout: float | None = None,
        cancel: CancellationSignal | None = None,
        on_message: MessageSink | None = None,
    ) -> list[str]:
        """Execute a batch-separated script and return its text output."""
        return run_script(
            self._connection_manager,
            script,
            timeout=self._config.script_timeout if timeout is None else timeout,
            cancel=cancel,
            on_message=on_message,
            separator=self._config.batch_separator,
            batch_delay=self._config.batch_delay,
        )


class AsyncEngine:
    """Asynchronous query execution engine."""

    def __init__(self, connection_manager: AsyncConnectionManager) -> None:
        self._connection_manager = connection_manager
        self._config = connection_manager.config

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> AsyncEngine:
        """Create an AsyncEngine from a ConnectionConfig."""
        return cls(AsyncConnectionManager(config))

    async def __aenter__(self) -> AsyncEngine:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._connection_manager.close_pool()

    def stream(
        self,
        query: str,
        target: type[T] = dict,  # type: ignore[assignment]
        params: ParamsInput = None,
        *,
        timeout: float | None = None,
        cancel: CancellationSignal | None = None,
        on_message: MessageSink | None = None,
    ) -> AsyncIterator[T]:
        """Lazily yield one *target* per row of *query* (``async for``)."""
        return stream_query_async(
            self._connection_manager,
            query,
            target,
            params,
            timeout=self._config.query_timeout if timeout is None else timeout,
            cancel=cancel,
            on_message=on_message,
        )

    async def fetch_all(
        self,
        query: str,
        target: type[T] = dict,  # type: ignore[assignment]
        params: ParamsInput = None,
        **options: Any,
    ) -> list[T]:
        """Fetch all rows mapped to *target* asynchronously."""
        return [row async for row in self.stream(query, target, params, **options)]

    async def fetch_one(
        self,
        query: str,
        target: type[T] = dict,  # type: ignore[assignment]
        params: ParamsInput = None,
        **options: Any,
    ) -> T | None:
        """Return the first mapped row, or None for an empty result."""
        async with aclosing(self.stream(query, target, params, **options)) as rows:  # type: ignore[type-var]
            async for row in rows:
                return row
        return None

    async def run_script(
        self,
        script: str,
        *,
        timeout: float | None = None,
        cancel: CancellationSignal | None = None,
        on_message: MessageSink | None = None,
    ) -> list[str]:
        """Execute a batch-separated script asynchronously."""
        return await run_script_async(
            self._connection_manager,
            script,
            timeout=self._config.script_timeout if timeout is None else timeout,
            cancel=cancel,
            on_message=on_message,
            separator=self._config.batch_separator,
            batch_delay=self._config.batch_delay,
        )
