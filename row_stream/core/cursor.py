"""Streaming cursor adapter.

Wraps a forward-only driver cursor as a lazy, single-pass iterator of
mapped rows. Each pull checks the cancellation signal, fetches exactly
one row and maps it; nothing is read ahead. A signal already set on the
first pull stops the statement before it is sent to the server.

The connection and cursor belong to one call. Both are released on every
exit path: exhaustion, driver failure, mapping failure, cancellation and
the consumer closing the generator early. Exhaustion and early close
commit; failures and cancellation roll back.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Iterator
from typing import Any, Protocol

from row_stream.core.connection import AsyncConnectionManager, ConnectionManager
from row_stream.core.exceptions import QueryCancelledError, QueryExecutionError
from row_stream.core.params import ParamsInput, bind_params
from row_stream.core.schema import capture_schema
from row_stream.mapping.row import RowMapper

logger = logging.getLogger(__name__)

MessageSink = Callable[[str], None]


class CancellationSignal(Protocol):
    """Anything with ``is_set()``: threading.Event, asyncio.Event."""

    def is_set(self) -> bool: ...


def check_cancelled(cancel: CancellationSignal | None, label: str, rows: int) -> None:
    if cancel is not None and cancel.is_set():
        logger.debug(f"{label} cancelled after {rows} row(s)")
        raise QueryCancelledError(rows)


def stream_query(
    connection_manager: ConnectionManager,
    sql: str,
    target: Any = dict,
    params: ParamsInput = None,
    *,
    timeout: float | None = None,
    cancel: CancellationSignal | None = None,
    on_message: MessageSink | None = None,
    label: str = "<inline>",
) -> Iterator[Any]:
    """Execute *sql* and lazily yield one mapped *target* per row.

    Nothing is executed until the first ``next()``.

    Raises:
        QueryExecutionError: The driver failed to execute or fetch.
        QueryCancelledError: *cancel* was set before execution or a fetch.
        MappingError: A row could not be mapped; earlier rows stay valid.
    """
    adapter = connection_manager.adapter
    sql, bound = bind_params(sql, params, adapter.paramstyle, label)

    with connection_manager.get_connection() as conn:
        handle = adapter.add_message_sink(conn, on_message) if on_message is not None else None
        cursor = None
        failed = True
        rows = 0
        try:
            check_cancelled(cancel, label, rows)
            logger.debug(f"Executing {label}: {sql[:60]}")
            try:
                cursor = adapter.execute(conn, sql, bound, timeout)
            except Exception as e:
                raise QueryExecutionError(label, str(e)) from e

            schema = capture_schema(cursor, adapter.resolve_type)
            if schema:
                mapper = RowMapper.for_target(target, schema)
                while True:
                    check_cancelled(cancel, label, rows)
                    try:
                        row = adapter.fetch(conn, cursor, timeout)
                    except Exception as e:
                        raise QueryExecutionError(label, str(e)) from e
                    if row is None:
                        break
                    yield mapper.map_row(row)
                    rows += 1

            failed = False
            logger.debug(f"{label} returned {rows} row(s)")
        except GeneratorExit:
            failed = False
            raise
        finally:
            try:
                if cursor is not None:
                    cursor.close()
            except Exception:
                failed = True
                raise
            finally:
                try:
                    if failed:
                        conn.rollback()
                    else:
                        conn.commit()
                finally:
                    if handle is not None:
                        adapter.remove_message_sink(conn, handle)


async def stream_query_async(
    connection_manager: AsyncConnectionManager,
    sql: str,
    target: Any = dict,
    params: ParamsInput = None,
    *,
    timeout: float | None = None,
    cancel: CancellationSignal | None = None,
    on_message: MessageSink | None = None,
    label: str = "<inline>",
) -> AsyncIterator[Any]:
    """Async counterpart of stream_query; suspends at every fetch.

    Consumers that may stop early should wrap the iterator in
    ``contextlib.aclosing`` so the connection is released immediately.
    """
    adapter = connection_manager.adapter
    sql, bound = bind_params(sql, params, adapter.paramstyle, label)

    async with connection_manager.get_connection() as conn:
        handle = adapter.add_message_sink(conn, on_message) if on_message is not None else None
        cursor = None
        failed = True
        rows = 0
        try:
            check_cancelled(cancel, label, rows)
            logger.debug(f"Executing {label}: {sql[:60]}")
            try:
                cursor = await adapter.execute_async(conn, sql, bound, timeout)
            except Exception as e:
                raise QueryExecutionError(label, str(e)) from e

            schema = capture_schema(cursor, adapter.resolve_type)
            if schema:
                mapper = RowMapper.for_target(target, schema)
                while True:
                    check_cancelled(cancel, label, rows)
                    try:
                        row = await adapter.fetch_async(conn, cursor, timeout)
                    except Exception as e:
                        raise QueryExecutionError(label, str(e)) from e
                    if row is None:
                        break
                    yield mapper.map_row(row)
                    rows += 1

            failed = False
            logger.debug(f"{label} returned {rows} row(s)")
        except GeneratorExit:
            failed = False
            raise
        finally:
            try:
                if cursor is not None:
                    await cursor.close()
            except Exception:
                failed = True
                raise
            finally:
                try:
                    if failed:
                        await conn.rollback()
                    else:
                        await conn.commit()
                finally:
                    if handle is not None:
                        adapter.remove_message_sink(conn, handle)
