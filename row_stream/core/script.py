"""Multi-batch script execution.

A script is split on lines holding only the batch separator (``GO`` by
default, any case). Batches run in order, one statement path each, with
a short pause between them so the server can finish asynchronous work
(index rebuilds, statistics updates) triggered by the previous batch.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from functools import lru_cache

from row_stream.core.connection import AsyncConnectionManager, ConnectionManager
from row_stream.core.cursor import (
    CancellationSignal,
    MessageSink,
    check_cancelled,
    stream_query,
    stream_query_async,
)
from row_stream.core.exceptions import QueryCancelledError, ScriptBatchError

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = "GO"


@lru_cache(maxsize=16)
def _separator_pattern(separator: str) -> re.Pattern[str]:
    # [^\S\n] is whitespace other than newline, so \r and tabs are tolerated
    return re.compile(
        rf"^[^\S\n]*{re.escape(separator)}[^\S\n]*$",
        re.IGNORECASE | re.MULTILINE,
    )


def split_batches(script: str, separator: str = DEFAULT_SEPARATOR) -> list[str]:
    """Split *script* into trimmed, non-empty batches.

    Example:
        >>> split_batches("SELECT 1\\nGO\\n\\nSELECT 2\\nGO")
        ['SELECT 1', 'SELECT 2']
    """
    chunks = _separator_pattern(separator).split(script)
    return [chunk.strip() for chunk in chunks if chunk.strip()]


def _batch_label(index: int, total: int) -> str:
    return f"batch {index + 1}/{total}"


def run_script(
    connection_manager: ConnectionManager,
    script: str,
    *,
    timeout: float | None = None,
    cancel: CancellationSignal | None = None,
    on_message: MessageSink | None = None,
    separator: str = DEFAULT_SEPARATOR,
    batch_delay: float = 0.5,
) -> list[str]:
    """Run every batch of *script* in order and collect their text output.

    Each batch yields its first column as text. Output lines of all batches
    are concatenated in order.

    Raises:
        ScriptBatchError: A batch failed; carries its zero-based index.
        QueryCancelledError: *cancel* was set; not wrapped.
    """
    batches = split_batches(script, separator)
    lines: list[str] = []
    for index, batch in enumerate(batches):
        if index > 0 and batch_delay > 0:
            time.sleep(batch_delay)
        label = _batch_label(index, len(batches))
        check_cancelled(cancel, label, 0)
        logger.debug(f"Running script {label}")
        try:
            lines.extend(
                stream_query(
                    connection_manager,
                    batch,
                    str,
                    timeout=timeout,
                    cancel=cancel,
                    on_message=on_message,
                    label=label,
                )
            )
        except QueryCancelledError:
            raise
        except Exception as e:
            logger.debug(f"Script {label} failed: {e}")
            raise ScriptBatchError(index, str(e)) from e
    return lines


async def run_script_async(
    connection_manager: AsyncConnectionManager,
    script: str,
    *,
    timeout: float | None = None,
    cancel: CancellationSignal | None = None,
    on_message: MessageSink | None = None,
    separator: str = DEFAULT_SEPARATOR,
    batch_delay: float = 0.5,
) -> list[str]:
    """Async counterpart of run_script; pauses with ``asyncio.sleep``."""
    batches = split_batches(script, separator)
    lines: list[str] = []
    for index, batch in enumerate(batches):
        if index > 0 and batch_delay > 0:
            await asyncio.sleep(batch_delay)
        label = _batch_label(index, len(batches))
        check_cancelled(cancel, label, 0)
        logger.debug(f"Running script {label}")
        try:
            async for line in stream_query_async(
                connection_manager,
                batch,
                str,
                timeout=timeout,
                cancel=cancel,
                on_message=on_message,
                label=label,
            ):
                lines.append(line)
        except QueryCancelledError:
            raise
        except Exception as e:
            logger.debug(f"Script {label} failed: {e}")
            raise ScriptBatchError(index, str(e)) from e
    return lines
