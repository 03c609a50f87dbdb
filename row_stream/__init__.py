"""RowStream - streaming, type-directed mapping of SQL results."""

from __future__ import annotations

from row_stream.core.connection import (
    AsyncConnectionManager,
    ConnectionConfig,
    ConnectionManager,
)
from row_stream.core.cursor import CancellationSignal, stream_query, stream_query_async
from row_stream.core.engine import AsyncEngine, Engine
from row_stream.core.enums import DatabaseBackend
from row_stream.core.exceptions import (
    AdapterError,
    ColumnMismatchError,
    ConnectionError,  # noqa: A004
    EmbeddedDocumentError,
    ExecutionError,
    MappingError,
    ParameterBindingError,
    PoolError,
    QueryCancelledError,
    QueryExecutionError,
    RowStreamError,
    ScriptBatchError,
    TargetConstructionError,
    UnsupportedTargetError,
    ValueCoercionError,
)
from row_stream.core.params import Parameter, params
from row_stream.core.schema import ColumnDescriptor, ColumnSchema, SemanticType
from row_stream.core.script import run_script, run_script_async, split_batches
from row_stream.mapping.row import RowMapper
from row_stream.mapping.shape import TargetShape

__all__ = [
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    "AsyncConnectionManager",
    # Engine
    "Engine",
    "AsyncEngine",
    # Streaming
    "stream_query",
    "stream_query_async",
    "CancellationSignal",
    # Scripts
    "split_batches",
    "run_script",
    "run_script_async",
    # Parameters
    "Parameter",
    "params",
    # Schema
    "ColumnDescriptor",
    "ColumnSchema",
    "SemanticType",
    # Mapping
    "RowMapper",
    "TargetShape",
    # Enums
    "DatabaseBackend",
    # Exceptions
    "RowStreamError",
    "ExecutionError",
    "QueryExecutionError",
    "ParameterBindingError",
    "QueryCancelledError",
    "ScriptBatchError",
    "MappingError",
    "UnsupportedTargetError",
    "ColumnMismatchError",
    "TargetConstructionError",
    "ValueCoercionError",
    "EmbeddedDocumentError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
]
