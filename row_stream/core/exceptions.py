"""RowStream exception hierarchy.

All exceptions are RowStream-specific. Raw driver exceptions are wrapped
and chained, never exposed directly to callers.
"""

from __future__ import annotations


class RowStreamError(Exception):
    """Base exception for all RowStream errors."""


# --- Execution ---


class ExecutionError(RowStreamError):
    """Base for query execution errors."""


class QueryExecutionError(ExecutionError):
    """Raised when the driver fails to execute a statement or fetch a row."""

    def __init__(self, label: str, detail: str) -> None:
        self.label = label
        self.detail = detail
        super().__init__(f"Execution of {label} failed: {detail}")


class ParameterBindingError(ExecutionError):
    """Raised on parameter binding failures."""

    def __init__(self, label: str, detail: str) -> None:
        self.label = label
        super().__init__(f"Parameter binding error for {label}: {detail}")


class QueryCancelledError(ExecutionError):
    """Raised when a stream observes its cancellation signal.

    Distinct from failures: nothing went wrong with the statement itself.
    """

    def __init__(self, rows_yielded: int = 0) -> None:
        self.rows_yielded = rows_yielded
        super().__init__(f"Query cancelled after {rows_yielded} row(s)")


class ScriptBatchError(ExecutionError):
    """Raised when one batch of a script fails; later batches are not run."""

    def __init__(self, batch_index: int, detail: str) -> None:
        self.batch_index = batch_index
        self.detail = detail
        super().__init__(f"Script batch {batch_index} failed: {detail}")


# --- Mapping ---


class MappingError(RowStreamError):
    """Base for mapping errors."""


class UnsupportedTargetError(MappingError):
    """Raised when a target cannot be resolved to any shape."""

    def __init__(self, target: object) -> None:
        self.target = target
        super().__init__(f"Cannot map rows to {target!r}: expected a class")


class ColumnMismatchError(MappingError):
    """Raised when required fields cannot be mapped from row columns."""

    def __init__(self, target_class: str, missing_fields: list[str]) -> None:
        self.target_class = target_class
        self.missing_fields = missing_fields
        super().__init__(f"Cannot map to {target_class}: missing fields {missing_fields}")


class TargetConstructionError(MappingError):
    """Raised when the target class rejects the mapped values."""

    def __init__(self, target_class: str, detail: str) -> None:
        self.target_class = target_class
        self.detail = detail
        super().__init__(f"Cannot construct {target_class}: {detail}")


class ValueCoercionError(MappingError):
    """Raised when a column value cannot be converted to the declared type."""

    def __init__(self, column: str, expected_type: str, detail: str = "") -> None:
        self.column = column
        self.expected_type = expected_type
        message = f"Cannot convert column '{column}' to {expected_type}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class EmbeddedDocumentError(MappingError):
    """Raised when a column's text looks like JSON but does not parse."""

    def __init__(self, column: str, detail: str) -> None:
        self.column = column
        super().__init__(f"Malformed embedded document in column '{column}': {detail}")


# --- Adapter ---


class AdapterError(RowStreamError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""
