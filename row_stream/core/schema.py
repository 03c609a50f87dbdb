"""Column schema captured from a cursor.

The schema is read once per execution, before the first row is fetched,
and shared read-only by every row of that execution.
"""

from __future__ import annotations

import datetime
import decimal
import uuid
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any


class SemanticType(Enum):
    """Driver-independent tag for a column's declared type."""

    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    INTERVAL = "interval"
    UUID = "uuid"
    BINARY = "binary"
    JSON = "json"
    UNKNOWN = "unknown"


# bool must precede int, datetime must precede date (subclass order)
_PYTHON_TYPES: tuple[tuple[type, SemanticType], ...] = (
    (str, SemanticType.TEXT),
    (bool, SemanticType.BOOLEAN),
    (int, SemanticType.INTEGER),
    (float, SemanticType.FLOAT),
    (decimal.Decimal, SemanticType.DECIMAL),
    (datetime.datetime, SemanticType.DATETIME),
    (datetime.date, SemanticType.DATE),
    (datetime.time, SemanticType.TIME),
    (datetime.timedelta, SemanticType.INTERVAL),
    (uuid.UUID, SemanticType.UUID),
    (bytes, SemanticType.BINARY),
    (bytearray, SemanticType.BINARY),
    (memoryview, SemanticType.BINARY),
    (dict, SemanticType.JSON),
    (list, SemanticType.JSON),
)


def semantic_type_for(python_type: Any) -> SemanticType:
    """Map a Python type reported by a driver to a SemanticType."""
    if not isinstance(python_type, type):
        return SemanticType.UNKNOWN
    for candidate, semantic in _PYTHON_TYPES:
        if issubclass(python_type, candidate):
            return semantic
    return SemanticType.UNKNOWN


@dataclass(frozen=True)
class ColumnDescriptor:
    """One result column: position, name and declared type."""

    ordinal: int
    name: str
    declared_type: SemanticType = SemanticType.UNKNOWN


class ColumnSchema:
    """Immutable, ordered list of ColumnDescriptor with case-insensitive lookup."""

    def __init__(self, columns: tuple[ColumnDescriptor, ...] = ()) -> None:
        self._columns = columns
        self._by_name: dict[str, ColumnDescriptor] = {}
        for column in columns:
            self._by_name.setdefault(column.name.casefold(), column)

    @property
    def columns(self) -> tuple[ColumnDescriptor, ...]:
        return self._columns

    @property
    def names(self) -> list[str]:
        return [column.name for column in self._columns]

    def get(self, name: str) -> ColumnDescriptor | None:
        """Return the first column named *name*, ignoring case."""
        return self._by_name.get(name.casefold())

    def __iter__(self) -> Iterator[ColumnDescriptor]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __getitem__(self, ordinal: int) -> ColumnDescriptor:
        return self._columns[ordinal]

    def __bool__(self) -> bool:
        return bool(self._columns)

    def __repr__(self) -> str:
        return f"ColumnSchema({self.names!r})"


def capture_schema(
    cursor: Any,
    resolve_type: Callable[[Any], SemanticType],
) -> ColumnSchema:
    """Read ``cursor.description`` once and build the column schema.

    A cursor without a description (DDL, DML without RETURNING) yields an
    empty schema. Driver errors propagate unchanged.
    """
    description = cursor.description
    if description is None:
        return ColumnSchema()
    return ColumnSchema(
        tuple(
            ColumnDescriptor(
                ordinal=ordinal,
                name=desc[0],
                declared_type=resolve_type(desc[1]),
            )
            for ordinal, desc in enumerate(description)
        )
    )
