"""Unit tests for the column schema cache."""

from __future__ import annotations

import dataclasses
import datetime
import decimal
import uuid

import pytest

from row_stream.core.schema import (
    ColumnDescriptor,
    ColumnSchema,
    SemanticType,
    capture_schema,
    semantic_type_for,
)


class _Cursor:
    def __init__(self, description: object) -> None:
        self.description = description
        self.reads = 0

    def __getattribute__(self, name: str) -> object:
        if name == "description":
            object.__setattr__(self, "reads", object.__getattribute__(self, "reads") + 1)
        return object.__getattribute__(self, name)


class TestCaptureSchema:
    def test_captures_ordinal_name_and_type(self) -> None:
        cursor = _Cursor([("id", int, None), ("name", str, None), ("amount", decimal.Decimal)])
        schema = capture_schema(cursor, semantic_type_for)
        assert list(schema) == [
            ColumnDescriptor(0, "id", SemanticType.INTEGER),
            ColumnDescriptor(1, "name", SemanticType.TEXT),
            ColumnDescriptor(2, "amount", SemanticType.DECIMAL),
        ]

    def test_reads_description_once(self) -> None:
        cursor = _Cursor([("id", None), ("name", None)])
        capture_schema(cursor, lambda code: SemanticType.UNKNOWN)
        assert cursor.reads == 1

    def test_no_result_set(self) -> None:
        schema = capture_schema(_Cursor(None), semantic_type_for)
        assert len(schema) == 0
        assert not schema

    def test_lookup_ignores_case(self) -> None:
        schema = ColumnSchema((ColumnDescriptor(0, "UserName"),))
        assert schema.get("username") is schema[0]
        assert schema.get("USERNAME") is schema[0]
        assert schema.get("user") is None

    def test_descriptors_are_immutable(self) -> None:
        column = ColumnDescriptor(0, "id", SemanticType.INTEGER)
        with pytest.raises(dataclasses.FrozenInstanceError):
            column.name = "other"  # type: ignore[misc]


class TestSemanticTypeFor:
    def test_python_types(self) -> None:
        assert semantic_type_for(bool) is SemanticType.BOOLEAN
        assert semantic_type_for(int) is SemanticType.INTEGER
        assert semantic_type_for(datetime.datetime) is SemanticType.DATETIME
        assert semantic_type_for(datetime.date) is SemanticType.DATE
        assert semantic_type_for(uuid.UUID) is SemanticType.UUID
        assert semantic_type_for(bytearray) is SemanticType.BINARY

    def test_unknown(self) -> None:
        assert semantic_type_for(None) is SemanticType.UNKNOWN
        assert semantic_type_for(25) is SemanticType.UNKNOWN
        assert semantic_type_for(object) is SemanticType.UNKNOWN
