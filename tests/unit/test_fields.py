"""Unit tests for the structured-target field table."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import pytest
from pydantic import BaseModel, Field

from row_stream.core.exceptions import ColumnMismatchError
from row_stream.mapping.fields import FieldKind, build_field_table, classify


class Status(Enum):
    ACTIVE = "active"


@dataclass
class Address:
    city: str


@dataclass
class Customer:
    Id: int
    Name: str
    status: Status
    address: Address
    tags: list[str] = field(default_factory=list)
    settings: dict[str, Any] = field(default_factory=dict)
    born: Optional[datetime.date] = None


class CustomerModel(BaseModel):
    id: int
    display_name: str = Field(alias="displayName")
    score: float | None = None


class PlainInit:
    def __init__(self, id: int, name: str = "") -> None:
        self.id = id
        self.name = name


class PlainAttrs:
    id: int
    name: str


class TestClassify:
    def test_kinds(self) -> None:
        assert classify(int)[2] is FieldKind.SCALAR
        assert classify(str)[2] is FieldKind.SCALAR
        assert classify(Any)[2] is FieldKind.SCALAR
        assert classify(Status)[2] is FieldKind.ENUM
        assert classify(Address)[2] is FieldKind.EMBEDDED_OBJECT
        assert classify(dict)[2] is FieldKind.EMBEDDED_OBJECT
        assert classify(dict[str, int])[2] is FieldKind.EMBEDDED_OBJECT
        assert classify(list[int])[2] is FieldKind.EMBEDDED_ARRAY
        assert classify(tuple)[2] is FieldKind.EMBEDDED_ARRAY

    def test_optional_is_unwrapped(self) -> None:
        declared, nullable, kind = classify(Optional[datetime.date])
        assert declared is datetime.date
        assert nullable is True
        assert kind is FieldKind.SCALAR


class TestFieldTable:
    def test_dataclass_fields(self) -> None:
        table = build_field_table(Customer)
        assert len(table) == 7
        assert table.get("id").kind is FieldKind.SCALAR  # type: ignore[union-attr]
        assert table.get("STATUS").kind is FieldKind.ENUM  # type: ignore[union-attr]
        assert table.get("Address").kind is FieldKind.EMBEDDED_OBJECT  # type: ignore[union-attr]
        assert table.get("tags").kind is FieldKind.EMBEDDED_ARRAY  # type: ignore[union-attr]
        assert table.get("unknown") is None

    def test_required_follows_defaults(self) -> None:
        table = build_field_table(Customer)
        assert table.get("name").required is True  # type: ignore[union-attr]
        assert table.get("tags").required is False  # type: ignore[union-attr]
        assert table.get("born").nullable is True  # type: ignore[union-attr]

    def test_embedded_fields_have_deserializers(self) -> None:
        table = build_field_table(Customer)
        assert table.get("address").adapter is not None  # type: ignore[union-attr]
        assert table.get("name").adapter is None  # type: ignore[union-attr]

    def test_pydantic_alias_lookup(self) -> None:
        table = build_field_table(CustomerModel)
        by_alias = table.get("DISPLAYNAME")
        by_name = table.get("display_name")
        assert by_alias is by_name
        assert by_alias.key == "displayName"  # type: ignore[union-attr]

    def test_plain_class_with_init(self) -> None:
        table = build_field_table(PlainInit)
        assert table.get("id").declared_type is int  # type: ignore[union-attr]
        instance = table.construct({"id": 3})
        assert (instance.id, instance.name) == (3, "")

    def test_plain_class_with_annotations(self) -> None:
        table = build_field_table(PlainAttrs)
        instance = table.construct({"id": 3, "name": "x"})
        assert isinstance(instance, PlainAttrs)
        assert instance.name == "x"

    def test_construct_reports_missing_fields(self) -> None:
        table = build_field_table(Customer)
        with pytest.raises(ColumnMismatchError) as exc_info:
            table.construct({"Id": 1})
        assert exc_info.value.missing_fields == ["Name", "status", "address"]

    def test_construct_pydantic(self) -> None:
        table = build_field_table(CustomerModel)
        model = table.construct({"id": 1, "displayName": "Ann"})
        assert model.display_name == "Ann"
