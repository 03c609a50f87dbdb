"""Type-directed row mapper.

One RowMapper serves one call: the target shape, and for structured
targets the field table, are resolved when the mapper is built and
reused for every row of the stream.

Detection order:
1. dict / dict[...] -> every column becomes a key
2. str -> textual form of the first column
3. scalar (int, Decimal, datetime, UUID, Enum, ... or Optional of one)
   -> first column coerced to the scalar type
4. any other class -> columns matched to fields by case-insensitive name
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from row_stream.core.exceptions import (
    EmbeddedDocumentError,
    MappingError,
    ValueCoercionError,
)
from row_stream.core.schema import ColumnDescriptor, ColumnSchema
from row_stream.mapping.coerce import coerce_scalar, type_name
from row_stream.mapping.document import attach_value
from row_stream.mapping.fields import FieldDescriptor, FieldKind, FieldTable, build_field_table
from row_stream.mapping.shape import TargetShape, resolve_shape, unwrap_optional

T = TypeVar("T")


def _check_unique_names(schema: ColumnSchema) -> None:
    seen: set[str] = set()
    for column in schema:
        if column.name in seen:
            raise MappingError(
                f"Duplicate column name '{column.name}' cannot be mapped to a dict; "
                "alias the columns in the query"
            )
        seen.add(column.name)


class RowMapper(Generic[T]):
    """Maps ordinal-indexed rows into instances of *target*.

    Args:
        target: The caller's target type.
        schema: Column schema captured for the current execution.
    """

    def __init__(self, target: type[T], schema: ColumnSchema) -> None:
        self.target = target
        self.schema = schema
        self.shape = resolve_shape(target)
        self._fields: FieldTable | None = None
        self._scalar_type: Any = None

        if self.shape is TargetShape.DYNAMIC:
            _check_unique_names(schema)
            self._map = self._map_dynamic
        elif self.shape is TargetShape.TEXT:
            self._map = self._map_text
        elif self.shape is TargetShape.SCALAR:
            self._scalar_type = unwrap_optional(target)[0]
            self._map = self._map_scalar
        else:
            self._fields = build_field_table(target)
            self._map = self._map_structured

    @classmethod
    def for_target(cls, target: type[T], schema: ColumnSchema) -> RowMapper[T]:
        return cls(target, schema)

    @property
    def field_table(self) -> FieldTable | None:
        return self._fields

    def map_row(self, row: Sequence[Any]) -> T:
        """Map one row. The row is fully consumed before this returns."""
        return self._map(row)  # type: ignore[no-any-return]

    # --- strategies ---

    def _map_dynamic(self, row: Sequence[Any]) -> dict[str, Any]:
        return {column.name: attach_value(column, row[column.ordinal]) for column in self.schema}

    def _map_text(self, row: Sequence[Any]) -> str:
        if not self.schema:
            return ""
        column = self.schema[0]
        value = row[column.ordinal]
        if value is None:
            return ""
        return coerce_scalar(value, str, column.name)  # type: ignore[no-any-return]

    def _map_scalar(self, row: Sequence[Any]) -> Any:
        if not self.schema:
            return None
        column = self.schema[0]
        return coerce_scalar(row[column.ordinal], self._scalar_type, column.name)

    def _map_structured(self, row: Sequence[Any]) -> Any:
        fields = self._fields
        assert fields is not None
        values: dict[str, Any] = {}
        for column in self.schema:
            descriptor = fields.get(column.name)
            if descriptor is None:
                continue
            value = row[column.ordinal]
            if descriptor.kind in (FieldKind.SCALAR, FieldKind.ENUM):
                values[descriptor.key] = coerce_scalar(
                    value, descriptor.declared_type, column.name
                )
            else:
                values[descriptor.key] = _decode_embedded(descriptor, column, value)
        return fields.construct(values)


def _decode_embedded(descriptor: FieldDescriptor, column: ColumnDescriptor, value: Any) -> Any:
    """Deserialize an embedded object/array column into the field's type.

    NULL becomes an empty object or array before validation. Values the
    driver already decoded (json/jsonb) are validated without re-parsing.
    """
    adapter = descriptor.adapter
    assert adapter is not None
    if value is None:
        value = "[]" if descriptor.kind is FieldKind.EMBEDDED_ARRAY else "{}"
    try:
        if isinstance(value, (str, bytes, bytearray)):
            return adapter.validate_json(value)
        return adapter.validate_python(value)
    except ValidationError as e:
        if any(error["type"] == "json_invalid" for error in e.errors()):
            raise EmbeddedDocumentError(column.name, str(e)) from e
        raise ValueCoercionError(column.name, type_name(descriptor.declared_type), str(e)) from e
