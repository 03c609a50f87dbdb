"""Mapping layer - turn driver rows into dicts, text, scalars or typed objects."""

from __future__ import annotations

from row_stream.mapping.coerce import coerce_scalar
from row_stream.mapping.document import attach_value, looks_like_document
from row_stream.mapping.fields import (
    FieldDescriptor,
    FieldKind,
    FieldTable,
    build_field_table,
)
from row_stream.mapping.row import RowMapper
from row_stream.mapping.shape import SCALAR_TYPES, TargetShape, resolve_shape

__all__ = [
    "RowMapper",
    "TargetShape",
    "resolve_shape",
    "SCALAR_TYPES",
    "FieldDescriptor",
    "FieldKind",
    "FieldTable",
    "build_field_table",
    "coerce_scalar",
    "attach_value",
    "looks_like_document",
]
