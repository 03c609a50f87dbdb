"""Field descriptor table for structured targets.

The table is built once per call by introspecting the target class
(Pydantic model, dataclass, or plain class) and is keyed by the
case-folded field name.
"""

from __future__ import annotations

import dataclasses
import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, get_origin, get_type_hints

from pydantic import TypeAdapter, ValidationError

from row_stream.core.exceptions import (
    ColumnMismatchError,
    MappingError,
    TargetConstructionError,
    ValueCoercionError,
)
from row_stream.mapping.coerce import type_name
from row_stream.mapping.shape import SCALAR_TYPES, unwrap_optional

_ARRAY_ORIGINS = (list, tuple, set, frozenset)


class FieldKind(Enum):
    """How a column value is written into a field."""

    SCALAR = "scalar"
    ENUM = "enum"
    EMBEDDED_OBJECT = "embedded_object"
    EMBEDDED_ARRAY = "embedded_array"


@dataclass(frozen=True)
class FieldDescriptor:
    """One settable field of a structured target."""

    name: str
    key: str
    declared_type: Any
    kind: FieldKind
    nullable: bool = False
    required: bool = True
    adapter: TypeAdapter[Any] | None = field(default=None, compare=False, repr=False)


def classify(annotation: Any) -> tuple[Any, bool, FieldKind]:
    """Return ``(declared_type, nullable, kind)`` for a field annotation."""
    inner, nullable = unwrap_optional(annotation)
    if isinstance(inner, type) and issubclass(inner, Enum):
        return inner, nullable, FieldKind.ENUM
    if inner in SCALAR_TYPES or inner is str or inner is Any:
        return inner, nullable, FieldKind.SCALAR

    origin = get_origin(inner) or inner
    if origin in _ARRAY_ORIGINS:
        return inner, nullable, FieldKind.EMBEDDED_ARRAY
    if origin is dict or isinstance(inner, type):
        return inner, nullable, FieldKind.EMBEDDED_OBJECT
    # Literal, multi-member unions and other special forms pass through
    return inner, nullable, FieldKind.SCALAR


def _safe_type_hints(obj: Any) -> dict[str, Any]:
    try:
        return get_type_hints(obj)
    except (NameError, TypeError):
        return {}


def _discover_fields(cls: type) -> tuple[list[tuple[str, str, Any, bool]], bool]:
    """Return ``([(name, key, annotation, required)], uses_init)``.

    ``uses_init`` is False for plain classes whose ``__init__`` takes no
    field arguments; those are instantiated empty and populated by
    attribute assignment.
    """
    # Pydantic model
    if hasattr(cls, "model_fields"):
        return [
            (name, info.alias or name, info.annotation, info.is_required())
            for name, info in cls.model_fields.items()
        ], True

    # Dataclass
    if dataclasses.is_dataclass(cls):
        hints = _safe_type_hints(cls)
        return [
            (
                f.name,
                f.name,
                hints.get(f.name, Any),
                f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING,
            )
            for f in dataclasses.fields(cls)
            if f.init
        ], True

    # Plain class - use __init__ parameters, else class annotations
    try:
        sig = inspect.signature(cls.__init__)  # type: ignore[misc]
    except (ValueError, TypeError):
        sig = None
    if sig is not None:
        hints = _safe_type_hints(cls.__init__)  # type: ignore[misc]
        discovered = [
            (name, name, hints.get(name, Any), param.default is inspect.Parameter.empty)
            for name, param in sig.parameters.items()
            if name != "self"
            and param.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        ]
        if discovered:
            return discovered, True

    hints = _safe_type_hints(cls)
    return [(name, name, annotation, False) for name, annotation in hints.items()], False


class FieldTable:
    """Case-insensitive name -> FieldDescriptor table for one target class.

    Args:
        target_class: The class rows are mapped into.
    """

    def __init__(self, target_class: type) -> None:
        self.target_class = target_class
        self._is_pydantic = hasattr(target_class, "model_validate")
        discovered, self._uses_init = _discover_fields(target_class)
        self._fields: dict[str, FieldDescriptor] = {}
        self._descriptors: list[FieldDescriptor] = []

        for name, key, annotation, required in discovered:
            declared, nullable, kind = classify(annotation)
            adapter = None
            if kind in (FieldKind.EMBEDDED_OBJECT, FieldKind.EMBEDDED_ARRAY):
                try:
                    adapter = TypeAdapter(declared)
                except Exception as e:
                    raise MappingError(
                        f"Cannot deserialize field '{name}' of {target_class.__name__}: {e}"
                    ) from e
            descriptor = FieldDescriptor(
                name=name,
                key=key,
                declared_type=declared,
                kind=kind,
                nullable=nullable,
                required=required,
                adapter=adapter,
            )
            self._descriptors.append(descriptor)
            self._fields[name.casefold()] = descriptor
            if key != name:
                self._fields.setdefault(key.casefold(), descriptor)

    def get(self, column_name: str) -> FieldDescriptor | None:
        """Look up a field by column name, ignoring case."""
        return self._fields.get(column_name.casefold())

    @property
    def descriptors(self) -> list[FieldDescriptor]:
        return list(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def construct(self, values: dict[str, Any]) -> Any:
        """Instantiate the target from ``{field.key: value}``.

        Raises:
            ColumnMismatchError: If required fields have no value.
            ValueCoercionError: If a Pydantic target rejects a field value.
            TargetConstructionError: If the target rejects the values as a
                whole.
        """
        target = self.target_class
        missing = [d.name for d in self._descriptors if d.required and d.key not in values]
        if missing:
            raise ColumnMismatchError(target.__name__, missing)

        if self._is_pydantic:
            try:
                return target.model_validate(values)  # type: ignore[attr-defined]
            except ValidationError as e:
                raise self._validation_failure(e) from e

        if not self._uses_init:
            instance = target()
            for key, value in values.items():
                setattr(instance, key, value)
            return instance

        try:
            return target(**values)
        except TypeError as e:
            raise TargetConstructionError(target.__name__, str(e)) from e

    def _validation_failure(self, error: ValidationError) -> MappingError:
        """Name the first rejected field, falling back to the whole model."""
        first = error.errors()[0]
        loc = first.get("loc") or ()
        descriptor = self.get(str(loc[0])) if loc else None
        if descriptor is None:
            return TargetConstructionError(self.target_class.__name__, str(error))
        return ValueCoercionError(
            descriptor.key, type_name(descriptor.declared_type), first["msg"]
        )


def build_field_table(target_class: type) -> FieldTable:
    """Build the field table for *target_class*."""
    return FieldTable(target_class)
