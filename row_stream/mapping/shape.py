"""Target shape resolution.

The shape is decided once per call from the caller's target type and
stays fixed for the whole stream.
"""

from __future__ import annotations

import datetime
import decimal
import types
import uuid
from enum import Enum
from typing import Any, Union, get_args, get_origin

from row_stream.core.exceptions import UnsupportedTargetError


class TargetShape(Enum):
    """Output representation of a mapped row."""

    STRUCTURED = "structured"
    DYNAMIC = "dynamic"
    TEXT = "text"
    SCALAR = "scalar"


SCALAR_TYPES: frozenset[type] = frozenset(
    {
        int,
        float,
        decimal.Decimal,
        bool,
        datetime.datetime,
        datetime.date,
        datetime.time,
        datetime.timedelta,
        uuid.UUID,
        bytes,
    }
)


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Return ``(inner_type, nullable)`` for ``X | None`` / ``Optional[X]``.

    Unions of more than one non-None member are returned unchanged.
    """
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        nullable = len(members) < len(get_args(annotation))
        if len(members) == 1:
            return members[0], nullable
        return annotation, nullable
    return annotation, annotation is None or annotation is type(None)


def is_scalar_type(annotation: Any) -> bool:
    """True for recognized scalar types and Enum subclasses."""
    if annotation in SCALAR_TYPES:
        return True
    return isinstance(annotation, type) and issubclass(annotation, Enum)


def resolve_shape(target: Any) -> TargetShape:
    """Pick the TargetShape for *target*.

    Raises:
        UnsupportedTargetError: If *target* is not a class.
    """
    if target is dict or get_origin(target) is dict:
        return TargetShape.DYNAMIC
    if target is str:
        return TargetShape.TEXT

    inner, _ = unwrap_optional(target)
    if inner is str:
        return TargetShape.TEXT
    if is_scalar_type(inner):
        return TargetShape.SCALAR
    if isinstance(target, type):
        return TargetShape.STRUCTURED
    raise UnsupportedTargetError(target)
