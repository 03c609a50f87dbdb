"""Scalar value coercion.

Converts raw driver values into the scalar type a field or target
declares. NULL always stays ``None``; it is never turned into a zero or
an empty value.
"""

from __future__ import annotations

import datetime
import decimal
import uuid
from collections.abc import Callable
from enum import Enum
from typing import Any

from row_stream.core.exceptions import ValueCoercionError

_TRUE_TEXT = frozenset({"true", "t", "yes", "y", "1"})
_FALSE_TEXT = frozenset({"false", "f", "no", "n", "0"})


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{value!r} has a fractional part")
        return int(value)
    if isinstance(value, decimal.Decimal):
        if value != value.to_integral_value():
            raise ValueError(f"{value!r} has a fractional part")
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise TypeError(f"unsupported value {value!r}")


def _to_float(value: Any) -> float:
    if isinstance(value, (int, float, decimal.Decimal, str)):
        return float(value)
    raise TypeError(f"unsupported value {value!r}")


def _to_decimal(value: Any) -> decimal.Decimal:
    if isinstance(value, decimal.Decimal):
        return value
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        return decimal.Decimal(str(value).strip())
    raise TypeError(f"unsupported value {value!r}")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, decimal.Decimal)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_TEXT:
            return True
        if text in _FALSE_TEXT:
            return False
    raise ValueError(f"{value!r} is not a boolean")


def _to_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8")
    return str(value)


def _to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        return datetime.datetime.fromisoformat(value.strip())
    raise TypeError(f"unsupported value {value!r}")


def _to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.date.fromisoformat(text)
        except ValueError:
            return datetime.datetime.fromisoformat(text).date()
    raise TypeError(f"unsupported value {value!r}")


def _to_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.time):
        return value
    if isinstance(value, datetime.datetime):
        return value.time()
    if isinstance(value, datetime.timedelta):
        return (datetime.datetime.min + value).time()
    if isinstance(value, str):
        return datetime.time.fromisoformat(value.strip())
    raise TypeError(f"unsupported value {value!r}")


def _to_timedelta(value: Any) -> datetime.timedelta:
    if isinstance(value, datetime.timedelta):
        return value
    if isinstance(value, datetime.time):
        return datetime.timedelta(
            hours=value.hour,
            minutes=value.minute,
            seconds=value.second,
            microseconds=value.microsecond,
        )
    if isinstance(value, (int, float, decimal.Decimal)) and not isinstance(value, bool):
        return datetime.timedelta(seconds=float(value))
    raise TypeError(f"unsupported value {value!r}")


def _to_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, str):
        return uuid.UUID(value.strip())
    if isinstance(value, (bytes, bytearray, memoryview)):
        return uuid.UUID(bytes=bytes(value))
    raise TypeError(f"unsupported value {value!r}")


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError(f"unsupported value {value!r}")


_CONVERTERS: dict[type, Callable[[Any], Any]] = {
    int: _to_int,
    float: _to_float,
    decimal.Decimal: _to_decimal,
    bool: _to_bool,
    str: _to_str,
    datetime.datetime: _to_datetime,
    datetime.date: _to_date,
    datetime.time: _to_time,
    datetime.timedelta: _to_timedelta,
    uuid.UUID: _to_uuid,
    bytes: _to_bytes,
}


def type_name(declared_type: Any) -> str:
    return getattr(declared_type, "__name__", repr(declared_type))


def coerce_scalar(value: Any, declared_type: Any, column: str) -> Any:
    """Convert *value* to *declared_type*.

    Enums are built from their underlying value, never matched by name.
    Types without a converter (``Any``, ``Literal[...]``) pass through.

    Raises:
        ValueCoercionError: If the value cannot be represented as the type.
    """
    if value is None:
        return None

    if isinstance(declared_type, type) and issubclass(declared_type, Enum):
        try:
            return declared_type(value)
        except ValueError as e:
            raise ValueCoercionError(column, type_name(declared_type), str(e)) from e

    converter = _CONVERTERS.get(declared_type)
    if converter is None:
        return value
    try:
        return converter(value)
    except (TypeError, ValueError, ArithmeticError, UnicodeDecodeError) as e:
        raise ValueCoercionError(column, type_name(declared_type), str(e)) from e
