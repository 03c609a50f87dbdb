"""SQL parameter building and normalization.

Queries are written with `:name` placeholders and converted to the
driver's paramstyle. String literals and PostgreSQL `::typecast` syntax
are left untouched.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from row_stream.core.exceptions import ParameterBindingError

# Matches :name but not ::typecast and not inside words
_PARAM_PATTERN = re.compile(r"(?<![:\w]):([a-zA-Z_]\w*)")

# Matches single-quoted string literals (with escaped quotes handled)
_STRING_LITERAL_PATTERN = re.compile(r"'(?:[^'\\]|\\.)*'")

ParamsInput = Mapping[str, Any] | Sequence["Parameter"] | None


@dataclass(frozen=True)
class Parameter:
    """A named value bound to a statement. ``None`` binds SQL NULL."""

    name: str
    value: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", self.name.lstrip("@:"))


def params(*pairs: tuple[str, Any]) -> list[Parameter]:
    """Build a parameter list from ``(name, value)`` pairs.

    Example:
        engine.stream("SELECT * FROM t WHERE id = :id", Row, params(("id", 7)))
    """
    return [Parameter(name, value) for name, value in pairs]


def _as_mapping(parameters: ParamsInput) -> dict[str, Any]:
    if parameters is None:
        return {}
    if isinstance(parameters, Mapping):
        return {str(name).lstrip("@:"): value for name, value in parameters.items()}
    return {p.name: p.value for p in parameters}


def _substitute(sql: str, replacement: Any) -> str:
    """Apply *replacement* to parameters outside string literals."""
    parts: list[str] = []
    last_end = 0

    for match in _STRING_LITERAL_PATTERN.finditer(sql):
        start, end = match.span()
        if start > last_end:
            parts.append(_PARAM_PATTERN.sub(replacement, sql[last_end:start]))
        parts.append(match.group())
        last_end = end

    if last_end < len(sql):
        parts.append(_PARAM_PATTERN.sub(replacement, sql[last_end:]))

    return "".join(parts)


@lru_cache(maxsize=256)
def _convert_to_pyformat(sql: str) -> str:
    """Convert :name params to %(name)s, preserving string literals."""
    return _substitute(sql, r"%(\1)s")


@lru_cache(maxsize=256)
def _convert_to_qmark(sql: str) -> tuple[str, tuple[str, ...]]:
    """Convert :name params to ?, returning the names in binding order."""
    names: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        names.append(match.group(1))
        return "?"

    return _substitute(sql, _replace), tuple(names)


def normalize_params(sql: str, paramstyle: str) -> str:
    """Convert :name parameters to the target param style.

    Args:
        sql: SQL string with :name parameters.
        paramstyle: Target style - 'named' (no conversion), 'pyformat'
            (%(name)s) or 'qmark' (?).

    Returns:
        SQL with parameters converted to the target style.
    """
    if paramstyle == "pyformat":
        return _convert_to_pyformat(sql)
    if paramstyle == "qmark":
        return _convert_to_qmark(sql)[0]
    return sql


def bind_params(
    sql: str,
    parameters: ParamsInput,
    paramstyle: str,
    label: str = "<inline>",
) -> tuple[str, dict[str, Any] | tuple[Any, ...] | None]:
    """Return driver-ready ``(sql, bound_parameters)``.

    Statements without parameters are passed through untouched so that
    scripts containing colons or percent signs are never rewritten.

    Raises:
        ParameterBindingError: In qmark mode, when a placeholder has no value.
    """
    if not parameters:
        return sql, None

    values = _as_mapping(parameters)
    if paramstyle == "qmark":
        converted, names = _convert_to_qmark(sql)
        missing = [name for name in names if name not in values]
        if missing:
            raise ParameterBindingError(label, f"no value supplied for {sorted(set(missing))}")
        return converted, tuple(values[name] for name in names)

    return normalize_params(sql, paramstyle), values
