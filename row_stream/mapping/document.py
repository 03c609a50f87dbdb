"""Embedded JSON document handling.

Text columns frequently carry serialized JSON (``FOR JSON`` output, json
columns read as text). For open dict targets a bracket heuristic decides
whether to parse a value. It only inspects the first and last character
of the trimmed text, so a plain string such as ``"[draft] notes]"`` is
treated as a document and fails to parse.
"""

from __future__ import annotations

import json
from typing import Any

from row_stream.core.exceptions import EmbeddedDocumentError
from row_stream.core.schema import ColumnDescriptor, SemanticType

_TEXTUAL_TYPES = frozenset({SemanticType.TEXT, SemanticType.UNKNOWN})


def looks_like_document(text: str) -> bool:
    """True when trimmed *text* is wrapped in ``{}`` or ``[]``."""
    stripped = text.strip()
    if len(stripped) < 2:
        return False
    return (stripped[0] == "{" and stripped[-1] == "}") or (
        stripped[0] == "[" and stripped[-1] == "]"
    )


def is_textual(column: ColumnDescriptor, value: Any) -> bool:
    """True when the column should be inspected as text.

    Drivers that report no declared types (sqlite3) fall back to the
    runtime type of the value.
    """
    return column.declared_type in _TEXTUAL_TYPES and isinstance(value, str)


def parse_document(text: str, column: str) -> Any:
    """Parse JSON *text* found in *column*.

    Raises:
        EmbeddedDocumentError: If the text is not valid JSON.
    """
    try:
        return json.loads(text)
    except ValueError as e:
        raise EmbeddedDocumentError(column, str(e)) from e


def attach_value(column: ColumnDescriptor, value: Any) -> Any:
    """Return the node stored under *column* in a dict-shaped row."""
    if value is None:
        return None
    if is_textual(column, value) and looks_like_document(value):
        return parse_document(value.strip(), column.name)
    return value
