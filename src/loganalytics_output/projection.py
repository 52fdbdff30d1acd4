"""
Field projection and type coercion for outgoing documents.

A record is reduced to the configured allow-list of keys, and selected keys
are coerced to the column type declared for them.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Mapping, Sequence


class FieldType(str, Enum):
    """Column data types accepted by the remote API."""

    STRING = "string"
    BOOLEAN = "boolean"
    DOUBLE = "double"

    @classmethod
    def parse(cls, value: str) -> "FieldType":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Key type({value}) must be either string, boolean, or double"
            ) from None


def _to_number(value: Any) -> Any:
    # bool is an int subclass but is not a number here
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value
    text = str(value)
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return value
    return number if math.isfinite(number) else value


def convert_value(field_type: FieldType | str, value: Any) -> Any:
    """Coerce ``value`` to ``field_type``. Never raises."""
    try:
        t = FieldType.parse(field_type)
    except ValueError:
        return value

    if t is FieldType.BOOLEAN:
        if isinstance(value, bool):
            return value
        return str(value).lower() == "true"
    if t is FieldType.DOUBLE:
        return _to_number(value)
    return value


def project(
    record: Mapping[str, Any],
    key_names: Sequence[str],
    key_types: Mapping[str, FieldType | str] | None = None,
) -> dict[str, Any]:
    """Return the document to deliver for ``record``.

    With an empty allow-list the whole record is delivered as-is. Otherwise
    only allow-listed keys present in the record are kept, in allow-list
    order, and keys listed in ``key_types`` are coerced.
    """
    if not key_names:
        return dict(record)

    key_types = key_types or {}
    document: dict[str, Any] = {}
    for key in key_names:
        if key not in record or key in document:
            continue
        if key in key_types:
            document[key] = convert_value(key_types[key], record[key])
        else:
            document[key] = record[key]
    return document
