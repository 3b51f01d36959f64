# -*- coding: utf-8 -*-
"""
Tagged representation of heterogeneous capacity values.

Capacity columns in the open-data export arrive as numbers, strings ("", "N/A"),
nested objects left over from the CSV-to-JSON conversion, explicit nulls, or not
at all. Every value is classified into exactly one ValueKind; the normalizer
builds its store predicates from the kinds, never from ad-hoc type checks.

Example:
    >>> classify_value("abc")
    <ValueKind.TEXT: 'text'>
    >>> non_numeric_filter("chairs_season")
    {'$or': [{'chairs_season': {'$type': 'string'}}, ...]}
"""
import math
import numbers
from enum import Enum
from typing import Any, Dict, Optional


class ValueKind(Enum):
    """Shape of a stored field value."""
    NUMBER = "number"
    TEXT = "text"
    STRUCTURED = "structured"
    ABSENT = "absent"           # null or missing


NON_NUMERIC_KINDS = (ValueKind.TEXT, ValueKind.STRUCTURED, ValueKind.ABSENT)

_MISSING = object()


def classify_value(value: Any = _MISSING) -> ValueKind:
    """
    Classify a field value. Call with no argument for a missing field.

    Booleans are not counts and classify as TEXT; NaN classifies as ABSENT.
    """
    if value is _MISSING or value is None:
        return ValueKind.ABSENT
    if isinstance(value, bool):
        return ValueKind.TEXT
    if isinstance(value, numbers.Real):
        if isinstance(value, float) and math.isnan(value):
            return ValueKind.ABSENT
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.TEXT
    if isinstance(value, (dict, list)):
        return ValueKind.STRUCTURED
    raise TypeError(f"Unsupported field value type: {type(value).__name__}")


def classify_field(record: Dict, field: str) -> ValueKind:
    """Classify record[field], treating a missing key as ABSENT."""
    if field not in record:
        return classify_value()
    return classify_value(record[field])


def kind_predicate(kind: ValueKind, field: str) -> Dict:
    """
    Store predicate matching documents whose field has the given kind.

    {field: None} matches both null and missing, which is exactly ABSENT.
    """
    if kind is ValueKind.NUMBER:
        return {field: {'$type': 'number'}}
    if kind is ValueKind.TEXT:
        return {'$or': [{field: {'$type': 'string'}}, {field: {'$type': 'bool'}}]}
    if kind is ValueKind.STRUCTURED:
        return {'$or': [{field: {'$type': 'object'}}, {field: {'$type': 'array'}}]}
    if kind is ValueKind.ABSENT:
        return {field: None}
    raise ValueError(f"Unknown value kind: {kind}")


def non_numeric_filter(field: str) -> Dict:
    """Predicate matching every non-numeric representation of field (flat $or)."""
    clauses = []
    for kind in NON_NUMERIC_KINDS:
        predicate = kind_predicate(kind, field)
        clauses.extend(predicate.get('$or', [predicate]))
    return {'$or': clauses}


def coerce_count(value: Any = _MISSING) -> int:
    """
    In-memory counterpart of the capacity normalization: numbers are truncated
    to int and clamped at 0, everything else (and infinities) becomes 0.
    """
    kind = classify_value(value)
    if kind is ValueKind.NUMBER and math.isfinite(value):
        return max(int(value), 0)
    return 0


def clean_number(value: Any) -> Optional[Any]:
    """
    Tidy numbers coming from tabular payloads without coercing anything else:
    NaN -> None, integral floats -> int. Strings and objects pass unchanged so
    the normalizer still sees (and zeroes) them.
    """
    kind = classify_value(value)
    if kind is ValueKind.ABSENT:
        return None
    if kind is ValueKind.NUMBER and isinstance(value, float) and value.is_integer():
        return int(value)
    return value
