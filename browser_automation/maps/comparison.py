"""
Value comparison helpers for application state read from the page.

Equality policy (deep_equal):
    - identity first, then structural comparison
    - NaN is never equal, not even to itself
    - booleans never equal numbers (True != 1)
    - ints and floats compare numerically (1 == 1.0)
    - lists / tuples are order-sensitive; dict key order is ignored

Truthiness follows JavaScript, since the values come from page state:
empty lists and dicts are truthy, NaN is falsy.
"""

from __future__ import annotations

import math
from typing import Any


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality of JSON-like values."""
    if _is_nan(a) or _is_nan(b):
        return False
    if a is b:
        return True

    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b

    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(deep_equal(a[key], b[key]) for key in a)

    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))

    if type(a) is not type(b):
        return False
    return a == b


def js_truthy(value: Any) -> bool:
    """JavaScript truthiness of a JSON-like value."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0 and not _is_nan(value)
    if isinstance(value, str):
        return value != ""
    return True


def js_type_of(value: Any) -> str:
    """Type name as reported by the in-page bridge (arrays and null distinguished)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    return "object"


__all__ = ["deep_equal", "js_truthy", "js_type_of"]
