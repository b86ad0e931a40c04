"""JSON value helpers shared by filtering, searching, and id handling."""

from __future__ import annotations

import json
import math
from typing import Any, Union

JsonValue = Union[str, int, float, bool, None, dict[str, Any], list[Any]]
Record = dict[str, Any]
RecordId = Union[str, int, float]


def is_number(value: Any) -> bool:
    """True for int/float values; bools are not numbers here."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_text(value: Any) -> str:
    """Render a value as canonical text: null, true/false, integral floats without ".0"."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return ",".join("" if v is None else to_text(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def strict_equals(a: Any, b: Any) -> bool:
    """Equality that never conflates booleans with numbers or strings with numbers."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    if is_number(a) and is_number(b):
        return a == b
    if type(a) is not type(b):
        return False
    return a == b


def contains_strict(values: list[Any], item: Any) -> bool:
    return any(strict_equals(v, item) for v in values)


def coerce_id(raw: str) -> RecordId:
    """Turn a textual id into a number when it looks like one."""
    text = raw.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return raw
    if math.isnan(number) or math.isinf(number):
        return raw
    return number
