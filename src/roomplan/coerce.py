"""Lenient coercion of untrusted plan values."""

from __future__ import annotations

import math
import re
from typing import Any, List


_NUMERIC = re.compile(r"^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?)\s*(mm)?\s*$")


def coerce_number(value: Any, default: float | None = None) -> float | None:
    """Return a finite float for numbers and numeric strings ("700", "700mm")."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMERIC.match(value)
        if not match:
            return default
        number = float(match.group(1))
    else:
        return default
    if not math.isfinite(number):
        return default
    return number


def coerce_int(value: Any, default: int | None = None, minimum: int | None = None) -> int | None:
    number = coerce_number(value)
    if number is None or number != int(number):
        return default
    result = int(number)
    if minimum is not None and result < minimum:
        return default
    return result


def coerce_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def id_list(value: Any) -> List[str]:
    """Ordered, de-duplicated list of non-empty string ids (a bare id is a list of one)."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    seen = set()
    ids = []
    for item in value:
        if isinstance(item, str) and item and item not in seen:
            seen.add(item)
            ids.append(item)
    return ids


def first_present(raw: dict, *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def normalize_rotation(value: float) -> float:
    """Degrees folded into [0, 360)."""
    result = float(value) % 360.0
    if result >= 360.0:
        # tiny negatives round up to 360.0
        return 0.0
    return result
