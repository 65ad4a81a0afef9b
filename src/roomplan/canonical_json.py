"""Deterministic canonical JSON serialization for plans and workspace snapshots."""

from __future__ import annotations

import json
import math
from typing import Any


MM_PRECISION = 3


class CanonicalJsonTypeError(TypeError):
    """Raised when an object cannot be serialized to canonical JSON."""


def _canonical_number(value: float, path: str) -> int | float:
    if not math.isfinite(value):
        raise ValueError(f"Non-finite float at {path}: {value!r}")
    rounded = round(value, MM_PRECISION)
    if rounded == int(rounded):
        return int(rounded)
    return rounded


def _canonicalize(obj: Any, path: str = "$") -> Any:
    if isinstance(obj, dict):
        out = {}
        for key, value in obj.items():
            if not isinstance(key, str):
                raise CanonicalJsonTypeError(
                    f"Unsupported key type at {path}: {type(key).__name__}"
                )
            out[key] = _canonicalize(value, f"{path}.{key}")
        return out
    if isinstance(obj, (list, tuple)):
        return [_canonicalize(item, f"{path}[{idx}]") for idx, item in enumerate(obj)]
    if obj is None or isinstance(obj, (str, bool)):
        return obj
    if isinstance(obj, int):
        return obj
    if isinstance(obj, float):
        return _canonical_number(obj, path)
    raise CanonicalJsonTypeError(
        f"Unsupported type at {path}: {type(obj).__name__}"
    )


def canonical_dumps(obj: Any) -> str:
    """Serialize an object to deterministic canonical JSON.

    Rules:
    - Sort dict keys recursively.
    - Preserve list order (tuples serialize as lists).
    - Floats are rounded to micrometres; integral floats become ints,
      so 700.0 and 700 serialize identically.
    - UTF-8 with non-ASCII preserved, no extra whitespace.
    """
    data = _canonicalize(obj)
    return json.dumps(
        data,
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
    )
