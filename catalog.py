"""Asset size and wall type catalogues used when materializing plans."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Tuple


FT_MM = 304.8

DEFAULT_ASSET_SIZE = (500.0, 500.0)

# Sizes (mm) for library ids whose names do not encode a size.
_ASSET_SIZES: Dict[str, Tuple[float, float]] = {
    "normal-chair": (500.0, 500.0),
    "padded-chair": (550.0, 550.0),
    "rectangular-table": (1800.0, 750.0),
    "6-seater-rectangular-table": (1800.0, 900.0),
    "10-seater-rectangular-table": (3000.0, 1000.0),
    "round-table": (1500.0, 1500.0),
    "8-seater-round-table": (1800.0, 1800.0),
    "circular-small-table": (800.0, 800.0),
    "square-table": (900.0, 900.0),
    "oval-shaped-table": (2000.0, 1100.0),
    "sofa": (2000.0, 900.0),
    "3-seater-sofa-02": (2100.0, 900.0),
    "twin-sofa": (1500.0, 850.0),
    "l-shaped-sofa-6-seater": (2800.0, 2000.0),
    "one-door": (900.0, 900.0),
    "double-door": (1800.0, 900.0),
    "bathtub": (1700.0, 750.0),
    "shower": (900.0, 900.0),
    "wc": (400.0, 700.0),
    "stairs": (1000.0, 3000.0),
}

_ASSET_ALIASES: Dict[str, str] = {
    "chair": "normal-chair",
    "banquet chair": "normal-chair",
    "conference chair": "normal-chair",
    "table": "rectangular-table",
    "rect table": "rectangular-table",
    "rectangle table": "rectangular-table",
    "circular table": "round-table",
    "round table": "round-table",
    "standing table": "cocktail-table-700mm",
    "high table": "cocktail-table-700mm",
    "cocktail table": "cocktail-table-700mm",
    "low table": "coffee-table-900x900mm",
    "coffee table": "coffee-table-900x900mm",
    "lounge table": "coffee-table-900x900mm",
    "couch": "sofa",
    "settee": "sofa",
    "platform": "stage-1m-1m",
    "riser": "stage-1m-1m",
    "stage": "stage-1m-1m",
    "pillar": "square-column-600mm",
    "post": "square-column-600mm",
    "column": "square-column-600mm",
    "door": "swing-door-900mm",
    "window": "window-1200mm",
}

_PAIR_MM = re.compile(r"(\d+(?:\.\d+)?)x(\d+(?:\.\d+)?)mm")
_PAIR_UNITS = re.compile(r"(\d+(?:\.\d+)?)(ft|m)-(\d+(?:\.\d+)?)(ft|m)")
_SINGLE_MM = re.compile(r"(\d+(?:\.\d+)?)mm")


def _to_mm(value: str, unit: str) -> float:
    number = float(value)
    if unit == "ft":
        return round(number * FT_MM)
    if unit == "m":
        return number * 1000.0
    return number


def _size_from_id(asset_type: str) -> Tuple[float, float] | None:
    match = _PAIR_MM.search(asset_type)
    if match:
        return float(match.group(1)), float(match.group(2))
    match = _PAIR_UNITS.search(asset_type)
    if match:
        return _to_mm(match.group(1), match.group(2)), _to_mm(match.group(3), match.group(4))
    match = _SINGLE_MM.search(asset_type)
    if match:
        size = float(match.group(1))
        if "window" in asset_type or "door" in asset_type:
            # openings encode their width only
            return size, 150.0 if "window" in asset_type else size
        return size, size
    return None


def resolve_asset_type(query: Any) -> str | None:
    """Map a free-form asset name onto a library id (identity when unknown)."""
    if not isinstance(query, str):
        return None
    q = query.strip().lower()
    if not q:
        return None
    if q in _ASSET_SIZES or _size_from_id(q) is not None:
        return q
    alias = _ASSET_ALIASES.get(q)
    if alias:
        return alias
    return re.sub(r"\s+", "-", q)


def asset_default_size(asset_type: str | None, fallback: Tuple[float, float] = DEFAULT_ASSET_SIZE) -> Tuple[float, float]:
    if not asset_type:
        return fallback
    known = _ASSET_SIZES.get(asset_type)
    if known:
        return known
    parsed = _size_from_id(asset_type)
    if parsed:
        return parsed
    return fallback


WALL_TYPES: List[Dict[str, Any]] = [
    {
        "id": "partition-75",
        "label": "Partition (75mm)",
        "thickness": 75.0,
        "aliases": ["thin", "partition", "light wall", "75mm wall", "75mm stud wall"],
    },
    {
        "id": "partition-100",
        "label": "Partition (100mm)",
        "thickness": 100.0,
        "aliases": ["standard", "normal wall", "100mm wall", "regular partition", "100mm brick wall"],
    },
    {
        "id": "enclosure-150",
        "label": "Enclosure Wall (150mm)",
        "thickness": 150.0,
        "aliases": ["thick", "enclosure", "heavy wall", "150mm wall", "150mm concrete wall"],
    },
    {
        "id": "enclosure-225",
        "label": "Enclosure Wall (225mm)",
        "thickness": 225.0,
        "aliases": ["extra thick", "structural wall", "225mm wall", "load bearing", "225mm cavity wall"],
    },
]

DEFAULT_WALL_TYPE = "partition-100"

_DIGITS = re.compile(r"(\d+)")


def find_wall_type(query: Any) -> Dict[str, Any] | None:
    if not isinstance(query, str):
        return None
    q = query.strip().lower()
    if not q:
        return None
    for wall_type in WALL_TYPES:
        if wall_type["id"] == q or wall_type["label"].lower() == q:
            return wall_type
    for wall_type in WALL_TYPES:
        if q in wall_type["aliases"]:
            return wall_type
    match = _DIGITS.search(q)
    if match:
        thickness = float(match.group(1))
        for wall_type in WALL_TYPES:
            if wall_type["thickness"] == thickness:
                return wall_type
    return None


def wall_type_for_thickness(thickness: float) -> str | None:
    for wall_type in WALL_TYPES:
        if wall_type["thickness"] == thickness:
            return wall_type["id"]
    return None
