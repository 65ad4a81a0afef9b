"""Wall bounds and clamping of single placements."""

from __future__ import annotations

import math
from typing import Dict, Iterable, Mapping, Tuple


Bounds = Dict[str, float]

DEFAULT_CLAMP_MARGIN_MM = 50.0


def wall_bounds(walls: Iterable[Mapping]) -> Bounds | None:
    """Axis-aligned box around every wall endpoint, or None without walls."""
    xs = []
    ys = []
    for wall in walls:
        for key in ("start", "end"):
            point = wall.get(key) if isinstance(wall, Mapping) else None
            if not isinstance(point, Mapping):
                continue
            x = point.get("x")
            y = point.get("y")
            if isinstance(x, (int, float)) and isinstance(y, (int, float)):
                xs.append(float(x))
                ys.append(float(y))
    if not xs:
        return None
    return {"minX": min(xs), "minY": min(ys), "maxX": max(xs), "maxY": max(ys)}


def rotated_half_extents(width: float, height: float, rotation: float = 0.0) -> Tuple[float, float]:
    """Half-size of the axis-aligned box around a rotated rectangle."""
    theta = math.radians(rotation % 360)
    cos_t = abs(math.cos(theta))
    sin_t = abs(math.sin(theta))
    half_w = (width * cos_t + height * sin_t) / 2
    half_h = (width * sin_t + height * cos_t) / 2
    return half_w, half_h


def _clamp_axis(value: float, half: float, lo_edge: float, hi_edge: float, margin: float) -> float:
    lo = lo_edge + margin + half
    hi = hi_edge - margin - half
    if lo > hi:
        # interior narrower than the item: centre it
        return (lo_edge + hi_edge) / 2
    return max(lo, min(hi, value))


def clamp_to_bounds(
    x: float,
    y: float,
    half_width: float,
    half_height: float,
    bounds: Mapping[str, float],
    margin: float = DEFAULT_CLAMP_MARGIN_MM,
) -> Tuple[float, float]:
    """Keep an item's rectangle ``margin`` mm inside the wall bounds."""
    cx = _clamp_axis(x, half_width, bounds["minX"], bounds["maxX"], margin)
    cy = _clamp_axis(y, half_height, bounds["minY"], bounds["maxY"], margin)
    return cx, cy
