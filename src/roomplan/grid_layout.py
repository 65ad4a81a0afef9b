"""Grid placement of a furniture batch inside wall bounds."""

from __future__ import annotations

from typing import Dict, List, Mapping, Tuple


Point = Dict[str, float]


def _gap(span: float, occupied: float, slots: int) -> float:
    remaining = span - occupied
    if slots > 1:
        return remaining / (slots + 1)
    return remaining / 2


def grid_gaps(
    item_width: float,
    item_height: float,
    wall_bounds: Mapping[str, float],
    columns: int,
    rows: int,
) -> Tuple[float, float]:
    """Return ``(gap_x, gap_y)`` for a columns x rows grid.

    The space left over after the items is split into ``columns + 1``
    equal gaps (two outer margins for a single column), and the same for
    rows. A negative gap means the request does not fit; it is returned
    as-is and the items overlap.
    """
    span_x = wall_bounds["maxX"] - wall_bounds["minX"]
    span_y = wall_bounds["maxY"] - wall_bounds["minY"]
    gap_x = _gap(span_x, columns * item_width, columns)
    gap_y = _gap(span_y, rows * item_height, rows)
    return gap_x, gap_y


def grid_positions(
    item_count: int,
    item_width: float,
    item_height: float,
    wall_bounds: Mapping[str, float],
    columns: int,
    rows: int,
) -> List[Point]:
    """Return the centre of each item, row-major.

    Callers must keep ``item_count <= columns * rows``; extra items land
    in rows past the bottom edge.
    """
    gap_x, gap_y = grid_gaps(item_width, item_height, wall_bounds, columns, rows)
    min_x = wall_bounds["minX"]
    min_y = wall_bounds["minY"]
    positions: List[Point] = []
    for idx in range(item_count):
        row = idx // columns
        col = idx % columns
        x = min_x + gap_x + col * (item_width + gap_x) + item_width / 2
        y = min_y + gap_y + row * (item_height + gap_y) + item_height / 2
        positions.append({"x": x, "y": y})
    return positions
