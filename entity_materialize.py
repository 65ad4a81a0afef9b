"""Create workspace entities (walls, furniture, shapes) from a normalized plan."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Tuple

from catalog import asset_default_size
from plan_settings import PlanSettings
from roomplan.bounds import clamp_to_bounds, rotated_half_extents, wall_bounds
from roomplan.grid_layout import grid_positions
from workspace_store import WorkspaceContext


logger = logging.getLogger("roomplan.materialize")

Issue = Dict[str, Any]
Point = Dict[str, float]


def _issue(code: str, message: str, path: str | None = None, detail: dict | None = None) -> Issue:
    return {"code": code, "message": message, "path": path, "detail": detail}


def _result(created: List[str], warnings: List[Issue]) -> dict:
    return {"ok": True, "errors": [], "warnings": warnings, "created": created}


def current_wall_bounds(ctx: WorkspaceContext) -> dict | None:
    return wall_bounds(ctx.store.list_current()["walls"])


def _bounds_center(bounds: dict | None, settings: PlanSettings) -> Tuple[float, float]:
    if bounds is None:
        return settings.canvas_center
    return ((bounds["minX"] + bounds["maxX"]) / 2, (bounds["minY"] + bounds["maxY"]) / 2)


def tile_positions(
    count: int,
    item_width: float,
    item_height: float,
    center: Tuple[float, float],
    gap: float,
    columns: int = 3,
) -> List[Point]:
    """Rows of ``columns`` items centred on ``center``, row-major."""
    if count <= 0:
        return []
    columns = max(1, columns)
    pitch_x = item_width + gap
    pitch_y = item_height + gap
    rows = math.ceil(count / columns)
    positions: List[Point] = []
    for idx in range(count):
        row = idx // columns
        col = idx % columns
        in_row = min(columns, count - row * columns)
        x = center[0] + (col - (in_row - 1) / 2) * pitch_x
        y = center[1] + (row - (rows - 1) / 2) * pitch_y
        positions.append({"x": x, "y": y})
    return positions


def _clamped(x: float, y: float, width: float, height: float, rotation: float, bounds: dict | None, settings: PlanSettings) -> Tuple[float, float]:
    if bounds is None:
        return x, y
    half_w, half_h = rotated_half_extents(width, height, rotation)
    return clamp_to_bounds(x, y, half_w, half_h, bounds, settings.clamp_margin)


# -- walls ------------------------------------------------------------------


def _room_segments(wall: dict, settings: PlanSettings) -> List[Tuple[Point, Point]]:
    default_cx, default_cy = settings.canvas_center
    cx = wall.get("centerX") if wall.get("centerX") is not None else default_cx
    cy = wall.get("centerY") if wall.get("centerY") is not None else default_cy
    half_w = wall["widthMm"] / 2
    half_h = wall["heightMm"] / 2
    top_left = {"x": cx - half_w, "y": cy - half_h}
    top_right = {"x": cx + half_w, "y": cy - half_h}
    bottom_right = {"x": cx + half_w, "y": cy + half_h}
    bottom_left = {"x": cx - half_w, "y": cy + half_h}
    return [
        (top_left, top_right),
        (top_right, bottom_right),
        (bottom_right, bottom_left),
        (bottom_left, top_left),
    ]


def _wall_entity(ctx: WorkspaceContext, start: Point, end: Point, wall: dict) -> dict:
    entity = {
        "id": ctx.new_id("wall"),
        "start": dict(start),
        "end": dict(end),
        "thickness": wall["thickness"],
        "type": wall.get("type"),
    }
    for key in ("fillColor", "strokeColor"):
        if wall.get(key):
            entity[key] = wall[key]
    return entity


def materialize_walls(ctx: WorkspaceContext, walls: List[dict], settings: PlanSettings) -> dict:
    warnings: List[Issue] = []
    created: List[str] = []
    for wall in walls:
        if wall.get("kind") == "room":
            segments = _room_segments(wall, settings)
        else:
            segments = [(wall["start"], wall["end"])]
        for start, end in segments:
            entity = _wall_entity(ctx, start, end, wall)
            ctx.store.append_wall(entity)
            created.append(entity["id"])
    if created:
        logger.info("walls_created count=%s", len(created))
    return _result(created, warnings)


# -- furniture --------------------------------------------------------------


def _furniture_size(item: dict) -> Tuple[float, float]:
    default_w, default_h = asset_default_size(item.get("assetType"))
    width = item.get("widthMm") if item.get("widthMm") is not None else default_w
    height = item.get("heightMm") if item.get("heightMm") is not None else default_h
    return float(width), float(height)


def _has_explicit_position(item: dict) -> bool:
    return item.get("xMm") is not None and item.get("yMm") is not None


def _auto_positions(
    sizes: List[Tuple[float, float]],
    grid: dict | None,
    bounds: dict | None,
    settings: PlanSettings,
    warnings: List[Issue],
) -> Tuple[List[Point], int]:
    """Positions for auto-placed items; the second value is how many came from the grid."""
    if not sizes:
        return [], 0
    max_w = max(w for w, _ in sizes)
    max_h = max(h for _, h in sizes)
    grid_points: List[Point] = []
    if grid is not None:
        if bounds is None:
            warnings.append(_issue("GRID_NO_WALL_BOUNDS", "gridLayout needs walls; default tiling used", "gridLayout"))
        else:
            capacity = grid["columns"] * grid["rows"]
            placed = min(capacity, len(sizes))
            if len(sizes) > capacity:
                overflow = len(sizes) - capacity
                warnings.append(
                    _issue(
                        "GRID_CAPACITY_EXCEEDED",
                        "More items than grid cells; extra items tiled",
                        "gridLayout",
                        {"capacity": capacity, "items": len(sizes), "overflow": overflow},
                    )
                )
                logger.warning("grid_capacity_exceeded capacity=%s items=%s", capacity, len(sizes))
            grid_points = grid_positions(placed, max_w, max_h, bounds, grid["columns"], grid["rows"])
    remaining = len(sizes) - len(grid_points)
    tiled = tile_positions(
        remaining,
        max_w,
        max_h,
        _bounds_center(bounds, settings),
        settings.tile_gap,
        settings.tile_columns,
    )
    return grid_points + tiled, len(grid_points)


def materialize_furniture(
    ctx: WorkspaceContext,
    furniture: List[dict],
    grid: dict | None,
    settings: PlanSettings,
) -> dict:
    warnings: List[Issue] = []
    created: List[str] = []
    if not furniture:
        return _result(created, warnings)

    bounds = current_wall_bounds(ctx)
    sizes = [_furniture_size(item) for item in furniture]
    auto_idx = [idx for idx, item in enumerate(furniture) if not _has_explicit_position(item)]
    auto_points, grid_count = _auto_positions([sizes[idx] for idx in auto_idx], grid, bounds, settings, warnings)
    placement: Dict[int, Tuple[Point, bool]] = {}
    for order, idx in enumerate(auto_idx):
        placement[idx] = (auto_points[order], order < grid_count)

    for idx, item in enumerate(furniture):
        width, height = sizes[idx]
        rotation = item.get("rotation") or 0.0
        if idx in placement:
            point, from_grid = placement[idx]
            x, y = point["x"], point["y"]
        else:
            x, y = float(item["xMm"]), float(item["yMm"])
            from_grid = False
        if not from_grid:
            x, y = _clamped(x, y, width, height, rotation, bounds, settings)
        entity = {
            "id": ctx.new_id("asset"),
            "type": item["assetType"],
            "x": x,
            "y": y,
            "width": width,
            "height": height,
            "rotation": rotation,
            "scale": 1.0,
            "zIndex": 1,
            "baseWidth": width,
            "baseHeight": height,
        }
        for key in ("fillColor", "strokeColor"):
            if item.get(key):
                entity[key] = item[key]
        ctx.store.append_asset(entity)
        created.append(entity["id"])

    logger.info("assets_created count=%s grid=%s", len(created), grid_count)
    return _result(created, warnings)


# -- shapes -----------------------------------------------------------------


def materialize_shapes(ctx: WorkspaceContext, shapes: List[dict], settings: PlanSettings) -> dict:
    warnings: List[Issue] = []
    created: List[str] = []
    if not shapes:
        return _result(created, warnings)

    bounds = current_wall_bounds(ctx)
    auto = [shape for shape in shapes if not _has_explicit_position(shape)]
    tiled: List[Point] = []
    if auto:
        tiled = tile_positions(
            len(auto),
            max(s["widthMm"] for s in auto),
            max(s["heightMm"] for s in auto),
            _bounds_center(bounds, settings),
            settings.tile_gap,
            settings.tile_columns,
        )
    tiled_iter = iter(tiled)

    for shape in shapes:
        if _has_explicit_position(shape):
            x, y = float(shape["xMm"]), float(shape["yMm"])
        else:
            point = next(tiled_iter)
            x, y = point["x"], point["y"]
        x, y = _clamped(x, y, shape["widthMm"], shape["heightMm"], shape["rotation"], bounds, settings)
        entity = {
            "id": ctx.new_id("shape"),
            "type": shape["type"],
            "x": x,
            "y": y,
            "width": shape["widthMm"],
            "height": shape["heightMm"],
            "radius": shape["radiusMm"],
            "rotation": shape["rotation"],
            "scale": 1.0,
            "fillColor": shape["fillColor"],
            "strokeColor": shape["strokeColor"],
            "strokeWidth": shape["strokeWidth"],
            "zIndex": shape["zIndex"],
            "baseWidth": shape["widthMm"],
            "baseHeight": shape["heightMm"],
            "baseRadius": shape["radiusMm"],
        }
        ctx.store.append_shape(entity)
        created.append(entity["id"])

    logger.info("shapes_created count=%s", len(created))
    return _result(created, warnings)
