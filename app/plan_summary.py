from __future__ import annotations

from typing import Any


MAX_SUMMARY_BULLETS = 10
MAX_TOP_WARNINGS = 5

_OPERATION_LABELS = {
    "delete": "Deleted",
    "align": "Aligned",
    "distribute": "Distributed",
    "duplicate": "Duplicated",
    "group": "Grouped",
    "ungroup": "Ungrouped",
    "select": "Selection",
}


def _truncate(value: Any, limit: int = 200) -> Any:
    if isinstance(value, str):
        return value[:limit]
    return value


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def _describe_operation(op: dict) -> str | None:
    kind = op.get("kind")
    label = _OPERATION_LABELS.get(kind)
    if label is None:
        return None
    if kind == "delete":
        if op.get("mode") == "all":
            return "Deleted everything"
        if op.get("mode") == "selected":
            return "Deleted selection"
        return f"Deleted {_plural(len(op.get('targetIds') or []) + len(op.get('wallIds') or []), 'item')}"
    if kind == "align":
        return f"Aligned {op.get('alignment')} to {op.get('relativeTo')}"
    if kind == "distribute":
        return f"Distributed {op.get('direction')}ly"
    if kind == "duplicate":
        return f"Duplicated x{op.get('count')}"
    if kind == "select":
        mode = op.get("mode")
        if mode == "all":
            return "Selected all"
        if mode == "none":
            return "Cleared selection"
        criteria = op.get("criteria") or {}
        parts = [f"{k}={v}" for k, v in criteria.items() if v is not None]
        verb = "Deselected" if mode == "deselect" else "Selected"
        return f"{verb} by {', '.join(parts)}"
    return label


def summarize_applied_plan(plan: dict | None, effects: dict | None) -> list[str]:
    """Short operator-facing bullets describing what a plan application did."""
    bullets: list[str] = []
    plan = plan if isinstance(plan, dict) else {}
    effects = effects if isinstance(effects, dict) else {}

    walls = plan.get("walls") or []
    if walls:
        rooms = sum(1 for w in walls if w.get("kind") == "room")
        if rooms:
            bullets.append(f"Walls: {_plural(rooms, 'room')}, {_plural(len(walls) - rooms, 'segment')}")
        else:
            bullets.append(f"Walls: {_plural(len(walls), 'segment')}")
    furniture = plan.get("assets") or plan.get("tables") or []
    if furniture:
        types = []
        for item in furniture:
            asset_type = item.get("assetType")
            if asset_type and asset_type not in types:
                types.append(asset_type)
        bullets.append(f"Furniture: {len(furniture)} ({', '.join(types[:4])})")
    grid = plan.get("gridLayout")
    if isinstance(grid, dict):
        bullets.append(f"Grid: {grid.get('columns')}x{grid.get('rows')}")
    shapes = plan.get("shapes") or []
    if shapes:
        bullets.append(f"Shapes: {len(shapes)}")
    mods = plan.get("modifications") or []
    if mods:
        bullets.append(f"Modified: {_plural(len(mods), 'item')}")
    for op in plan.get("operations") or []:
        text = _describe_operation(op)
        if text:
            bullets.append(text)

    counts = [
        f"{key}={len(effects.get(key) or [])}"
        for key in ("created", "updated", "removed")
        if effects.get(key)
    ]
    if counts:
        bullets.append(f"Effects: {' '.join(counts)}")
    return bullets[:MAX_SUMMARY_BULLETS]


def top_warnings(warnings: list[dict]) -> list[dict]:
    items: list[dict] = []
    if not isinstance(warnings, list):
        return items
    for warning in warnings[:MAX_TOP_WARNINGS]:
        if not isinstance(warning, dict):
            continue
        items.append(
            {
                "code": warning.get("code"),
                "message": _truncate(warning.get("message")),
                "path": warning.get("path"),
            }
        )
    return items
