"""Diagnostics helpers for workspaces."""

from __future__ import annotations

from typing import Any, Dict, List

from roomplan.bounds import wall_bounds
from workspace_store import WorkspaceContext


Issue = Dict[str, Any]


def _issue(code: str, message: str, path: str | None = None, detail: dict | None = None) -> Issue:
    return {"code": code, "message": message, "path": path, "detail": detail}


def _out_of_bounds(entity: dict, bounds: dict) -> bool:
    x = entity.get("x")
    y = entity.get("y")
    if not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
        return False
    return x < bounds["minX"] or x > bounds["maxX"] or y < bounds["minY"] or y > bounds["maxY"]


def build_diagnostics(workspace_id: str, ctx: WorkspaceContext) -> dict:
    with ctx.lock:
        current = ctx.store.list_current()
        selection = ctx.selection.current_selection()
        journal = ctx.store.journal()

    warnings: List[Issue] = []
    assets = current["assets"]
    groups = [a for a in assets if a.get("isGroup")]
    bounds = wall_bounds(current["walls"])
    known_ids = {e["id"] for e in assets + current["shapes"] + current["walls"]}

    for group in groups:
        members = group.get("memberIds") or []
        if len(members) < 2:
            warnings.append(_issue("GROUP_UNDERSIZED", "Group has fewer than two members", group["id"], {"members": len(members)}))
        for member_id in members:
            if member_id not in known_ids:
                warnings.append(_issue("GROUP_MEMBER_MISSING", "Group member no longer exists", group["id"], {"member_id": member_id}))

    if bounds is not None:
        for entity in assets + current["shapes"]:
            if not entity.get("isGroup") and _out_of_bounds(entity, bounds):
                warnings.append(_issue("ENTITY_OUTSIDE_WALLS", "Entity centre lies outside the walls", entity["id"]))

    stale = [i for i in selection if i not in known_ids]
    if stale:
        warnings.append(_issue("SELECTION_STALE", "Selection references missing entities", "selection", {"ids": stale}))

    return {
        "workspace_id": workspace_id,
        "counts": {
            "assets": len(assets) - len(groups),
            "groups": len(groups),
            "shapes": len(current["shapes"]),
            "walls": len(current["walls"]),
            "selected": len(selection),
            "journal": len(journal),
        },
        "wall_bounds": bounds,
        "last_change_at": journal[-1]["at"] if journal else None,
        "warnings": warnings,
    }
