"""Apply per-entity modifications as partial patches."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from catalog import find_wall_type
from operation_exec import refresh_group_envelope
from roomplan.coerce import normalize_rotation
from workspace_store import EntityHandle, WorkspaceContext


logger = logging.getLogger("roomplan.modifications")

Issue = Dict[str, Any]

_POSITION_FIELDS = {"xMm", "yMm"}
_LAYER_FLAGS = ("bringToFront", "sendToBack", "bringForward", "sendBackward")
_GEOMETRY_KEYS = {"x", "y", "width", "height", "rotation"}


def _issue(code: str, message: str, path: str | None = None, detail: dict | None = None) -> Issue:
    return {"code": code, "message": message, "path": path, "detail": detail}


def _z_range(ctx: WorkspaceContext) -> tuple[int, int]:
    current = ctx.store.list_current()
    values = [int(e.get("zIndex") or 0) for e in current["assets"] + current["shapes"]]
    if not values:
        return 0, 0
    return min(values), max(values)


def _layer_patch(entity: dict, fields: dict, z_range: tuple[int, int]) -> dict:
    current = int(entity.get("zIndex") or 0)
    if "zIndex" in fields:
        return {"zIndex": fields["zIndex"]}
    if fields.get("bringToFront"):
        return {"zIndex": z_range[1] + 1}
    if fields.get("sendToBack"):
        return {"zIndex": max(0, z_range[0] - 1)}
    if fields.get("bringForward"):
        return {"zIndex": current + 1}
    if fields.get("sendBackward"):
        return {"zIndex": max(0, current - 1)}
    return {}


def build_asset_patch(entity: dict, fields: dict, z_range: tuple[int, int] = (0, 0)) -> dict:
    """Partial patch for an asset, shape or group envelope.

    Only fields present in ``fields`` reach the patch. Scale is applied to
    the unscaled base size (and base radius, for circles) so repeating it
    does not compound; an explicit width or height wins over scale and
    resets the base.
    """
    patch: dict = {}
    current_scale = entity.get("scale") or 1.0
    scale = fields.get("scale", current_scale)
    base_w = entity.get("baseWidth") or (entity.get("width") or 0.0) / current_scale
    base_h = entity.get("baseHeight") or (entity.get("height") or 0.0) / current_scale
    has_radius = entity.get("radius") is not None
    base_r = entity.get("baseRadius") or (entity.get("radius") or 0.0) / current_scale

    if "scale" in fields:
        patch["scale"] = scale
        patch["width"] = base_w * scale
        patch["height"] = base_h * scale
        patch["baseWidth"] = base_w
        patch["baseHeight"] = base_h
        if has_radius:
            patch["radius"] = base_r * scale
            patch["baseRadius"] = base_r
    if "widthMm" in fields:
        patch["width"] = fields["widthMm"]
        patch["baseWidth"] = fields["widthMm"] / scale
    if "heightMm" in fields:
        patch["height"] = fields["heightMm"]
        patch["baseHeight"] = fields["heightMm"] / scale
    if "rotation" in fields:
        patch["rotation"] = normalize_rotation(fields["rotation"])
    if "xMm" in fields:
        patch["x"] = fields["xMm"]
    if "yMm" in fields:
        patch["y"] = fields["yMm"]
    for key in ("fillColor", "strokeColor"):
        if key in fields:
            patch[key] = fields[key]
    patch.update(_layer_patch(entity, fields, z_range))
    return patch


def build_wall_patch(fields: dict) -> dict:
    patch: dict = {}
    if "wallType" in fields:
        known = find_wall_type(fields["wallType"])
        if known is not None:
            patch["type"] = known["id"]
            patch["thickness"] = known["thickness"]
        else:
            patch["type"] = fields["wallType"]
    if "thickness" in fields:
        patch["thickness"] = fields["thickness"]
    for key in ("fillColor", "strokeColor"):
        if key in fields:
            patch[key] = fields[key]
    return patch


def _apply_group(ctx: WorkspaceContext, handle: EntityHandle, envelope: dict, fields: dict, z_range: tuple[int, int]) -> List[str]:
    updated: List[str] = []
    patch = build_asset_patch(envelope, fields, z_range)
    if patch:
        ctx.store.update(handle, patch)
        updated.append(handle.id)

    dx = patch["x"] - envelope.get("x", 0.0) if "x" in patch else 0.0
    dy = patch["y"] - envelope.get("y", 0.0) if "y" in patch else 0.0
    member_fields = {k: v for k, v in fields.items() if k not in _POSITION_FIELDS and k != "fanOut"}
    fan_out = bool(fields.get("fanOut")) and bool(member_fields)

    for member_id in envelope.get("memberIds") or []:
        member_handle = ctx.store.resolve(member_id)
        if member_handle is None:
            continue
        member = ctx.store.get(member_id)
        member_patch: dict = {}
        if dx or dy:
            member_patch["x"] = member.get("x", 0.0) + dx
            member_patch["y"] = member.get("y", 0.0) + dy
        if fan_out:
            member_patch.update(build_asset_patch(member, member_fields, z_range))
        if member_patch:
            ctx.store.update(member_handle, member_patch)
            updated.append(member_id)
    return updated


def apply_modifications(ctx: WorkspaceContext, modifications: List[dict]) -> dict:
    """Return ``{"ok", "errors", "warnings", "updated"}``; unknown ids are skipped."""
    warnings: List[Issue] = []
    updated: List[str] = []

    for idx, mod in enumerate(modifications):
        path = f"modifications[{idx}]"
        entity_id = mod["id"]
        handle = ctx.store.resolve(entity_id)
        if handle is None:
            warnings.append(_issue("ENTITY_NOT_FOUND", "No entity with this id; modification skipped", path, {"id": entity_id}))
            logger.debug("modification_target_missing id=%s", entity_id)
            continue

        if mod["target"] == "wall":
            if handle.kind != "wall":
                warnings.append(_issue("ENTITY_KIND_MISMATCH", "wallId does not name a wall", path, {"id": entity_id, "kind": handle.kind}))
                continue
            patch = build_wall_patch(mod["fields"])
            if patch:
                ctx.store.update(handle, patch)
                updated.append(entity_id)
            continue

        if handle.kind == "wall":
            warnings.append(_issue("ENTITY_KIND_MISMATCH", "assetId names a wall; use wallId", path, {"id": entity_id}))
            continue

        entity = ctx.store.get(entity_id)
        z_range = _z_range(ctx)
        if handle.kind == "group":
            updated.extend(_apply_group(ctx, handle, entity, mod["fields"], z_range))
            continue
        patch = build_asset_patch(entity, mod["fields"], z_range)
        if patch:
            ctx.store.update(handle, patch)
            updated.append(entity_id)
            group_id = entity.get("groupId")
            if group_id and _GEOMETRY_KEYS & patch.keys() and refresh_group_envelope(ctx, group_id):
                updated.append(group_id)

    if modifications:
        logger.info("modifications_applied requested=%s updated=%s", len(modifications), len(updated))
    return {"ok": True, "errors": [], "warnings": warnings, "updated": updated}
