"""Execute planned bulk operations against a workspace context."""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, List

from plan_settings import PlanSettings
from roomplan.bounds import rotated_half_extents
from workspace_store import EntityHandle, WorkspaceContext


logger = logging.getLogger("roomplan.operations")

Issue = Dict[str, Any]
Box = Dict[str, float]

_MOVABLE = {"asset", "group", "shape"}


def _issue(code: str, message: str, path: str | None = None, detail: dict | None = None) -> Issue:
    return {"code": code, "message": message, "path": path, "detail": detail}


def _new_effects() -> dict:
    return {"created": [], "updated": [], "removed": [], "selection": None}


def entity_box(entity: dict) -> Box:
    half_w, half_h = rotated_half_extents(entity.get("width") or 0.0, entity.get("height") or 0.0, entity.get("rotation") or 0.0)
    x = entity.get("x") or 0.0
    y = entity.get("y") or 0.0
    return {"minX": x - half_w, "minY": y - half_h, "maxX": x + half_w, "maxY": y + half_h}


def union_box(boxes: List[Box]) -> Box | None:
    if not boxes:
        return None
    return {
        "minX": min(b["minX"] for b in boxes),
        "minY": min(b["minY"] for b in boxes),
        "maxX": max(b["maxX"] for b in boxes),
        "maxY": max(b["maxY"] for b in boxes),
    }


def envelope_fields(members: List[dict]) -> dict:
    """Axis-aligned envelope geometry spanning ``members``."""
    box = union_box([entity_box(m) for m in members])
    width = box["maxX"] - box["minX"]
    height = box["maxY"] - box["minY"]
    return {
        "x": (box["minX"] + box["maxX"]) / 2,
        "y": (box["minY"] + box["maxY"]) / 2,
        "width": width,
        "height": height,
        "rotation": 0.0,
        "scale": 1.0,
        "baseWidth": width,
        "baseHeight": height,
    }


def refresh_group_envelope(ctx: WorkspaceContext, group_id: Any) -> bool:
    """Recompute a group's envelope from its members; False when nothing changed."""
    handle = ctx.store.resolve(group_id)
    if handle is None or handle.kind != "group":
        return False
    group = ctx.store.get(group_id)
    members = [ctx.store.get(m) for m in group.get("memberIds") or []]
    members = [m for m in members if m is not None]
    if not members:
        return False
    fields = envelope_fields(members)
    if all(group.get(k) == v for k, v in fields.items()):
        return False
    ctx.store.update(handle, fields)
    logger.debug("group_envelope_refreshed id=%s", group_id)
    return True


def _target_handles(ctx: WorkspaceContext, ids: List[str], path: str, warnings: List[Issue], kinds=_MOVABLE) -> List[EntityHandle]:
    if not ids:
        ids = ctx.selection.current_selection()
    handles = []
    for entity_id in ids:
        handle = ctx.store.resolve(entity_id)
        if handle is None:
            warnings.append(_issue("ENTITY_NOT_FOUND", "No entity with this id; skipped", path, {"id": entity_id}))
            logger.debug("operation_target_missing id=%s", entity_id)
            continue
        if handle.kind not in kinds:
            warnings.append(_issue("ENTITY_KIND_UNSUPPORTED", f"Operation does not apply to {handle.kind}", path, {"id": entity_id}))
            continue
        handles.append(handle)
    group_ids = {h.id for h in handles if h.kind == "group"}
    if group_ids:
        # members ride along with their targeted group
        handles = [h for h in handles if h.kind == "group" or ctx.store.get(h.id).get("groupId") not in group_ids]
    return handles


def _move(ctx: WorkspaceContext, handle: EntityHandle, entity: dict, x: float, y: float, effects: dict) -> None:
    dx = x - (entity.get("x") or 0.0)
    dy = y - (entity.get("y") or 0.0)
    if not dx and not dy:
        return
    ctx.store.update(handle, {"x": x, "y": y})
    effects["updated"].append(handle.id)
    if handle.kind != "group":
        if entity.get("groupId") and refresh_group_envelope(ctx, entity["groupId"]):
            effects["updated"].append(entity["groupId"])
        return
    for member_id in entity.get("memberIds") or []:
        member_handle = ctx.store.resolve(member_id)
        if member_handle is None:
            continue
        member = ctx.store.get(member_id)
        ctx.store.update(member_handle, {"x": (member.get("x") or 0.0) + dx, "y": (member.get("y") or 0.0) + dy})
        effects["updated"].append(member_id)


# -- delete -----------------------------------------------------------------


def _remove(ctx: WorkspaceContext, entity_id: str, effects: dict) -> None:
    handle = ctx.store.resolve(entity_id)
    if handle is None:
        return
    if handle.kind == "group":
        for member_id in ctx.store.get(entity_id).get("memberIds") or []:
            if ctx.store.remove_by_id(member_id) is not None:
                effects["removed"].append(member_id)
    ctx.store.remove_by_id(entity_id)
    effects["removed"].append(entity_id)


def _exec_delete(ctx: WorkspaceContext, op: dict, path: str, settings: PlanSettings, warnings: List[Issue]) -> dict:
    effects = _new_effects()
    if op["mode"] == "all":
        prior = ctx.store.clear()
        for section in ("assets", "shapes", "walls"):
            effects["removed"].extend(e["id"] for e in prior[section])
    else:
        if op["mode"] == "selected":
            ids = ctx.selection.current_selection()
        else:
            ids = op["targetIds"] + op["wallIds"]
        for entity_id in ids:
            if ctx.store.resolve(entity_id) is None:
                if entity_id not in effects["removed"]:
                    warnings.append(_issue("ENTITY_NOT_FOUND", "No entity with this id; skipped", path, {"id": entity_id}))
                    logger.debug("delete_target_missing id=%s", entity_id)
                continue
            _remove(ctx, entity_id, effects)
    ctx.selection.discard(effects["removed"])
    return effects


# -- align / distribute -----------------------------------------------------


def _exec_align(ctx: WorkspaceContext, op: dict, path: str, settings: PlanSettings, warnings: List[Issue]) -> dict:
    effects = _new_effects()
    handles = _target_handles(ctx, op["targetIds"], path, warnings)
    if not handles:
        warnings.append(_issue("OPERATION_SKIPPED", "align has no targets", path))
        return effects
    entities = [ctx.store.get(h.id) for h in handles]
    boxes = [entity_box(e) for e in entities]
    if op["relativeTo"] == "canvas":
        ref = settings.canvas_bounds
    elif op["relativeTo"] == "first":
        ref = boxes[0]
    else:
        ref = union_box(boxes)

    alignment = op["alignment"]
    for handle, entity, box in zip(handles, entities, boxes):
        half_w = (box["maxX"] - box["minX"]) / 2
        half_h = (box["maxY"] - box["minY"]) / 2
        x, y = entity.get("x") or 0.0, entity.get("y") or 0.0
        if alignment == "left":
            x = ref["minX"] + half_w
        elif alignment == "right":
            x = ref["maxX"] - half_w
        elif alignment == "center":
            x = (ref["minX"] + ref["maxX"]) / 2
        elif alignment == "top":
            y = ref["minY"] + half_h
        elif alignment == "bottom":
            y = ref["maxY"] - half_h
        else:
            y = (ref["minY"] + ref["maxY"]) / 2
        _move(ctx, handle, entity, x, y, effects)
    return effects


def _exec_distribute(ctx: WorkspaceContext, op: dict, path: str, settings: PlanSettings, warnings: List[Issue]) -> dict:
    effects = _new_effects()
    handles = _target_handles(ctx, op["targetIds"], path, warnings)
    if len(handles) < 2:
        warnings.append(_issue("OPERATION_SKIPPED", "distribute needs at least two targets", path))
        return effects
    horizontal = op["direction"] == "horizontal"
    lo, hi, axis = ("minX", "maxX", "x") if horizontal else ("minY", "maxY", "y")

    items = []
    for handle in handles:
        entity = ctx.store.get(handle.id)
        items.append((handle, entity, entity_box(entity)))
    items.sort(key=lambda item: item[1].get(axis) or 0.0)

    sizes = [box[hi] - box[lo] for _, _, box in items]
    if op["spacing"] is None:
        span = items[-1][2][hi] - items[0][2][lo]
        gap = (span - sum(sizes)) / (len(items) - 1)
        movable = items[1:-1]
    else:
        gap = op["spacing"]
        movable = items[1:]

    cursor = items[0][2][hi] + gap
    for (handle, entity, box), size in zip(movable, sizes[1:]):
        centre = cursor + size / 2
        if horizontal:
            _move(ctx, handle, entity, centre, entity.get("y") or 0.0, effects)
        else:
            _move(ctx, handle, entity, entity.get("x") or 0.0, centre, effects)
        cursor += size + gap
    return effects


# -- duplicate / group / ungroup --------------------------------------------


def _copy_entity(ctx: WorkspaceContext, entity: dict, kind: str, dx: float, dy: float) -> dict:
    clone = copy.deepcopy(entity)
    clone["id"] = ctx.new_id(kind)
    clone.pop("groupId", None)
    if kind == "wall":
        for key in ("start", "end"):
            clone[key] = {"x": clone[key]["x"] + dx, "y": clone[key]["y"] + dy}
    else:
        clone["x"] = (clone.get("x") or 0.0) + dx
        clone["y"] = (clone.get("y") or 0.0) + dy
    return clone


def _append(ctx: WorkspaceContext, kind: str, entity: dict) -> None:
    if kind == "shape":
        ctx.store.append_shape(entity)
    elif kind == "wall":
        ctx.store.append_wall(entity)
    else:
        ctx.store.append_asset(entity)


def _exec_duplicate(ctx: WorkspaceContext, op: dict, path: str, settings: PlanSettings, warnings: List[Issue]) -> dict:
    effects = _new_effects()
    handles = _target_handles(ctx, op["targetIds"], path, warnings, kinds=_MOVABLE | {"wall"})
    if not handles:
        warnings.append(_issue("OPERATION_SKIPPED", "duplicate has no targets", path))
        return effects
    for handle in handles:
        entity = ctx.store.get(handle.id)
        for k in range(1, op["count"] + 1):
            dx = k * op["offsetX"]
            dy = k * op["offsetY"]
            if handle.kind == "group":
                member_ids = []
                for member_id in entity.get("memberIds") or []:
                    member_handle = ctx.store.resolve(member_id)
                    if member_handle is None:
                        continue
                    clone = _copy_entity(ctx, ctx.store.get(member_id), member_handle.kind, dx, dy)
                    _append(ctx, member_handle.kind, clone)
                    member_ids.append(clone["id"])
                    effects["created"].append(clone["id"])
                envelope = _copy_entity(ctx, entity, "group", dx, dy)
                envelope.pop("memberIds", None)
                ctx.store.group(envelope, member_ids)
                effects["created"].append(envelope["id"])
            else:
                clone = _copy_entity(ctx, entity, handle.kind, dx, dy)
                _append(ctx, handle.kind, clone)
                effects["created"].append(clone["id"])
    return effects


def _exec_group(ctx: WorkspaceContext, op: dict, path: str, settings: PlanSettings, warnings: List[Issue]) -> dict:
    effects = _new_effects()
    handles = _target_handles(ctx, op["memberIds"], path, warnings, kinds={"asset", "shape"})
    if len(handles) < 2:
        warnings.append(_issue("OPERATION_SKIPPED", "group needs at least two members", path))
        return effects
    members = [ctx.store.get(h.id) for h in handles]
    envelope = {"id": ctx.new_id("group"), "type": "group"}
    envelope.update(envelope_fields(members))
    envelope["zIndex"] = max(int(m.get("zIndex") or 0) for m in members)
    ctx.store.group(envelope, [h.id for h in handles])
    effects["created"].append(envelope["id"])
    effects["updated"].extend(h.id for h in handles)
    return effects


def _exec_ungroup(ctx: WorkspaceContext, op: dict, path: str, settings: PlanSettings, warnings: List[Issue]) -> dict:
    effects = _new_effects()
    group_ids = op["groupIds"]
    if not group_ids:
        selected = [ctx.store.resolve(i) for i in ctx.selection.current_selection()]
        group_ids = [h.id for h in selected if h is not None and h.kind == "group"]
    if not group_ids:
        warnings.append(_issue("OPERATION_SKIPPED", "ungroup has no groups", path))
        return effects
    for group_id in group_ids:
        handle = ctx.store.resolve(group_id)
        if handle is None or handle.kind != "group":
            warnings.append(_issue("ENTITY_NOT_FOUND", "No group with this id; skipped", path, {"id": group_id}))
            continue
        prior = ctx.store.ungroup(group_id)
        effects["removed"].append(group_id)
        effects["updated"].extend(m for m in prior.get("memberIds") or [] if ctx.store.resolve(m) is not None)
    ctx.selection.discard(effects["removed"])
    return effects


# -- select -----------------------------------------------------------------


def matches_criteria(entity: dict, criteria: dict) -> bool:
    asset_type = criteria.get("assetType")
    if asset_type and asset_type.lower() not in str(entity.get("type") or "").lower():
        return False
    color = criteria.get("color")
    if color and color.lower() != str(entity.get("fillColor") or "").lower():
        return False
    size = max(entity.get("width") or 0.0, entity.get("height") or 0.0)
    if criteria.get("minSize") is not None and size < criteria["minSize"]:
        return False
    if criteria.get("maxSize") is not None and size > criteria["maxSize"]:
        return False
    return True


def _exec_select(ctx: WorkspaceContext, op: dict, path: str, settings: PlanSettings, warnings: List[Issue]) -> dict:
    effects = _new_effects()
    current = ctx.store.list_current()
    candidates = current["assets"] + current["shapes"]
    if op["mode"] == "none":
        ids: List[str] = []
    elif op["mode"] == "all":
        ids = [e["id"] for e in candidates]
    elif op["mode"] == "deselect":
        matched = {e["id"] for e in candidates if matches_criteria(e, op["criteria"])}
        ids = [i for i in ctx.selection.current_selection() if i not in matched]
    else:
        ids = [e["id"] for e in candidates if not e.get("isGroup") and matches_criteria(e, op["criteria"])]
    ctx.selection.set_selection(ids)
    effects["selection"] = ctx.selection.current_selection()
    return effects


_EXECUTORS: Dict[str, Callable[..., dict]] = {
    "delete": _exec_delete,
    "align": _exec_align,
    "distribute": _exec_distribute,
    "duplicate": _exec_duplicate,
    "group": _exec_group,
    "ungroup": _exec_ungroup,
    "select": _exec_select,
}


def execute_operations(ctx: WorkspaceContext, operations: List[dict], settings: PlanSettings | None = None) -> dict:
    """Run operations in order; returns ``{"ok", "errors", "warnings", "effects"}``."""
    settings = settings or PlanSettings()
    warnings: List[Issue] = []
    effects = _new_effects()
    for idx, op in enumerate(operations):
        path = f"operations[{idx}]"
        executor = _EXECUTORS.get(op.get("kind"))
        if executor is None:
            warnings.append(_issue("OPERATION_TYPE_INVALID", "Unsupported operation kind", path, {"kind": op.get("kind")}))
            continue
        step = executor(ctx, op, path, settings, warnings)
        effects["created"].extend(step["created"])
        effects["updated"].extend(step["updated"])
        effects["removed"].extend(step["removed"])
        if step["selection"] is not None:
            effects["selection"] = step["selection"]
        logger.info(
            "operation_executed kind=%s created=%s updated=%s removed=%s",
            op["kind"],
            len(step["created"]),
            len(step["updated"]),
            len(step["removed"]),
        )
    return {"ok": True, "errors": [], "warnings": warnings, "effects": effects}
