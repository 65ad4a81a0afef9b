"""Operation planning: untrusted operation dicts -> one tagged variant per kind."""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from roomplan.coerce import coerce_int, coerce_number, coerce_str, first_present, id_list


Issue = Dict[str, Any]
Operation = Dict[str, Any]


OPERATION_TYPES = {"delete", "align", "distribute", "duplicate", "group", "ungroup", "select"}

ALIGNMENTS = {"left", "right", "center", "top", "bottom", "middle"}
RELATIVE_TO = {"canvas", "selection", "first"}
DIRECTIONS = {"horizontal", "vertical"}

_ALIGNMENT_ALIASES = {
    "centre": "center",
    "center-horizontal": "center",
    "align-center-horizontal": "center",
    "h-center": "center",
    "center-vertical": "middle",
    "align-center-vertical": "middle",
    "v-center": "middle",
}

_ALLOWED_KEYS = {
    "delete": {"assetIds", "shapeIds", "wallIds", "deleteAll", "deleteSelected"},
    "align": {"alignment", "relativeTo", "assetIds"},
    "distribute": {"direction", "spacing", "assetIds"},
    "duplicate": {"count", "offsetX", "offsetY", "assetIds"},
    "group": {"assetIds", "memberIds"},
    "ungroup": {"groupIds", "groupId", "assetIds"},
    "select": {"selectAll", "deselectAll", "criteria", "assetType", "color", "minSize", "maxSize"},
}


def _issue(code: str, message: str, path: str | None = None, detail: dict | None = None) -> Issue:
    return {"code": code, "message": message, "path": path, "detail": detail}


def _check_keys(op_type: str, raw: dict, path: str, warnings: List[Issue]) -> None:
    allowed = _ALLOWED_KEYS[op_type] | {"type"}
    for key in raw.keys():
        if key not in allowed:
            warnings.append(_issue("OPERATION_KEY_IGNORED", f"Unknown key for {op_type}: {key}", f"{path}.{key}"))


def _plan_delete(raw: dict, path: str, warnings: List[Issue]) -> Operation | None:
    if raw.get("deleteAll") is True:
        mode = "all"
    elif raw.get("deleteSelected") is True:
        mode = "selected"
    else:
        mode = "ids"
    asset_ids = id_list(raw.get("assetIds"))
    target_ids = asset_ids + [i for i in id_list(raw.get("shapeIds")) if i not in asset_ids]
    wall_ids = id_list(raw.get("wallIds"))
    if mode == "ids" and not target_ids and not wall_ids:
        warnings.append(_issue("OPERATION_EMPTY", "delete needs ids, deleteAll or deleteSelected", path))
        return None
    return {"kind": "delete", "mode": mode, "targetIds": target_ids, "wallIds": wall_ids}


def _plan_align(raw: dict, path: str, warnings: List[Issue]) -> Operation | None:
    alignment = coerce_str(raw.get("alignment"))
    alignment = alignment.lower() if alignment else None
    alignment = _ALIGNMENT_ALIASES.get(alignment, alignment)
    if alignment not in ALIGNMENTS:
        warnings.append(_issue("OPERATION_INVALID", "alignment must be left/right/center/top/bottom/middle", f"{path}.alignment"))
        return None
    relative_to = coerce_str(raw.get("relativeTo"))
    relative_to = relative_to.lower() if relative_to else "selection"
    if relative_to not in RELATIVE_TO:
        warnings.append(_issue("OPERATION_DEFAULTED", "relativeTo unknown; using selection", f"{path}.relativeTo"))
        relative_to = "selection"
    return {
        "kind": "align",
        "alignment": alignment,
        "relativeTo": relative_to,
        "targetIds": id_list(raw.get("assetIds")),
    }


def _plan_distribute(raw: dict, path: str, warnings: List[Issue]) -> Operation | None:
    direction = coerce_str(raw.get("direction"))
    direction = direction.lower() if direction else None
    if direction not in DIRECTIONS:
        warnings.append(_issue("OPERATION_INVALID", "direction must be horizontal or vertical", f"{path}.direction"))
        return None
    spacing = coerce_number(raw.get("spacing"))
    if spacing is not None and spacing < 0:
        warnings.append(_issue("OPERATION_DEFAULTED", "negative spacing ignored", f"{path}.spacing"))
        spacing = None
    return {
        "kind": "distribute",
        "direction": direction,
        "spacing": spacing,
        "targetIds": id_list(raw.get("assetIds")),
    }


def _plan_duplicate(raw: dict, path: str, warnings: List[Issue], default_offset_x: float) -> Operation | None:
    count = coerce_int(raw.get("count"), default=None, minimum=1)
    if count is None:
        if raw.get("count") is not None:
            warnings.append(_issue("OPERATION_DEFAULTED", "count must be a positive integer; using 1", f"{path}.count"))
        count = 1
    return {
        "kind": "duplicate",
        "count": count,
        "offsetX": coerce_number(raw.get("offsetX"), default_offset_x),
        "offsetY": coerce_number(raw.get("offsetY"), 0.0),
        "targetIds": id_list(raw.get("assetIds")),
    }


def _plan_group(raw: dict, path: str, warnings: List[Issue]) -> Operation | None:
    member_ids = id_list(first_present(raw, "memberIds", "assetIds"))
    return {"kind": "group", "memberIds": member_ids}


def _plan_ungroup(raw: dict, path: str, warnings: List[Issue]) -> Operation | None:
    group_ids = id_list(first_present(raw, "groupIds", "groupId", "assetIds"))
    return {"kind": "ungroup", "groupIds": group_ids}


def _plan_select(raw: dict, path: str, warnings: List[Issue], deselect: bool = False) -> Operation | None:
    if raw.get("deselectAll") is True:
        return {"kind": "select", "mode": "none", "criteria": None}
    if not deselect and raw.get("selectAll") is True:
        return {"kind": "select", "mode": "all", "criteria": None}
    source = raw.get("criteria") if isinstance(raw.get("criteria"), dict) else raw
    criteria = {
        "assetType": coerce_str(source.get("assetType")),
        "color": coerce_str(source.get("color")),
        "minSize": coerce_number(source.get("minSize")),
        "maxSize": coerce_number(source.get("maxSize")),
    }
    if all(value is None for value in criteria.values()):
        if deselect:
            # bare deselect clears the selection
            return {"kind": "select", "mode": "none", "criteria": None}
        warnings.append(_issue("OPERATION_EMPTY", "select needs selectAll, deselectAll or criteria", path))
        return None
    return {"kind": "select", "mode": "deselect" if deselect else "criteria", "criteria": criteria}


def plan_operation(raw: Any, path: str = "operations[0]", default_offset_x: float = 500.0) -> Tuple[Operation | None, List[Issue]]:
    """Return ``(variant, warnings)``; variant is None when the entry is dropped."""
    warnings: List[Issue] = []
    if not isinstance(raw, dict):
        warnings.append(_issue("OPERATION_INVALID", "operation must be object", path))
        return None, warnings
    op_type = coerce_str(raw.get("type"))
    op_type = op_type.lower() if op_type else None
    deselect = op_type == "deselect"
    if deselect:
        op_type = "select"
    if op_type not in OPERATION_TYPES:
        warnings.append(_issue("OPERATION_TYPE_INVALID", "Unsupported operation type", f"{path}.type", {"type": raw.get("type")}))
        return None, warnings

    _check_keys(op_type, raw, path, warnings)

    if op_type == "delete":
        variant = _plan_delete(raw, path, warnings)
    elif op_type == "align":
        variant = _plan_align(raw, path, warnings)
    elif op_type == "distribute":
        variant = _plan_distribute(raw, path, warnings)
    elif op_type == "duplicate":
        variant = _plan_duplicate(raw, path, warnings, default_offset_x)
    elif op_type == "group":
        variant = _plan_group(raw, path, warnings)
    elif op_type == "ungroup":
        variant = _plan_ungroup(raw, path, warnings)
    else:
        variant = _plan_select(raw, path, warnings, deselect=deselect)
    return variant, warnings
