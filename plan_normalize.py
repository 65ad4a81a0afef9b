"""Plan normalization: untrusted assistant plans -> defaulted, typed sections.

Malformed entries are dropped with a warning; a plan never fails as a whole.
"""

from __future__ import annotations

from typing import Any, Dict, List

from catalog import DEFAULT_WALL_TYPE, find_wall_type, resolve_asset_type, wall_type_for_thickness
from operation_plan import plan_operation
from roomplan.coerce import (
    coerce_int,
    coerce_number,
    coerce_str,
    first_present,
    normalize_rotation,
)


Issue = Dict[str, Any]
Plan = Dict[str, Any]


MAX_COORD_MM = 100000.0

SHAPE_DEFAULTS = {
    "widthMm": 100.0,
    "heightMm": 100.0,
    "radiusMm": 50.0,
    "rotation": 0.0,
    "fillColor": "#cccccc",
    "strokeColor": "#000000",
    "strokeWidth": 1.0,
    "zIndex": 1,
}

DEFAULT_ROOM_THICKNESS_MM = 100.0

_SHAPE_TYPES = {
    "rect": "rect",
    "rectangle": "rect",
    "square": "rect",
    "box": "rect",
    "circle": "circle",
    "ellipse": "circle",
    "oval": "circle",
    "line": "line",
}

_ASSET_MOD_FLAGS = ("bringToFront", "sendToBack", "bringForward", "sendBackward", "fanOut")


def _issue(code: str, message: str, path: str | None = None, detail: dict | None = None) -> Issue:
    return {"code": code, "message": message, "path": path, "detail": detail}


def _section(raw: dict, key: str, warnings: List[Issue]) -> list:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        warnings.append(_issue("SECTION_INVALID", f"{key} must be list; ignored", key))
        return []
    return value


def _coord(raw: dict, keys: tuple, path: str, warnings: List[Issue]) -> float | None:
    value = first_present(raw, *keys)
    if value is None:
        return None
    number = coerce_number(value)
    if number is None:
        warnings.append(_issue("COORD_INVALID", "coordinate is not numeric; auto-placing", path))
        return None
    if abs(number) > MAX_COORD_MM:
        warnings.append(_issue("COORD_OUT_OF_RANGE", "coordinate out of range; auto-placing", path, {"value": number}))
        return None
    return number


def _size(raw: dict, keys: tuple, path: str, warnings: List[Issue]) -> float | None:
    value = first_present(raw, *keys)
    if value is None:
        return None
    number = coerce_number(value)
    if number is None or number <= 0:
        warnings.append(_issue("SIZE_INVALID", "size must be a positive number; using default", path))
        return None
    return number


def _rotation(raw: dict, path: str, warnings: List[Issue]) -> float | None:
    value = raw.get("rotation")
    if value is None:
        return None
    number = coerce_number(value)
    if number is None:
        warnings.append(_issue("ROTATION_INVALID", "rotation is not numeric; ignored", path))
        return None
    return normalize_rotation(number)


def _normalize_furniture(item: Any, path: str, warnings: List[Issue], legacy: bool) -> dict | None:
    if not isinstance(item, dict):
        warnings.append(_issue("ENTRY_INVALID", "furniture entry must be object", path))
        return None
    asset_type = resolve_asset_type(first_present(item, "assetType", "assetName", "type"))
    if asset_type is None:
        if not legacy:
            warnings.append(_issue("ENTRY_INVALID", "asset entry needs assetType", f"{path}.assetType"))
            return None
        asset_type = "rectangular-table"
    return {
        "assetType": asset_type,
        "xMm": _coord(item, ("xMm", "x"), f"{path}.xMm", warnings),
        "yMm": _coord(item, ("yMm", "y"), f"{path}.yMm", warnings),
        "widthMm": _size(item, ("widthMm", "width"), f"{path}.widthMm", warnings),
        "heightMm": _size(item, ("heightMm", "height"), f"{path}.heightMm", warnings),
        "rotation": _rotation(item, f"{path}.rotation", warnings) or 0.0,
        "fillColor": coerce_str(item.get("fillColor")),
        "strokeColor": coerce_str(item.get("strokeColor")),
    }


def _normalize_shape(item: Any, path: str, warnings: List[Issue]) -> dict | None:
    if not isinstance(item, dict):
        warnings.append(_issue("ENTRY_INVALID", "shape entry must be object", path))
        return None
    raw_type = coerce_str(item.get("type"))
    shape_type = _SHAPE_TYPES.get(raw_type.lower()) if raw_type else None
    if shape_type is None:
        warnings.append(_issue("SHAPE_TYPE_INVALID", "shape type must be rect, circle or line", f"{path}.type", {"type": item.get("type")}))
        return None
    radius = _size(item, ("radiusMm", "radius"), f"{path}.radiusMm", warnings)
    width = _size(item, ("widthMm", "width"), f"{path}.widthMm", warnings)
    height = _size(item, ("heightMm", "height"), f"{path}.heightMm", warnings)
    if shape_type == "circle" and radius is not None:
        width = width if width is not None else radius * 2
        height = height if height is not None else radius * 2
    stroke_width = coerce_number(item.get("strokeWidth"))
    z_index = coerce_int(item.get("zIndex"))
    return {
        "type": shape_type,
        "xMm": _coord(item, ("xMm", "x"), f"{path}.xMm", warnings),
        "yMm": _coord(item, ("yMm", "y"), f"{path}.yMm", warnings),
        "widthMm": width if width is not None else SHAPE_DEFAULTS["widthMm"],
        "heightMm": height if height is not None else SHAPE_DEFAULTS["heightMm"],
        "radiusMm": radius if radius is not None else SHAPE_DEFAULTS["radiusMm"],
        "rotation": _rotation(item, f"{path}.rotation", warnings) or SHAPE_DEFAULTS["rotation"],
        "fillColor": coerce_str(item.get("fillColor")) or SHAPE_DEFAULTS["fillColor"],
        "strokeColor": coerce_str(item.get("strokeColor")) or SHAPE_DEFAULTS["strokeColor"],
        "strokeWidth": stroke_width if stroke_width is not None and stroke_width > 0 else SHAPE_DEFAULTS["strokeWidth"],
        "zIndex": z_index if z_index is not None else SHAPE_DEFAULTS["zIndex"],
    }


def _point(value: Any) -> dict | None:
    if not isinstance(value, dict):
        return None
    x = coerce_number(first_present(value, "x", "xMm"))
    y = coerce_number(first_present(value, "y", "yMm"))
    if x is None or y is None:
        return None
    return {"x": x, "y": y}


def _wall_type_and_thickness(item: dict, path: str, warnings: List[Issue]) -> tuple[str | None, float | None]:
    raw_type = coerce_str(first_present(item, "type", "wallType"))
    known = find_wall_type(raw_type) if raw_type else None
    thickness = coerce_number(first_present(item, "thickness", "thicknessMm", "wallThickness"))
    if thickness is not None and thickness <= 0:
        warnings.append(_issue("WALL_THICKNESS_INVALID", "thickness must be positive", f"{path}.thickness"))
        thickness = None
    if thickness is None and known is not None:
        thickness = known["thickness"]
    if known is not None:
        wall_type = known["id"]
    elif raw_type:
        wall_type = raw_type
    elif thickness is not None:
        wall_type = wall_type_for_thickness(thickness) or "custom"
    else:
        wall_type = None
    return wall_type, thickness


def _normalize_wall(item: Any, path: str, warnings: List[Issue]) -> dict | None:
    if not isinstance(item, dict):
        warnings.append(_issue("ENTRY_INVALID", "wall entry must be object", path))
        return None
    wall_type, thickness = _wall_type_and_thickness(item, path, warnings)
    colors = {
        "fillColor": coerce_str(first_present(item, "fillColor", "wallFillColor")),
        "strokeColor": coerce_str(first_present(item, "strokeColor", "wallStrokeColor")),
    }

    if "start" in item or "end" in item:
        start = _point(item.get("start"))
        end = _point(item.get("end"))
        if start is None or end is None or thickness is None:
            warnings.append(_issue("WALL_INVALID", "wall needs start, end and thickness", path))
            return None
        return {"kind": "segment", "start": start, "end": end, "thickness": thickness, "type": wall_type, **colors}

    width = _size(item, ("widthMm", "width"), f"{path}.widthMm", warnings)
    height = _size(item, ("heightMm", "height"), f"{path}.heightMm", warnings)
    if width is None or height is None:
        warnings.append(_issue("WALL_INVALID", "wall needs start/end or widthMm/heightMm", path))
        return None
    if thickness is None:
        thickness = DEFAULT_ROOM_THICKNESS_MM
        wall_type = wall_type or DEFAULT_WALL_TYPE
    return {
        "kind": "room",
        "widthMm": width,
        "heightMm": height,
        "centerX": _coord(item, ("centerX",), f"{path}.centerX", warnings),
        "centerY": _coord(item, ("centerY",), f"{path}.centerY", warnings),
        "thickness": thickness,
        "type": wall_type,
        **colors,
    }


def _normalize_asset_fields(item: dict, path: str, warnings: List[Issue]) -> dict:
    fields: dict = {}
    for key, aliases in (("widthMm", ("widthMm",)), ("heightMm", ("heightMm",))):
        value = _size(item, aliases, f"{path}.{key}", warnings)
        if value is not None:
            fields[key] = value
    for key in ("xMm", "yMm"):
        value = _coord(item, (key,), f"{path}.{key}", warnings)
        if value is not None:
            fields[key] = value
    rotation = _rotation(item, f"{path}.rotation", warnings)
    if rotation is not None:
        fields["rotation"] = rotation
    if item.get("scale") is not None:
        scale = coerce_number(item.get("scale"))
        if scale is None or scale <= 0:
            warnings.append(_issue("SCALE_INVALID", "scale must be a positive number; ignored", f"{path}.scale"))
        else:
            fields["scale"] = scale
    for key in ("fillColor", "strokeColor"):
        value = coerce_str(item.get(key))
        if value is not None:
            fields[key] = value
    z_index = coerce_int(item.get("zIndex"))
    if z_index is not None:
        fields["zIndex"] = z_index
    for key in _ASSET_MOD_FLAGS:
        if item.get(key) is True:
            fields[key] = True
    return fields


def _normalize_wall_fields(item: dict, path: str, warnings: List[Issue]) -> dict:
    fields: dict = {}
    thickness = coerce_number(first_present(item, "wallThickness", "thicknessMm", "thickness"))
    if thickness is not None:
        if thickness <= 0:
            warnings.append(_issue("WALL_THICKNESS_INVALID", "thickness must be positive", f"{path}.wallThickness"))
        else:
            fields["thickness"] = thickness
    wall_type = coerce_str(first_present(item, "wallType", "type"))
    if wall_type is not None:
        fields["wallType"] = wall_type
    for key, aliases in (("fillColor", ("wallFillColor", "fillColor")), ("strokeColor", ("wallStrokeColor", "strokeColor"))):
        value = coerce_str(first_present(item, *aliases))
        if value is not None:
            fields[key] = value
    return fields


def _normalize_modification(item: Any, path: str, warnings: List[Issue]) -> dict | None:
    if not isinstance(item, dict):
        warnings.append(_issue("ENTRY_INVALID", "modification must be object", path))
        return None
    wall_id = coerce_str(item.get("wallId"))
    target_id = coerce_str(first_present(item, "assetId", "groupId", "shapeId"))
    if wall_id:
        target, entity_id = "wall", wall_id
        fields = _normalize_wall_fields(item, path, warnings)
    elif target_id:
        target, entity_id = "asset", target_id
        fields = _normalize_asset_fields(item, path, warnings)
    else:
        warnings.append(_issue("MODIFICATION_INVALID", "modification needs assetId or wallId", path))
        return None
    if not fields or set(fields) == {"fanOut"}:
        warnings.append(_issue("MODIFICATION_EMPTY", "modification has no applicable fields", path, {"id": entity_id}))
        return None
    return {"target": target, "id": entity_id, "fields": fields}


def _normalize_grid(value: Any, warnings: List[Issue]) -> dict | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        warnings.append(_issue("GRID_INVALID", "gridLayout must be object; ignored", "gridLayout"))
        return None
    columns = coerce_int(value.get("columns"), minimum=1)
    rows = coerce_int(value.get("rows"), minimum=1)
    if columns is None or rows is None:
        warnings.append(_issue("GRID_INVALID", "gridLayout needs integer columns and rows >= 1; ignored", "gridLayout"))
        return None
    return {"columns": columns, "rows": rows}


def empty_plan() -> Plan:
    return {
        "assets": [],
        "tables": [],
        "shapes": [],
        "walls": [],
        "modifications": [],
        "operations": [],
        "gridLayout": None,
        "assetsSupplied": False,
    }


def normalize_plan(raw: Any, default_offset_x: float = 500.0) -> dict:
    warnings: List[Issue] = []
    plan = empty_plan()

    if not isinstance(raw, dict):
        warnings.append(_issue("PLAN_INVALID", "plan must be object; treated as empty", "$"))
        return {"ok": True, "errors": [], "warnings": warnings, "plan": plan}

    # a populated current list suppresses the legacy one even if every entry is dropped
    plan["assetsSupplied"] = isinstance(raw.get("assets"), list) and len(raw["assets"]) > 0
    for idx, item in enumerate(_section(raw, "assets", warnings)):
        entry = _normalize_furniture(item, f"assets[{idx}]", warnings, legacy=False)
        if entry is not None:
            plan["assets"].append(entry)

    for idx, item in enumerate(_section(raw, "tables", warnings)):
        entry = _normalize_furniture(item, f"tables[{idx}]", warnings, legacy=True)
        if entry is not None:
            plan["tables"].append(entry)

    for idx, item in enumerate(_section(raw, "shapes", warnings)):
        entry = _normalize_shape(item, f"shapes[{idx}]", warnings)
        if entry is not None:
            plan["shapes"].append(entry)

    for idx, item in enumerate(_section(raw, "walls", warnings)):
        entry = _normalize_wall(item, f"walls[{idx}]", warnings)
        if entry is not None:
            plan["walls"].append(entry)

    for idx, item in enumerate(_section(raw, "modifications", warnings)):
        entry = _normalize_modification(item, f"modifications[{idx}]", warnings)
        if entry is not None:
            plan["modifications"].append(entry)

    raw_operations = list(_section(raw, "operations", warnings))
    if isinstance(raw.get("operation"), dict):
        # older producers send a single operation object
        raw_operations.append(raw["operation"])
    for idx, item in enumerate(raw_operations):
        variant, op_warnings = plan_operation(item, f"operations[{idx}]", default_offset_x=default_offset_x)
        warnings.extend(op_warnings)
        if variant is not None:
            plan["operations"].append(variant)

    plan["gridLayout"] = _normalize_grid(raw.get("gridLayout"), warnings)

    return {"ok": True, "errors": [], "warnings": warnings, "plan": plan}
