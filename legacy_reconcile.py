"""Choose between the current ``assets`` list and the deprecated ``tables`` list."""

from __future__ import annotations

import logging
from typing import Any, Dict, List


logger = logging.getLogger("roomplan.plan_apply")

Issue = Dict[str, Any]

LEGACY_ASSET_TYPE = "rectangular-table"
LEGACY_SIZE_MM = (1800.0, 750.0)


def _issue(code: str, message: str, path: str | None = None, detail: dict | None = None) -> Issue:
    return {"code": code, "message": message, "path": path, "detail": detail}


def _legacy_item(item: dict) -> dict:
    converted = dict(item)
    if converted.get("assetType") in (None, LEGACY_ASSET_TYPE):
        converted["assetType"] = LEGACY_ASSET_TYPE
        if converted.get("widthMm") is None:
            converted["widthMm"] = LEGACY_SIZE_MM[0]
        if converted.get("heightMm") is None:
            converted["heightMm"] = LEGACY_SIZE_MM[1]
    return converted


def reconcile_furniture(plan: dict) -> dict:
    """Return ``{"ok", "errors", "warnings", "source", "furniture"}``.

    ``source`` is ``"assets"``, ``"tables"`` or None. The two lists are
    never merged: a non-empty ``assets`` list always wins, including one
    whose entries were all rejected during normalization
    (``assetsSupplied``).
    """
    warnings: List[Issue] = []
    assets = plan.get("assets") or []
    tables = plan.get("tables") or []

    if assets or plan.get("assetsSupplied"):
        if tables:
            warnings.append(
                _issue(
                    "LEGACY_LIST_IGNORED",
                    "Both assets and tables were supplied; tables ignored",
                    "tables",
                    {"assets": len(assets), "tables": len(tables)},
                )
            )
            logger.warning("legacy_list_ignored assets=%s tables=%s", len(assets), len(tables))
        return {"ok": True, "errors": [], "warnings": warnings, "source": "assets", "furniture": list(assets)}

    if tables:
        warnings.append(_issue("LEGACY_LIST_USED", "Deprecated tables list used for furniture", "tables", {"tables": len(tables)}))
        furniture = [_legacy_item(item) for item in tables]
        return {"ok": True, "errors": [], "warnings": warnings, "source": "tables", "furniture": furniture}

    return {"ok": True, "errors": [], "warnings": warnings, "source": None, "furniture": []}
