"""Plan application pipeline (synchronous, one lock per workspace)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from entity_materialize import materialize_furniture, materialize_shapes, materialize_walls
from legacy_reconcile import reconcile_furniture
from modification_apply import apply_modifications
from operation_exec import execute_operations
from plan_normalize import normalize_plan
from plan_settings import PlanSettings
from roomplan.plan_hash import plan_hash
from workspace_store import WorkspaceContext


logger = logging.getLogger("roomplan.plan_apply")

Issue = Dict[str, Any]


def _unique(ids: List[str]) -> List[str]:
    seen = set()
    ordered = []
    for entity_id in ids:
        if entity_id not in seen:
            seen.add(entity_id)
            ordered.append(entity_id)
    return ordered


def apply_plan(ctx: WorkspaceContext, raw_plan: Any, settings: PlanSettings | None = None) -> dict:
    """Normalize ``raw_plan`` and apply it to ``ctx``.

    Stages run in a fixed order: furniture source reconciliation, walls,
    furniture, shapes, modifications, operations. Later stages may address
    entities created earlier in the same plan. The workspace lock is held
    for the whole application; there is no rollback, so a failure leaves
    the effects of earlier stages in place.

    Returns ``{"ok", "errors", "warnings", "plan", "plan_hash", "effects"}``.
    ``effects`` lists created, updated and removed ids and, when an
    operation changed it, the new selection.
    """
    settings = settings or PlanSettings()
    warnings: List[Issue] = []
    effects: Dict[str, Any] = {"created": [], "updated": [], "removed": [], "selection": None}

    normalized = normalize_plan(raw_plan, default_offset_x=settings.duplicate_offset_x)
    warnings.extend(normalized.get("warnings", []))
    plan = normalized["plan"]
    fingerprint = plan_hash(plan)

    with ctx.lock:
        reconciled = reconcile_furniture(plan)
        warnings.extend(reconciled.get("warnings", []))

        for result in (
            materialize_walls(ctx, plan["walls"], settings),
            materialize_furniture(ctx, reconciled["furniture"], plan["gridLayout"], settings),
            materialize_shapes(ctx, plan["shapes"], settings),
        ):
            warnings.extend(result.get("warnings", []))
            effects["created"].extend(result["created"])

        modified = apply_modifications(ctx, plan["modifications"])
        warnings.extend(modified.get("warnings", []))
        effects["updated"].extend(modified["updated"])

        executed = execute_operations(ctx, plan["operations"], settings)
        warnings.extend(executed.get("warnings", []))
        op_effects = executed["effects"]
        effects["created"].extend(op_effects["created"])
        effects["updated"].extend(op_effects["updated"])
        effects["removed"].extend(op_effects["removed"])
        effects["selection"] = op_effects["selection"]

    removed = set(effects["removed"])
    effects["removed"] = _unique(effects["removed"])
    effects["created"] = [i for i in _unique(effects["created"]) if i not in removed]
    created = set(effects["created"])
    effects["updated"] = [i for i in _unique(effects["updated"]) if i not in removed and i not in created]

    logger.info(
        "plan_applied hash=%s source=%s created=%s updated=%s removed=%s warnings=%s",
        fingerprint,
        reconciled["source"],
        len(effects["created"]),
        len(effects["updated"]),
        len(effects["removed"]),
        len(warnings),
    )
    return {
        "ok": True,
        "errors": [],
        "warnings": warnings,
        "plan": plan,
        "plan_hash": fingerprint,
        "effects": effects,
    }
