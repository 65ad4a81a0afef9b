"""In-memory workspace store, selection state and the plan context object."""

from __future__ import annotations

import copy
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def new_entity_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


@dataclass(frozen=True)
class EntityHandle:
    """Typed reference to an entity resolved through the store's entity table."""

    kind: str  # asset | group | shape | wall
    id: str


class WorkspaceStore:
    """Assets (group envelopes included), shapes and walls keyed by id.

    Every mutation returns the prior state of what it touched (None for
    appends) and is recorded in an audit journal.
    """

    def __init__(self) -> None:
        self._assets: Dict[str, dict] = {}
        self._shapes: Dict[str, dict] = {}
        self._walls: Dict[str, dict] = {}
        self._journal: List[dict] = []

    def _table(self, kind: str) -> Dict[str, dict]:
        if kind in {"asset", "group"}:
            return self._assets
        if kind == "shape":
            return self._shapes
        if kind == "wall":
            return self._walls
        raise ValueError(f"unknown entity kind: {kind}")

    def _record(self, action: str, kind: str, entity_id: str | None, prior: Any) -> None:
        self._journal.append(
            {
                "action": action,
                "kind": kind,
                "id": entity_id,
                "prior": copy.deepcopy(prior),
                "at": _now(),
            }
        )

    # -- lookup -----------------------------------------------------------

    def resolve(self, entity_id: Any) -> EntityHandle | None:
        if not isinstance(entity_id, str) or not entity_id:
            return None
        asset = self._assets.get(entity_id)
        if asset is not None:
            return EntityHandle("group" if asset.get("isGroup") else "asset", entity_id)
        if entity_id in self._shapes:
            return EntityHandle("shape", entity_id)
        if entity_id in self._walls:
            return EntityHandle("wall", entity_id)
        return None

    def get(self, entity_id: str) -> dict | None:
        handle = self.resolve(entity_id)
        if handle is None:
            return None
        return copy.deepcopy(self._table(handle.kind)[entity_id])

    def list_current(self) -> dict:
        return {
            "assets": [copy.deepcopy(a) for a in self._assets.values()],
            "shapes": [copy.deepcopy(s) for s in self._shapes.values()],
            "walls": [copy.deepcopy(w) for w in self._walls.values()],
        }

    def journal(self) -> list[dict]:
        return copy.deepcopy(self._journal)

    # -- appends ----------------------------------------------------------

    def _append(self, kind: str, entity: dict) -> None:
        entity_id = entity.get("id") if isinstance(entity, dict) else None
        if not isinstance(entity_id, str) or not entity_id:
            raise ValueError("entity id required")
        if self.resolve(entity_id) is not None:
            raise ValueError(f"duplicate entity id: {entity_id}")
        self._table(kind)[entity_id] = copy.deepcopy(entity)
        self._record("append", kind, entity_id, None)
        return None

    def append_asset(self, asset: dict) -> None:
        return self._append("asset", asset)

    def append_shape(self, shape: dict) -> None:
        return self._append("shape", shape)

    def append_wall(self, wall: dict) -> None:
        return self._append("wall", wall)

    # -- updates ----------------------------------------------------------

    def _update(self, kind: str, entity_id: str, partial: dict) -> dict:
        table = self._table(kind)
        if entity_id not in table:
            raise KeyError(f"{kind} not found: {entity_id}")
        prior = copy.deepcopy(table[entity_id])
        changes = {k: v for k, v in partial.items() if k != "id"}
        table[entity_id].update(copy.deepcopy(changes))
        self._record("update", kind, entity_id, prior)
        return prior

    def update_asset(self, asset_id: str, partial: dict) -> dict:
        return self._update("asset", asset_id, partial)

    def update_shape(self, shape_id: str, partial: dict) -> dict:
        return self._update("shape", shape_id, partial)

    def update_wall(self, wall_id: str, partial: dict) -> dict:
        return self._update("wall", wall_id, partial)

    def update(self, handle: EntityHandle, partial: dict) -> dict:
        return self._update(handle.kind, handle.id, partial)

    def _unset(self, kind: str, entity_id: str, key: str) -> None:
        entity = self._table(kind).get(entity_id)
        if entity is None or key not in entity:
            return
        prior = copy.deepcopy(entity)
        del entity[key]
        self._record("update", kind, entity_id, prior)

    # -- removal ----------------------------------------------------------

    def _detach_member(self, member_id: str, group_id: Any) -> None:
        group = self._assets.get(group_id) if isinstance(group_id, str) else None
        if group is None or not group.get("isGroup"):
            return
        members = group.get("memberIds") or []
        if member_id in members:
            prior = copy.deepcopy(group)
            group["memberIds"] = [m for m in members if m != member_id]
            self._record("update", "group", group_id, prior)

    def remove_by_id(self, entity_id: str) -> dict | None:
        handle = self.resolve(entity_id)
        if handle is None:
            return None
        prior = self._table(handle.kind).pop(entity_id)
        self._record("remove", handle.kind, entity_id, prior)
        if handle.kind == "group":
            for member_id in prior.get("memberIds") or []:
                member = self.resolve(member_id)
                if member is not None and self._table(member.kind)[member_id].get("groupId") == entity_id:
                    self._unset(member.kind, member_id, "groupId")
        elif prior.get("groupId"):
            self._detach_member(entity_id, prior.get("groupId"))
        return copy.deepcopy(prior)

    def clear(self) -> dict:
        prior = self.list_current()
        self._assets.clear()
        self._shapes.clear()
        self._walls.clear()
        self._record("clear", "workspace", None, prior)
        return prior

    # -- groups -----------------------------------------------------------

    def group(self, group_entity: dict, member_ids: Iterable[str]) -> None:
        members = list(member_ids)
        handles = []
        for member_id in members:
            handle = self.resolve(member_id)
            if handle is None:
                raise KeyError(f"member not found: {member_id}")
            if handle.kind not in {"asset", "shape"}:
                raise ValueError(f"cannot group {handle.kind}: {member_id}")
            handles.append(handle)
        envelope = dict(group_entity)
        envelope["isGroup"] = True
        envelope["memberIds"] = members
        self._append("group", envelope)
        group_id = envelope["id"]
        for handle in handles:
            previous = self._table(handle.kind)[handle.id].get("groupId")
            if previous and previous != group_id:
                self._detach_member(handle.id, previous)
            self._update(handle.kind, handle.id, {"groupId": group_id})
        return None

    def ungroup(self, group_id: str) -> dict:
        handle = self.resolve(group_id)
        if handle is None or handle.kind != "group":
            raise KeyError(f"group not found: {group_id}")
        return self.remove_by_id(group_id)


class SelectionState:
    def __init__(self) -> None:
        self._ids: List[str] = []

    def current_selection(self) -> list[str]:
        return list(self._ids)

    def set_selection(self, ids: Iterable[Any]) -> list[str]:
        prior = list(self._ids)
        seen = set()
        ordered = []
        for entity_id in ids:
            if isinstance(entity_id, str) and entity_id and entity_id not in seen:
                seen.add(entity_id)
                ordered.append(entity_id)
        self._ids = ordered
        return prior

    def clear_selection(self) -> list[str]:
        prior = list(self._ids)
        self._ids = []
        return prior

    def discard(self, ids: Iterable[str]) -> None:
        gone = set(ids)
        if gone:
            self._ids = [i for i in self._ids if i not in gone]


@dataclass
class WorkspaceContext:
    """Shared mutable state passed explicitly into every plan stage."""

    store: WorkspaceStore = field(default_factory=WorkspaceStore)
    selection: SelectionState = field(default_factory=SelectionState)
    id_factory: Callable[[str], str] = new_entity_id
    lock: Any = field(default_factory=threading.RLock)

    def new_id(self, prefix: str) -> str:
        return self.id_factory(prefix)
