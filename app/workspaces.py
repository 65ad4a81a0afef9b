from __future__ import annotations

import threading
from typing import Callable, Dict

from roomplan.bounds import wall_bounds
from workspace_store import WorkspaceContext, new_entity_id


class WorkspaceRegistry:
    """Process-local workspaces keyed by id, created on first use."""

    def __init__(self, id_factory: Callable[[str], str] = new_entity_id) -> None:
        self._contexts: Dict[str, WorkspaceContext] = {}
        self._lock = threading.Lock()
        self._id_factory = id_factory

    def get_or_create(self, workspace_id: str) -> WorkspaceContext:
        with self._lock:
            ctx = self._contexts.get(workspace_id)
            if ctx is None:
                ctx = WorkspaceContext(id_factory=self._id_factory)
                self._contexts[workspace_id] = ctx
            return ctx

    def get(self, workspace_id: str) -> WorkspaceContext | None:
        with self._lock:
            return self._contexts.get(workspace_id)


def workspace_snapshot(workspace_id: str, ctx: WorkspaceContext) -> dict:
    with ctx.lock:
        current = ctx.store.list_current()
        selection = ctx.selection.current_selection()
    return {
        "workspace_id": workspace_id,
        "assets": current["assets"],
        "shapes": current["shapes"],
        "walls": current["walls"],
        "selection": selection,
        "wall_bounds": wall_bounds(current["walls"]),
    }
