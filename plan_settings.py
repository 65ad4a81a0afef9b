"""Plan application settings (canvas size, clamp margin, tiling)."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class PlanSettings:
    canvas_width: float = 10000.0
    canvas_height: float = 10000.0
    clamp_margin: float = 50.0
    tile_gap: float = 200.0
    tile_columns: int = 3
    duplicate_offset_x: float = 500.0

    @property
    def canvas_center(self) -> tuple[float, float]:
        return (self.canvas_width / 2, self.canvas_height / 2)

    @property
    def canvas_bounds(self) -> dict:
        return {"minX": 0.0, "minY": 0.0, "maxX": self.canvas_width, "maxY": self.canvas_height}


def _env_float(env: Mapping[str, str], key: str, default: float, minimum: float = 0.0) -> float:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if not math.isfinite(value) or value < minimum:
        return default
    return value


def settings_from_env(env: Mapping[str, str] | None = None) -> PlanSettings:
    env = os.environ if env is None else env
    defaults = PlanSettings()
    return PlanSettings(
        canvas_width=_env_float(env, "ROOMPLAN_CANVAS_WIDTH_MM", defaults.canvas_width, minimum=1.0),
        canvas_height=_env_float(env, "ROOMPLAN_CANVAS_HEIGHT_MM", defaults.canvas_height, minimum=1.0),
        clamp_margin=_env_float(env, "ROOMPLAN_CLAMP_MARGIN_MM", defaults.clamp_margin),
        tile_gap=_env_float(env, "ROOMPLAN_TILE_GAP_MM", defaults.tile_gap),
        duplicate_offset_x=_env_float(env, "ROOMPLAN_DUPLICATE_OFFSET_MM", defaults.duplicate_offset_x),
    )
