"""Room plan kernel utilities (pure geometry, coercion and canonical serialization)."""

from .bounds import clamp_to_bounds, rotated_half_extents, wall_bounds
from .canonical_json import CanonicalJsonTypeError, canonical_dumps
from .coerce import coerce_int, coerce_number, coerce_str, id_list, normalize_rotation
from .grid_layout import grid_gaps, grid_positions
from .plan_hash import plan_hash

__all__ = [
    "CanonicalJsonTypeError",
    "canonical_dumps",
    "clamp_to_bounds",
    "coerce_int",
    "coerce_number",
    "coerce_str",
    "grid_gaps",
    "grid_positions",
    "id_list",
    "normalize_rotation",
    "plan_hash",
    "rotated_half_extents",
    "wall_bounds",
]
