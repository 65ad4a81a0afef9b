"""Plan fingerprinting."""

from __future__ import annotations

import hashlib
from typing import Any

from .canonical_json import canonical_dumps


def plan_hash(plan_obj: Any) -> str:
    """Return the canonical SHA-256 fingerprint for a (normalized) plan."""
    data = canonical_dumps(plan_obj).encode("utf-8")
    digest = hashlib.sha256(data).hexdigest()
    return f"sha256:{digest}"
