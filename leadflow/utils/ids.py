"""Identifier generation helpers."""

from __future__ import annotations

import random
from datetime import datetime, timezone


def new_inquiry_number(
    prefix: str = "INQ",
    now: datetime | None = None,
    rng: random.Random | None = None,
    digits: int = 3,
) -> str:
    """Human-readable inquiry number, e.g. `INQ-261019-042`."""
    stamp = (now or datetime.now(timezone.utc)).strftime("%y%m%d")
    draw = (rng or random).randrange(10**digits)
    return f"{prefix}-{stamp}-{draw:0{digits}d}"
