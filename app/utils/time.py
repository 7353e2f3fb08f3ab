"""Time helpers."""
from __future__ import annotations

import re
import time

_UNITS_MS = {"ms": 1, "s": 1000, "m": 60_000, "h": 3_600_000}
_DURATION_RE = re.compile(r"^\s*(\d+)\s*(ms|s|m|h)?\s*$", re.IGNORECASE)


def monotonic_ms() -> float:
    """Return a monotonic timestamp in milliseconds."""

    return time.monotonic() * 1000


def parse_duration_ms(value: str | int) -> int:
    """Parse ``"250ms"``, ``"10s"``, ``"2m"``, ``"1h"`` or bare milliseconds."""

    if isinstance(value, int):
        return value
    match = _DURATION_RE.match(value)
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _UNITS_MS[(unit or "ms").lower()]
