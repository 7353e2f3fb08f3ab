"""Utility helpers."""
from .time import monotonic_ms, parse_duration_ms  # noqa: F401
