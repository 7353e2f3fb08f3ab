"""Application settings and environment loading utilities."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from app.utils import parse_duration_ms


def _load_dotenv() -> None:
    env_path = Path(".env")
    if not env_path.exists():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


_load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {raw!r}") from exc


def _duration_env(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return parse_duration_ms(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be a duration, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Runtime configuration derived from environment variables."""

    rate_limit_window_ms: int = 10_000
    rate_limit_max_requests: int = 3
    rate_limit_sweep_interval_ms: Optional[int] = None
    host: str = "127.0.0.1"
    port: int = 3000

    @property
    def sweep_interval_ms(self) -> int:
        """Interval between stale-client sweeps, one window unless overridden."""

        return self.rate_limit_sweep_interval_ms or self.rate_limit_window_ms

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            rate_limit_window_ms=_duration_env("RATE_LIMIT_WINDOW", 10_000),
            rate_limit_max_requests=_int_env("RATE_LIMIT_MAX_REQUESTS", 3),
            rate_limit_sweep_interval_ms=_duration_env("RATE_LIMIT_SWEEP_INTERVAL", None),
            host=os.getenv("APP_HOST", "127.0.0.1"),
            port=_int_env("APP_PORT", 3000),
        )


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings.from_env()
