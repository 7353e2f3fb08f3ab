"""In-memory sliding-window rate limiter keyed by client identity."""
from __future__ import annotations

import enum
import time
from collections import deque
from threading import Lock
from typing import Callable, Deque, Dict, Hashable, Optional, Tuple


class InvalidConfigError(ValueError):
    """Raised when the limiter is built with a non-positive window or quota."""


class Decision(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"

    @property
    def allowed(self) -> bool:
        return self is Decision.ALLOW


class SlidingWindowLimiter:
    """Admits at most ``max_requests`` per client within any trailing window.

    ``window_size`` and the ``now`` values passed to :meth:`admit` must use the
    same unit. The whole map is guarded by one lock, so the prune, decide and
    append steps for a client never interleave with another call.
    """

    def __init__(
        self,
        window_size: float,
        max_requests: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(window_size, bool) or not isinstance(window_size, (int, float)):
            raise InvalidConfigError(f"window_size must be a number, got {window_size!r}")
        if window_size <= 0:
            raise InvalidConfigError(f"window_size must be positive, got {window_size!r}")
        if isinstance(max_requests, bool) or not isinstance(max_requests, int):
            raise InvalidConfigError(f"max_requests must be an integer, got {max_requests!r}")
        if max_requests <= 0:
            raise InvalidConfigError(f"max_requests must be positive, got {max_requests!r}")
        self.window_size = window_size
        self.max_requests = max_requests
        self._clock = clock
        self._requests: Dict[Hashable, Deque[float]] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._requests)

    def _prune(self, q: Deque[float], now: float) -> None:
        # Histories are not guaranteed to be sorted, so every entry is checked.
        live = [t for t in q if now - t < self.window_size]
        if len(live) != len(q):
            q.clear()
            q.extend(live)

    def admit(self, client_key: Hashable, now: float) -> Decision:
        """Decide whether a request from ``client_key`` at ``now`` may proceed.

        Denied requests are not recorded and do not count against later windows.
        """

        with self._lock:
            q = self._requests.setdefault(client_key, deque())
            self._prune(q, now)
            if len(q) >= self.max_requests:
                return Decision.DENY
            q.append(now)
            return Decision.ALLOW

    def allow(self, client_key: Hashable) -> bool:
        """Shortcut for :meth:`admit` stamped with the limiter's clock."""

        return self.admit(client_key, self._clock()).allowed

    def sweep(self, now: Optional[float] = None) -> int:
        """Prune every history and forget clients left with none.

        Returns the number of client entries removed.
        """

        if now is None:
            now = self._clock()
        with self._lock:
            expired = []
            for key, q in self._requests.items():
                self._prune(q, now)
                if not q:
                    expired.append(key)
            for key in expired:
                del self._requests[key]
        return len(expired)

    def history(self, client_key: Hashable) -> Tuple[float, ...]:
        """Return a snapshot of the timestamps stored for ``client_key``."""

        with self._lock:
            return tuple(self._requests.get(client_key, ()))

    def reset(self, client_key: Optional[Hashable] = None) -> None:
        """Forget one client, or every client when ``client_key`` is omitted."""

        with self._lock:
            if client_key is None:
                self._requests.clear()
            else:
                self._requests.pop(client_key, None)
