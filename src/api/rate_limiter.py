# This file implements the per-client request limiter used by the HTTP middleware.
# It exists so abusive clients are throttled before any handler or database work runs.
# Each key gets a fixed window; the counter resets when the window elapses.

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class _Window:
    started_at: float
    count: int


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after_seconds: int


class FixedWindowRateLimiter:
    """Thread-safe fixed-window counter keyed by client identifier."""

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit <= 0 or window_seconds <= 0:
            raise ValueError("limit and window_seconds must be greater than 0.")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now - window.started_at >= self.window_seconds:
                window = _Window(started_at=now, count=0)
                self._windows[key] = window
                self._prune(now)

            if window.count >= self.limit:
                retry_after = max(1, int(window.started_at + self.window_seconds - now + 0.999))
                return RateLimitDecision(allowed=False, remaining=0, retry_after_seconds=retry_after)

            window.count += 1
            return RateLimitDecision(
                allowed=True,
                remaining=self.limit - window.count,
                retry_after_seconds=0,
            )

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _prune(self, now: float) -> None:
        expired = [
            key for key, window in self._windows.items() if now - window.started_at >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
