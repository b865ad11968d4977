"""
Attempt limiting for the pairing-code exchange endpoint.

RateLimiter is the contract the blueprint depends on; the app factory injects
an implementation into app.extensions. FixedWindowRateLimiter keeps counters
in process memory, so they reset on restart and are not shared between
workers. Swap in a shared-cache implementation for multi-process deploys.
"""
from __future__ import annotations

import math
import threading
import time
from typing import Callable, Dict, Tuple


class RateLimiter:
    """allow(key) -> bool; retry_after(key) -> seconds until the window resets."""

    def allow(self, key: str) -> bool:
        raise NotImplementedError

    def retry_after(self, key: str) -> int:
        return 0


class FixedWindowRateLimiter(RateLimiter):
    def __init__(self, max_attempts: int = 5, window_seconds: float = 60,
                 clock: Callable[[], float] = time.monotonic):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.clock = clock
        self._hits: Dict[str, Tuple[int, float]] = {}
        self._next_sweep = 0.0
        self._lock = threading.Lock()

    def _sweep(self, now: float) -> None:
        # At most once per window: drop keys whose window has ended
        if now < self._next_sweep:
            return
        self._hits = {k: v for k, v in self._hits.items() if v[1] > now}
        self._next_sweep = now + self.window_seconds

    def allow(self, key: str) -> bool:
        now = self.clock()
        with self._lock:
            self._sweep(now)
            entry = self._hits.get(key)
            if entry is None or now >= entry[1]:
                self._hits[key] = (1, now + self.window_seconds)
                return True
            count, reset_at = entry
            if count >= self.max_attempts:
                return False
            self._hits[key] = (count + 1, reset_at)
            return True

    def retry_after(self, key: str) -> int:
        now = self.clock()
        with self._lock:
            entry = self._hits.get(key)
        if entry is None or now >= entry[1]:
            return 0
        return max(1, math.ceil(entry[1] - now))
