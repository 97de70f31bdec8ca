# backend/dumpdo/adapters/rate_limit.py
"""
In-memory fixed-window rate limiter, keyed by user id (or client host).
Single process only; counts reset on restart.
"""
from __future__ import annotations

import heapq
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

__all__ = ["RateLimiter", "RateLimitExceeded", "get_rate_limiter"]


class RateLimitExceeded(Exception):
    def __init__(self, retry_after_s: float):
        super().__init__("rate limit exceeded")
        self.retry_after_s = retry_after_s


class RateLimiter:
    """Fixed window: at most `max_requests` per `window_s` per key."""

    def __init__(
        self,
        max_requests: int = 20,
        window_s: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        max_keys: int = 10000,
    ):
        self.max_requests = max_requests
        self.window_s = window_s
        self.max_keys = max_keys
        self._clock = clock
        self._windows: Dict[str, Tuple[int, float]] = {}  # key -> (count, reset_at)
        self._lock = threading.Lock()
        self.rejected = 0

    def check(self, key: str) -> bool:
        """Count one request for `key`. False when over the limit."""
        now = self._clock()
        with self._lock:
            count, reset_at = self._windows.get(key, (0, 0.0))
            if now >= reset_at:
                if len(self._windows) >= self.max_keys:
                    self._evict(now)
                self._windows[key] = (1, now + self.window_s)
                return True
            if count >= self.max_requests:
                self.rejected += 1
                return False
            self._windows[key] = (count + 1, reset_at)
            return True

    def hit(self, key: str) -> None:
        """Like check(), but raises RateLimitExceeded."""
        if not self.check(key):
            raise RateLimitExceeded(self.retry_after(key))

    def retry_after(self, key: str) -> float:
        with self._lock:
            _count, reset_at = self._windows.get(key, (0, 0.0))
        return max(0.0, reset_at - self._clock())

    def _evict(self, now: float) -> None:
        """Drop expired windows, then the oldest live ones until there is room for one more key."""
        expired = [k for k, (_c, reset_at) in self._windows.items() if now >= reset_at]
        for k in expired:
            del self._windows[k]
        overflow = len(self._windows) - self.max_keys + 1
        if overflow > 0:
            oldest = heapq.nsmallest(overflow, self._windows.items(), key=lambda kv: kv[1][1])
            for k, _window in oldest:
                del self._windows[k]

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()
            self.rejected = 0

    def stats(self) -> dict[str, Any]:
        return {
            "keys": len(self._windows),
            "max_requests": self.max_requests,
            "window_s": self.window_s,
            "rejected": self.rejected,
        }


# Singleton instance
_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get or create the global limiter from settings."""
    global _limiter
    if _limiter is None:
        from dumpdo.core.config import get_settings

        s = get_settings()
        _limiter = RateLimiter(max_requests=s.RATE_LIMIT_MAX, window_s=s.RATE_LIMIT_WINDOW_S)
    return _limiter
