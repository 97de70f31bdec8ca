"""
Fixed-window rate limiter.

Run with: pytest backend/tests/test_rate_limit.py -v
"""

from __future__ import annotations

import os
import sys

THIS_DIR = os.path.dirname(__file__)
PKG_ROOT = os.path.abspath(os.path.join(THIS_DIR, ".."))
if PKG_ROOT not in sys.path:
    sys.path.insert(0, PKG_ROOT)

import pytest
from dumpdo.adapters.rate_limit import RateLimiter, RateLimitExceeded


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:
    def test_allows_up_to_limit(self):
        limiter = RateLimiter(max_requests=3, window_s=60, clock=FakeClock())
        assert [limiter.check("u1") for _ in range(4)] == [True, True, True, False]
        assert limiter.stats()["rejected"] == 1

    def test_keys_are_independent(self):
        limiter = RateLimiter(max_requests=1, window_s=60, clock=FakeClock())
        assert limiter.check("u1") is True
        assert limiter.check("u2") is True
        assert limiter.check("u1") is False

    def test_window_resets(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=1, window_s=60, clock=clock)
        assert limiter.check("u1") is True
        assert limiter.check("u1") is False
        clock.now += 60
        assert limiter.check("u1") is True

    def test_hit_raises_with_retry_after(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=1, window_s=60, clock=clock)
        limiter.hit("u1")
        clock.now += 15
        with pytest.raises(RateLimitExceeded) as ei:
            limiter.hit("u1")
        assert ei.value.retry_after_s == pytest.approx(45.0)

    def test_expired_keys_evicted_at_capacity(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=5, window_s=10, clock=clock, max_keys=2)
        limiter.check("a")
        limiter.check("b")
        clock.now += 11
        limiter.check("c")
        assert limiter.stats()["keys"] == 1

    def test_live_keys_capped_oldest_first(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=1, window_s=60, clock=clock, max_keys=5)
        for i in range(50):
            limiter.check(f"user-{i}")
            clock.now += 0.1
        assert limiter.stats()["keys"] == 5
        # newest window survives, so it is still counted
        assert limiter.check("user-49") is False
        # oldest was dropped, so it starts a fresh window
        assert limiter.check("user-0") is True
        assert limiter.stats()["keys"] == 5

    def test_clear(self):
        limiter = RateLimiter(max_requests=1, window_s=60, clock=FakeClock())
        limiter.check("u1")
        limiter.check("u1")
        limiter.clear()
        assert limiter.check("u1") is True
        assert limiter.stats()["rejected"] == 0
