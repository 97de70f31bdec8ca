# backend/dumpdo/adapters/llm/retry.py
"""
Exponential backoff for provider calls.

delay(n) = base * 2**n, plus 0-30% jitter, capped at max_delay_s.
Non-retryable errors and the last attempt re-raise immediately.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from dumpdo.adapters.llm.errors import ProviderError, classify_exception

log = logging.getLogger("dumpdo.llm")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay_s: float = 1.0
    max_delay_s: float = 30.0
    jitter: float = 0.3

    def delay_for(self, attempt: int, rand: Callable[[], float] = random.random) -> float:
        """Delay after the 0-based `attempt` failed."""
        base = self.base_delay_s * (2 ** attempt)
        return min(base + rand() * self.jitter * base, self.max_delay_s)

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_attempts=max(1, int(settings.LLM_MAX_RETRIES)),
            base_delay_s=float(settings.LLM_RETRY_BASE_DELAY_S),
            max_delay_s=float(settings.LLM_RETRY_MAX_DELAY_S),
        )


async def call_with_retries(
    fn: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "llm",
) -> T:
    """
    Await `fn()` up to policy.max_attempts times.
    Anything raised is normalized to ProviderError before the retry decision.
    """
    policy = policy or RetryPolicy()
    attempt = 0
    while True:
        try:
            return await fn()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            err: ProviderError = classify_exception(exc)
            last = attempt + 1 >= policy.max_attempts
            if not err.retryable or last:
                if err is not exc:
                    raise err from exc
                raise
            delay = policy.delay_for(attempt)
            retry_after = getattr(err, "retry_after_s", None)
            if retry_after:
                delay = min(max(delay, retry_after), policy.max_delay_s)
            log.warning(
                "%s error (attempt %d/%d, code=%s), retrying in %.2fs",
                label, attempt + 1, policy.max_attempts, err.code, delay,
            )
            await sleep(delay)
            attempt += 1


__all__ = ["RetryPolicy", "call_with_retries"]
