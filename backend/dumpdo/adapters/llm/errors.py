# backend/dumpdo/adapters/llm/errors.py
"""
Provider failures, normalized to one exception type with a stable `code`.

Retryable: TIMEOUT, RATE_LIMIT, QUOTA_EXCEEDED, RESOURCE_EXHAUSTED, SERVICE_UNAVAILABLE
Fail fast: INVALID_API_KEY, SAFETY_BLOCKED, NOT_CONFIGURED, UNKNOWN
"""

from __future__ import annotations

import asyncio
from typing import Optional

import httpx
import openai

TIMEOUT = "TIMEOUT"
RATE_LIMIT = "RATE_LIMIT"
QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
INVALID_API_KEY = "INVALID_API_KEY"
SAFETY_BLOCKED = "SAFETY_BLOCKED"
NOT_CONFIGURED = "NOT_CONFIGURED"
UNKNOWN = "UNKNOWN"

RETRYABLE_CODES = frozenset({TIMEOUT, RATE_LIMIT, QUOTA_EXCEEDED, RESOURCE_EXHAUSTED, SERVICE_UNAVAILABLE})


class ProviderError(Exception):
    def __init__(
        self,
        message: str,
        code: str = UNKNOWN,
        retryable: Optional[bool] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.code = code
        self.retryable = code in RETRYABLE_CODES if retryable is None else retryable
        self.status = status

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, retryable={self.retryable}, msg={str(self)!r})"


class ProviderTimeoutError(ProviderError):
    def __init__(self, timeout_s: Optional[float] = None):
        msg = f"request expired after {timeout_s:g}s" if timeout_s else "request expired"
        super().__init__(msg, TIMEOUT, True)
        self.timeout_s = timeout_s


class ProviderRateLimitError(ProviderError):
    def __init__(self, message: str, retry_after_s: Optional[float] = None, code: str = RATE_LIMIT):
        super().__init__(message, code, True, status=429)
        self.retry_after_s = retry_after_s


def classify_message(message: str, status: Optional[int] = None) -> ProviderError:
    """Map an HTTP status and/or error text to a ProviderError."""
    text = message or ""
    low = text.lower()

    if status in (401, 403) or "api_key" in low or "api key" in low:
        return ProviderError(text, INVALID_API_KEY, False, status)
    if "resource_exhausted" in low:
        return ProviderRateLimitError(text, code=RESOURCE_EXHAUSTED)
    if "quota" in low:
        return ProviderRateLimitError(text, code=QUOTA_EXCEEDED)
    if status == 429:
        return ProviderRateLimitError(text)
    if "safety" in low:
        return ProviderError(text, SAFETY_BLOCKED, False, status)
    if status in (500, 502, 503, 504, 529) or "unavailable" in low or "overloaded" in low:
        return ProviderError(text, SERVICE_UNAVAILABLE, True, status)
    return ProviderError(text, UNKNOWN, False, status)


def classify_http_error(provider: str, resp: httpx.Response) -> ProviderError:
    body = resp.text[:500] if resp.content else ""
    err = classify_message(f"{provider} API error: {resp.status_code} - {body}", resp.status_code)
    if isinstance(err, ProviderRateLimitError):
        retry_after = resp.headers.get("retry-after")
        if retry_after:
            try:
                err.retry_after_s = float(retry_after)
            except ValueError:
                pass
    return err


def classify_exception(exc: BaseException) -> ProviderError:
    """Normalize anything raised by a provider call."""
    if isinstance(exc, ProviderError):
        return exc
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException, openai.APITimeoutError)):
        return ProviderTimeoutError()
    if isinstance(exc, openai.AuthenticationError):
        return ProviderError(str(exc), INVALID_API_KEY, False, 401)
    if isinstance(exc, openai.APIStatusError):
        return classify_message(str(exc), exc.status_code)
    if isinstance(exc, (openai.APIConnectionError, httpx.TransportError)):
        return ProviderError(str(exc) or type(exc).__name__, SERVICE_UNAVAILABLE, True)
    return classify_message(str(exc))


__all__ = [
    "ProviderError",
    "ProviderTimeoutError",
    "ProviderRateLimitError",
    "RETRYABLE_CODES",
    "classify_message",
    "classify_http_error",
    "classify_exception",
    "TIMEOUT",
    "RATE_LIMIT",
    "QUOTA_EXCEEDED",
    "RESOURCE_EXHAUSTED",
    "SERVICE_UNAVAILABLE",
    "INVALID_API_KEY",
    "SAFETY_BLOCKED",
    "NOT_CONFIGURED",
    "UNKNOWN",
]
