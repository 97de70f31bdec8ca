# backend/dumpdo/adapters/llm/providers.py
"""
Chat-completion providers behind one `chat(messages, config)` call.

- Gemini:    REST via httpx (responseSchema JSON mode)
- OpenAI:    openai.AsyncOpenAI (response_format=json_object)
- Anthropic: REST via httpx (JSON requested by prompt only)

SDK-level retries are off; retrying is `retry.call_with_retries`' job.
`transport` lets tests plug in httpx.MockTransport.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from openai import AsyncOpenAI

from dumpdo.adapters.llm.base import LLMConfig, LLMMessage, LLMProvider, LLMResponse, split_system
from dumpdo.adapters.llm.errors import (
    NOT_CONFIGURED,
    SAFETY_BLOCKED,
    ProviderError,
    classify_exception,
    classify_http_error,
)

log = logging.getLogger("dumpdo.llm")

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
ANTHROPIC_BASE_URL = "https://api.anthropic.com/v1"
ANTHROPIC_VERSION = "2023-06-01"


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class _HttpxProvider:
    name = "base"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None, base_url: Optional[str] = None):
        self._transport = transport
        self._base_url = base_url

    def _client(self, timeout_s: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout_s, transport=self._transport)

    async def _post(self, url: str, *, headers: Dict[str, str], body: Dict[str, Any], timeout_s: float) -> Dict[str, Any]:
        try:
            async with self._client(timeout_s) as client:
                resp = await client.post(url, headers=headers, json=body)
        except httpx.HTTPError as e:
            raise classify_exception(e) from e
        if resp.status_code >= 400:
            raise classify_http_error(self.name, resp)
        try:
            return resp.json()
        except ValueError as e:
            raise ProviderError(f"{self.name}: invalid JSON body") from e


class GeminiProvider(_HttpxProvider):
    name = "gemini"

    async def chat(self, messages: List[LLMMessage], config: LLMConfig) -> LLMResponse:
        start = time.perf_counter()
        system, turns = split_system(messages)

        generation_config: Dict[str, Any] = {
            "maxOutputTokens": config.max_tokens,
            "temperature": config.temperature,
            "topP": 0.95,
            "topK": 40,
        }
        if config.response_schema:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = config.response_schema
        elif config.json_mode:
            generation_config["responseMimeType"] = "application/json"

        body: Dict[str, Any] = {
            "contents": [
                {"role": "model" if m.role == "assistant" else "user", "parts": [{"text": m.content}]}
                for m in turns
            ],
            "generationConfig": generation_config,
        }
        if system:
            body["systemInstruction"] = {"parts": [{"text": system}]}

        base = (self._base_url or GEMINI_BASE_URL).rstrip("/")
        data = await self._post(
            f"{base}/models/{config.model}:generateContent",
            headers={"Content-Type": "application/json", "x-goog-api-key": config.api_key},
            body=body,
            timeout_s=config.timeout_s,
        )

        block = (data.get("promptFeedback") or {}).get("blockReason")
        candidates = data.get("candidates") or []
        if block or (candidates and candidates[0].get("finishReason") == "SAFETY"):
            raise ProviderError(f"gemini: blocked by safety filters ({block or 'SAFETY'})", SAFETY_BLOCKED, False)

        parts = ((candidates[0].get("content") or {}).get("parts") if candidates else None) or []
        content = "".join(p.get("text", "") for p in parts)
        if not content.strip():
            raise ProviderError("gemini: empty completion")

        usage = data.get("usageMetadata") or {}
        return LLMResponse(
            content=content,
            tokens_input=int(usage.get("promptTokenCount") or 0),
            tokens_output=int(usage.get("candidatesTokenCount") or 0),
            model=config.model,
            response_time_ms=_elapsed_ms(start),
        )


class AnthropicProvider(_HttpxProvider):
    name = "anthropic"

    async def chat(self, messages: List[LLMMessage], config: LLMConfig) -> LLMResponse:
        start = time.perf_counter()
        system, turns = split_system(messages)

        body: Dict[str, Any] = {
            "model": config.model,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "messages": [m.to_dict() for m in turns],
        }
        if system:
            body["system"] = system

        base = (self._base_url or ANTHROPIC_BASE_URL).rstrip("/")
        data = await self._post(
            f"{base}/messages",
            headers={
                "Content-Type": "application/json",
                "x-api-key": config.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
            },
            body=body,
            timeout_s=config.timeout_s,
        )

        blocks = data.get("content") or []
        content = "".join(b.get("text", "") for b in blocks if b.get("type", "text") == "text")
        if not content.strip():
            raise ProviderError("anthropic: empty completion")

        usage = data.get("usage") or {}
        return LLMResponse(
            content=content,
            tokens_input=int(usage.get("input_tokens") or 0),
            tokens_output=int(usage.get("output_tokens") or 0),
            model=data.get("model") or config.model,
            response_time_ms=_elapsed_ms(start),
        )


class OpenAIProvider:
    name = "openai"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None, base_url: Optional[str] = None):
        self._transport = transport
        self._base_url = base_url

    def _client(self, config: LLMConfig) -> AsyncOpenAI:
        http_client = httpx.AsyncClient(transport=self._transport) if self._transport else None
        return AsyncOpenAI(
            api_key=config.api_key,
            base_url=self._base_url,
            timeout=config.timeout_s,
            max_retries=0,
            http_client=http_client,
        )

    async def chat(self, messages: List[LLMMessage], config: LLMConfig) -> LLMResponse:
        start = time.perf_counter()
        kwargs: Dict[str, Any] = dict(
            model=config.model,
            messages=[m.to_dict() for m in messages],
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
        if config.json_mode or config.response_schema:
            kwargs["response_format"] = {"type": "json_object"}

        client = self._client(config)
        try:
            resp = await client.chat.completions.create(**kwargs)
        except Exception as e:
            raise classify_exception(e) from e
        finally:
            await client.close()

        choice = resp.choices[0] if resp.choices else None
        if choice is not None and choice.finish_reason == "content_filter":
            raise ProviderError("openai: blocked by content filter", SAFETY_BLOCKED, False)
        content = (choice.message.content if choice else None) or ""
        if not content.strip():
            raise ProviderError("openai: empty completion")

        usage = resp.usage
        return LLMResponse(
            content=content,
            tokens_input=int(getattr(usage, "prompt_tokens", 0) or 0),
            tokens_output=int(getattr(usage, "completion_tokens", 0) or 0),
            model=resp.model or config.model,
            response_time_ms=_elapsed_ms(start),
        )


# ---------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------
_PROVIDERS = {
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}


def get_provider(name: str, **kwargs: Any) -> LLMProvider:
    cls = _PROVIDERS.get((name or "").lower())
    if cls is None:
        raise ProviderError(f"Unknown LLM provider: {name}", NOT_CONFIGURED, False)
    return cls(**kwargs)


def default_config(provider: str, settings=None, **overrides: Any) -> LLMConfig:
    """
    Build an LLMConfig from settings. Raises NOT_CONFIGURED when the key is missing.
    """
    if settings is None:
        from dumpdo.core.config import get_settings
        settings = get_settings()
    if provider not in _PROVIDERS:
        raise ProviderError(f"Unknown LLM provider: {provider}", NOT_CONFIGURED, False)
    api_key = settings.api_key_for(provider)
    if not api_key:
        raise ProviderError(f"{provider.upper()}_API_KEY not configured", NOT_CONFIGURED, False)
    cfg = LLMConfig(
        provider=provider,  # type: ignore[arg-type]
        model=settings.model_for(provider),
        api_key=api_key,
        max_tokens=settings.LLM_MAX_TOKENS,
        temperature=settings.LLM_TEMPERATURE,
        timeout_s=settings.LLM_TIMEOUT_S,
    )
    for k, v in overrides.items():
        setattr(cfg, k, v)
    return cfg


__all__ = [
    "GeminiProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "get_provider",
    "default_config",
]
