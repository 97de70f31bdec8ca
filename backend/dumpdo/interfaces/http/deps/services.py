# backend/dumpdo/interfaces/http/deps/services.py
"""
Process-wide collaborators, one instance each. Tests swap them through
`app.dependency_overrides`.
"""
from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from dumpdo.adapters.llm.providers import default_config, get_provider
from dumpdo.adapters.llm.retry import RetryPolicy
from dumpdo.adapters.rate_limit import RateLimiter, get_rate_limiter
from dumpdo.core.config import get_settings
from dumpdo.domain.chat.pipeline import MindSafePipeline
from dumpdo.domain.chat.repo import ChatRepo
from dumpdo.domain.chat.service import ChatService


@lru_cache(maxsize=1)
def get_pipeline() -> MindSafePipeline:
    s = get_settings()
    return MindSafePipeline(
        provider=get_provider(s.LLM_PROVIDER),
        config_factory=lambda: default_config(s.LLM_PROVIDER, s),
        retry_policy=RetryPolicy.from_settings(s),
        timeout_s=s.LLM_TIMEOUT_S,
    )


@lru_cache(maxsize=1)
def get_chat_repo() -> ChatRepo:
    return ChatRepo(timeout_s=get_settings().STORAGE_TIMEOUT_S)


def get_chat_service(
    repo: ChatRepo = Depends(get_chat_repo),
    pipeline: MindSafePipeline = Depends(get_pipeline),
) -> ChatService:
    s = get_settings()
    return ChatService(
        repo,
        pipeline,
        max_context_messages=s.MAX_CONTEXT_MESSAGES,
        max_message_length=s.MAX_MESSAGE_LENGTH,
    )


def get_limiter() -> RateLimiter:
    return get_rate_limiter()


__all__ = ["get_pipeline", "get_chat_repo", "get_chat_service", "get_limiter"]
