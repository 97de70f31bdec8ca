# backend/dumpdo/adapters/llm/base.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Protocol

Role = Literal["system", "user", "assistant"]
ProviderName = Literal["gemini", "openai", "anthropic"]


@dataclass
class LLMMessage:
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class LLMConfig:
    """Per-call settings. `response_schema` only matters to Gemini."""
    provider: ProviderName
    model: str
    api_key: str
    max_tokens: int = 1024
    temperature: float = 0.7
    timeout_s: float = 30.0
    json_mode: bool = False
    response_schema: Optional[Dict[str, Any]] = None


@dataclass
class LLMResponse:
    content: str
    tokens_input: int = 0
    tokens_output: int = 0
    model: str = ""
    response_time_ms: int = 0


class LLMProvider(Protocol):
    name: str

    async def chat(self, messages: List[LLMMessage], config: LLMConfig) -> LLMResponse:
        ...


def split_system(messages: List[LLMMessage]) -> tuple[Optional[str], List[LLMMessage]]:
    """(first system prompt, remaining turns) for APIs that take the system prompt apart."""
    system = next((m.content for m in messages if m.role == "system"), None)
    return system, [m for m in messages if m.role != "system"]


__all__ = ["Role", "ProviderName", "LLMMessage", "LLMConfig", "LLMResponse", "LLMProvider", "split_system"]
