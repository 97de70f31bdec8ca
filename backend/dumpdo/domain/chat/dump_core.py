# backend/dumpdo/domain/chat/dump_core.py
"""
Stateless dump-core turn: MIND-SAFE → model (JSON) → sanitize.

The client sends its own history; nothing is persisted here.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from dumpdo.adapters.llm.base import LLMMessage
from dumpdo.domain.chat.pipeline import MindSafePipeline, validate_message
from dumpdo.domain.responses.sanitizer import parse_dump_core_output
from dumpdo.domain.responses.schema import GEMINI_DUMP_CORE_SCHEMA, DumpCoreResponse
from dumpdo.modes import DUMP_CORE_SYSTEM_PROMPT

MAX_HISTORY_MESSAGES = 8
MAX_HISTORY_CHARS = 8000


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _turn_text(item: Any) -> str:
    role = _field(item, "role")
    content = _field(item, "content")
    if role == "assistant":
        ai = _field(item, "ai_response")
        ai_text = _field(ai, "response") if ai is not None else None
        if isinstance(ai_text, str) and ai_text.strip():
            content = ai_text
    return content.strip() if isinstance(content, str) else ""


def build_history_messages(
    history: Sequence[Any],
    max_messages: int = MAX_HISTORY_MESSAGES,
    max_chars: int = MAX_HISTORY_CHARS,
) -> List[LLMMessage]:
    """
    Keep the last `max_messages` items, then walk newest → oldest until the
    character budget runs out. Assistant turns prefer ai_response.response.
    """
    out: List[LLMMessage] = []
    total = 0
    for item in reversed(list(history or [])[-max_messages:]):
        role = _field(item, "role")
        if role not in ("user", "assistant"):
            continue
        text = _turn_text(item)
        if not text:
            continue
        if total + len(text) > max_chars:
            break
        total += len(text)
        out.append(LLMMessage(role, text))
    out.reverse()
    return out


async def run_dump_core(
    pipeline: MindSafePipeline,
    message: Any,
    history: Optional[Sequence[Any]] = None,
    *,
    max_message_length: int = 10000,
    max_history_messages: int = MAX_HISTORY_MESSAGES,
    max_history_chars: int = MAX_HISTORY_CHARS,
) -> DumpCoreResponse:
    text = validate_message(message, max_message_length)
    outcome = await pipeline.run(
        text,
        system_prompt=DUMP_CORE_SYSTEM_PROMPT,
        history=build_history_messages(history or [], max_history_messages, max_history_chars),
        json_mode=True,
        response_schema=GEMINI_DUMP_CORE_SCHEMA,
        sanitize=parse_dump_core_output,
        render=lambda r: r.response,
    )
    if outcome.is_emergency:
        return DumpCoreResponse(response=outcome.message)
    return outcome.payload


__all__ = ["build_history_messages", "run_dump_core", "MAX_HISTORY_MESSAGES", "MAX_HISTORY_CHARS"]
