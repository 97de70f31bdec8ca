# backend/dumpdo/domain/chat/service.py
"""
Multi-mode chat: sessions, mode switching, persistence and risk events around
the MIND-SAFE pipeline.

Persistence is best-effort. A StorageError is logged and the reply still goes
out; if the session cannot be created the turn runs on an ephemeral id.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from dumpdo import modes
from dumpdo.adapters.llm.base import LLMMessage
from dumpdo.domain.chat.pipeline import ChatInputError, MindSafePipeline, PipelineOutcome, validate_message
from dumpdo.domain.chat.repo import ChatRepo, StorageError
from dumpdo.domain.responses.sanitizer import assemble_message, sanitize_model_output
from dumpdo.domain.responses.schema import GEMINI_RESPONSE_SCHEMA
from dumpdo.domain.safety.risk_events import build_risk_event, should_log
from dumpdo.domain.safety.service import RiskAssessment
from dumpdo.utils.time import parse_iso, since

log = logging.getLogger("dumpdo.chat")

T = TypeVar("T")


@dataclass
class ChatResult:
    message: str
    session_id: str
    mode: str
    risk_level: str
    is_emergency_response: bool
    tokens_used: Optional[Dict[str, int]] = None


@dataclass
class _Session:
    id: str
    mode: str
    persisted: bool = True
    created_at: Optional[datetime] = None


class ChatService:
    def __init__(
        self,
        repo: ChatRepo,
        pipeline: MindSafePipeline,
        *,
        max_context_messages: int = 10,
        max_message_length: int = 10000,
    ):
        self.repo = repo
        self.pipeline = pipeline
        self.max_context_messages = max_context_messages
        self.max_message_length = max_message_length

    async def _best_effort(self, what: str, aw: Awaitable[T]) -> Optional[T]:
        try:
            return await aw
        except StorageError as e:
            log.warning("%s failed (continuing): %s", what, e)
            return None

    # ---- sessions ----
    async def _resolve_session(self, user_id: str, session_id: Optional[str], mode: str) -> _Session:
        if session_id:
            row = await self._best_effort("get_session", self.repo.get_session(session_id, user_id))
            if row:
                stored = row.get("mode")
                return _Session(
                    id=str(row["id"]),
                    mode=stored if modes.is_valid(stored or "") else mode,
                    created_at=parse_iso(row.get("created_at") or ""),
                )
        new_id = await self._best_effort("create_session", self.repo.create_session(user_id, mode))
        if new_id:
            return _Session(id=new_id, mode=mode)
        return _Session(id=str(uuid.uuid4()), mode=mode, persisted=False)

    async def _switch_mode(self, user_id: str, session: _Session, to_mode: str) -> None:
        previous = session.mode
        session.mode = to_mode
        if not session.persisted:
            return
        await self._best_effort("update_mode", self.repo.update_mode(session.id, user_id, to_mode))
        text = modes.transition_message(previous, to_mode)
        if text:
            await self._best_effort(
                "save_transition",
                self.repo.save_message(session_id=session.id, user_id=user_id, role="assistant", content=text, mode=to_mode),
            )

    async def _history(self, session: _Session) -> List[LLMMessage]:
        if not session.persisted:
            return []
        rows = await self._best_effort(
            "recent_context", self.repo.recent_context(session.id, self.max_context_messages)
        )
        return [LLMMessage(r["role"], r["content"]) for r in rows or [] if r.get("role") in ("user", "assistant")]

    # ---- risk bookkeeping ----
    async def _record_user_turn(
        self, user_id: str, session: _Session, text: str, assessment: RiskAssessment, prior_messages: int
    ) -> None:
        if not session.persisted:
            msg_id = None
        else:
            msg_id = await self._best_effort(
                "save_user_message",
                self.repo.save_message(
                    session_id=session.id,
                    user_id=user_id,
                    role="user",
                    content=text,
                    mode=session.mode,
                    risk_level=assessment.risk_level.value,
                    risk_indicators=assessment.indicators,
                    is_emergency_response=assessment.requires_emergency_response,
                ),
            )

        if not should_log(assessment):
            return
        duration = round(since(session.created_at).total_seconds() / 60.0, 2) if session.created_at else None
        record = build_risk_event(
            assessment, session_duration_minutes=duration, message_count=prior_messages + 1
        )
        log.warning("risk event", extra={"event": {"session_id": session.id, **record.to_row()}})
        if session.persisted:
            await self._best_effort(
                "log_risk_event",
                self.repo.log_risk_event(user_id=user_id, session_id=session.id, record=record, message_id=msg_id),
            )

    # ---- entry point ----
    async def handle(
        self,
        *,
        user_id: str,
        message: Any,
        session_id: Optional[str] = None,
        mode: Optional[str] = None,
        switch_mode: bool = False,
    ) -> ChatResult:
        text = validate_message(message, self.max_message_length)
        if mode is not None and not modes.is_valid(mode):
            raise ChatInputError(f"Modo inválido: {mode}")

        session = await self._resolve_session(user_id, session_id, mode or modes.DEFAULT_MODE)
        if switch_mode and mode and mode != session.mode:
            await self._switch_mode(user_id, session, mode)

        history = await self._history(session)

        async def _on_assessed(assessment: RiskAssessment) -> None:
            await self._record_user_turn(user_id, session, text, assessment, len(history))

        structured = modes.uses_structured_output(session.mode)
        outcome: PipelineOutcome = await self.pipeline.run(
            text,
            system_prompt=modes.build_system_prompt(session.mode, previous_messages=len(history)),
            history=history,
            json_mode=structured,
            response_schema=GEMINI_RESPONSE_SCHEMA if structured else None,
            sanitize=sanitize_model_output if structured else None,
            render=assemble_message if structured else None,
            on_assessed=_on_assessed,
        )

        if outcome.is_emergency:
            if session.persisted:
                await self._best_effort(
                    "save_emergency_message",
                    self.repo.save_message(
                        session_id=session.id,
                        user_id=user_id,
                        role="assistant",
                        content=outcome.message,
                        mode=session.mode,
                        risk_level=outcome.assessment.risk_level.value,
                        risk_indicators=outcome.assessment.indicators,
                        is_emergency_response=True,
                    ),
                )
                await self._best_effort("flag_emergency", self.repo.flag_emergency(session.id))
            return ChatResult(
                message=outcome.message,
                session_id=session.id,
                mode=session.mode,
                risk_level=outcome.assessment.risk_level.value,
                is_emergency_response=True,
            )

        llm = outcome.llm
        if session.persisted and llm is not None:
            await self._best_effort(
                "save_assistant_message",
                self.repo.save_message(
                    session_id=session.id,
                    user_id=user_id,
                    role="assistant",
                    content=outcome.message,
                    mode=session.mode,
                    tokens_input=llm.tokens_input,
                    tokens_output=llm.tokens_output,
                    model_used=llm.model,
                    response_time_ms=llm.response_time_ms,
                ),
            )

        return ChatResult(
            message=outcome.message,
            session_id=session.id,
            mode=session.mode,
            risk_level=outcome.assessment.risk_level.value,
            is_emergency_response=False,
            tokens_used={"input": llm.tokens_input, "output": llm.tokens_output} if llm else None,
        )


__all__ = ["ChatService", "ChatResult"]
