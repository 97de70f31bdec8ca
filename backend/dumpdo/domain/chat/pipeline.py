# backend/dumpdo/domain/chat/pipeline.py
"""
MIND-SAFE pipeline orchestrator.

    ASSESSING ─┬─ high/critical ─> EMERGENCY ─> DONE        (model never called)
               └─ otherwise ────> GENERATING ─> SANITIZING ─> DONE
                                       └─ provider error / timeout ─> FAILED

FAILED raises GenerationFailed; no assistant text is ever made up.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from dumpdo.adapters.llm.base import LLMConfig, LLMMessage, LLMProvider, LLMResponse
from dumpdo.adapters.llm.errors import NOT_CONFIGURED, TIMEOUT, ProviderError, ProviderTimeoutError
from dumpdo.adapters.llm.retry import RetryPolicy, call_with_retries
from dumpdo.domain.safety.service import RiskAssessment, assess_risk

log = logging.getLogger("dumpdo.chat")

MSG_EMPTY = "Mensagem é obrigatória."
MSG_TOO_LONG = "Mensagem muito longa (máximo de {max} caracteres)."
MSG_EXPIRED = "A resposta demorou demais e a requisição expirou. Tente novamente."
MSG_FAILED = "Não consegui responder agora. Tente novamente em instantes."
MSG_NOT_CONFIGURED = "O serviço de IA não está configurado no momento."


class PipelineState(str, Enum):
    ASSESSING = "assessing"
    EMERGENCY = "emergency"
    GENERATING = "generating"
    SANITIZING = "sanitizing"
    DONE = "done"
    FAILED = "failed"


class ChatInputError(ValueError):
    """Rejected before risk assessment; maps to HTTP 400."""


class GenerationFailed(Exception):
    """The model could not produce a reply; maps to HTTP 500."""

    def __init__(self, user_message: str, code: str = "UNKNOWN"):
        super().__init__(user_message)
        self.user_message = user_message
        self.code = code

    @property
    def expired(self) -> bool:
        return self.code == TIMEOUT


@dataclass
class PipelineOutcome:
    message: str
    assessment: RiskAssessment
    is_emergency: bool = False
    payload: Any = None
    llm: Optional[LLMResponse] = None
    states: List[PipelineState] = field(default_factory=list)

    @property
    def state(self) -> PipelineState:
        return self.states[-1] if self.states else PipelineState.ASSESSING


def validate_message(message: Any, max_length: int = 10000) -> str:
    if not isinstance(message, str) or not message.strip():
        raise ChatInputError(MSG_EMPTY)
    text = message.strip()
    if len(text) > max_length:
        raise ChatInputError(MSG_TOO_LONG.format(max=max_length))
    return text


def _user_message_for(err: ProviderError) -> str:
    if err.code == TIMEOUT:
        return MSG_EXPIRED
    if err.code == NOT_CONFIGURED:
        return MSG_NOT_CONFIGURED
    return MSG_FAILED


class MindSafePipeline:
    """
    One instance per app; `run` is re-entrant and keeps no per-call state on self.

    config_factory is only called in GENERATING, so a missing API key never
    blocks an emergency response.
    """

    def __init__(
        self,
        provider: LLMProvider,
        config_factory: Callable[[], LLMConfig],
        *,
        retry_policy: Optional[RetryPolicy] = None,
        timeout_s: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.provider = provider
        self.config_factory = config_factory
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout_s = timeout_s
        self._sleep = sleep

    def _config(self, json_mode: bool, response_schema: Optional[Dict[str, Any]]) -> LLMConfig:
        cfg = self.config_factory()
        if json_mode:
            # responseSchema is a Gemini feature; the others get JSON mode or the prompt
            cfg = dataclasses.replace(
                cfg,
                json_mode=True,
                response_schema=response_schema if cfg.provider == "gemini" else None,
            )
        return cfg

    async def _generate(self, messages: List[LLMMessage], cfg: LLMConfig) -> LLMResponse:
        call = call_with_retries(
            lambda: self.provider.chat(messages, cfg),
            self.retry_policy,
            sleep=self._sleep,
            label=cfg.provider,
        )
        try:
            return await asyncio.wait_for(call, self.timeout_s)
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(self.timeout_s) from e

    async def run(
        self,
        message: str,
        *,
        system_prompt: str,
        history: Sequence[LLMMessage] = (),
        json_mode: bool = False,
        response_schema: Optional[Dict[str, Any]] = None,
        sanitize: Optional[Callable[[str], Any]] = None,
        render: Optional[Callable[[Any], str]] = None,
        on_assessed: Optional[Callable[[RiskAssessment], Awaitable[None]]] = None,
    ) -> PipelineOutcome:
        """
        `message` must already be validated. `sanitize` turns raw model text
        into a payload and `render` turns that payload into the user-facing text.
        """
        states = [PipelineState.ASSESSING]
        assessment = assess_risk(message)
        if on_assessed is not None:
            await on_assessed(assessment)

        if assessment.requires_emergency_response and assessment.emergency_response:
            states += [PipelineState.EMERGENCY, PipelineState.DONE]
            log.warning(
                "emergency response served",
                extra={"event": {"risk_level": assessment.risk_level.value,
                                 "risk_type": assessment.risk_type.value if assessment.risk_type else None}},
            )
            return PipelineOutcome(
                message=assessment.emergency_response,
                assessment=assessment,
                is_emergency=True,
                states=states,
            )

        states.append(PipelineState.GENERATING)
        try:
            cfg = self._config(json_mode, response_schema)
            messages = [LLMMessage("system", system_prompt), *history, LLMMessage("user", message)]
            llm = await self._generate(messages, cfg)
        except ProviderError as err:
            states.append(PipelineState.FAILED)
            log.error("generation failed (code=%s): %s", err.code, err)
            raise GenerationFailed(_user_message_for(err), err.code) from err

        states.append(PipelineState.SANITIZING)
        if sanitize is not None:
            payload = sanitize(llm.content)
            text = render(payload) if render is not None else str(payload)
        else:
            payload = None
            text = llm.content.strip()

        states.append(PipelineState.DONE)
        return PipelineOutcome(message=text, assessment=assessment, payload=payload, llm=llm, states=states)


__all__ = [
    "PipelineState",
    "PipelineOutcome",
    "ChatInputError",
    "GenerationFailed",
    "MindSafePipeline",
    "validate_message",
]
