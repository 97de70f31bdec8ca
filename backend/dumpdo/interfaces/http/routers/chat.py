# backend/dumpdo/interfaces/http/routers/chat.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from dumpdo import modes
from dumpdo.adapters.rate_limit import RateLimiter
from dumpdo.domain.chat.pipeline import ChatInputError
from dumpdo.domain.chat.service import ChatService
from dumpdo.interfaces.http.deps.auth import get_current_user
from dumpdo.interfaces.http.deps.services import get_chat_service, get_limiter
from dumpdo.schemas.chat import ChatRequest, ChatResponse, ModeInfo, TokensUsed, WelcomeResponse
from dumpdo.schemas.common import ErrorResponse

router = APIRouter()

ERRORS = {code: {"model": ErrorResponse} for code in (400, 401, 429, 500)}


@router.post("", response_model=ChatResponse, response_model_exclude_none=True, responses=ERRORS)
async def chat(
    payload: ChatRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
    limiter: RateLimiter = Depends(get_limiter),
):
    limiter.hit(str(user["id"]))
    result = await service.handle(
        user_id=str(user["id"]),
        message=payload.message,
        session_id=payload.session_id,
        mode=payload.mode,
        switch_mode=payload.switch_mode,
    )
    return ChatResponse(
        message=result.message,
        session_id=result.session_id,
        mode=result.mode,
        risk_level=result.risk_level,
        is_emergency_response=result.is_emergency_response,
        tokens_used=TokensUsed(**result.tokens_used) if result.tokens_used else None,
    )


@router.get("/modes", response_model=List[ModeInfo])
def list_modes():
    return modes.available()


@router.get("/welcome", response_model=WelcomeResponse)
def welcome(mode: str = Query(modes.DEFAULT_MODE), name: Optional[str] = Query(None, max_length=80)):
    if not modes.is_valid(mode):
        raise ChatInputError(f"Modo inválido: {mode}")
    return WelcomeResponse(mode=mode, message=modes.welcome_message(mode, name))
