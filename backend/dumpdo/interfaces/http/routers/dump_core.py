from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

from dumpdo.adapters.rate_limit import RateLimiter
from dumpdo.core.config import get_settings
from dumpdo.domain.chat.dump_core import run_dump_core
from dumpdo.domain.chat.pipeline import MindSafePipeline
from dumpdo.interfaces.http.deps.auth import get_optional_user
from dumpdo.interfaces.http.deps.services import get_limiter, get_pipeline
from dumpdo.schemas.chat import DumpCoreRequest, DumpCoreResponse
from dumpdo.schemas.common import ErrorResponse

router = APIRouter()

ERRORS = {code: {"model": ErrorResponse} for code in (400, 429, 500)}


def _rate_key(request: Request, user: Optional[Dict[str, Any]]) -> str:
    if user and user.get("id"):
        return f"user:{user['id']}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


@router.post("", response_model=DumpCoreResponse, responses=ERRORS)
async def dump_core(
    payload: DumpCoreRequest,
    request: Request,
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    pipeline: MindSafePipeline = Depends(get_pipeline),
    limiter: RateLimiter = Depends(get_limiter),
):
    limiter.hit(_rate_key(request, user))
    s = get_settings()
    result = await run_dump_core(
        pipeline,
        payload.message,
        payload.history,
        max_message_length=s.MAX_MESSAGE_LENGTH,
        max_history_messages=s.DUMP_CORE_MAX_HISTORY_MESSAGES,
        max_history_chars=s.DUMP_CORE_MAX_HISTORY_CHARS,
    )
    return DumpCoreResponse(
        response=result.response,
        detected_emotions=result.detected_emotions,
        micro_action=result.micro_action,
        should_end=result.should_end,
    )
