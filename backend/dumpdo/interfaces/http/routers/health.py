from __future__ import annotations
from fastapi import APIRouter

from dumpdo.adapters.supabase_client import supa_ping
from dumpdo.core.config import get_settings
from dumpdo.schemas.common import HealthResponse

router = APIRouter()

@router.get("/healthz", response_model=HealthResponse)
def healthz():
    s = get_settings()
    ok_db = supa_ping() if s.SUPABASE_URL else None
    return HealthResponse(
        ok=ok_db is not False,
        provider=s.LLM_PROVIDER,
        llm_configured=bool(s.api_key_for(s.LLM_PROVIDER)),
        supabase=ok_db,
    )
