from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, Field

class HealthResponse(BaseModel):
    ok: bool = True
    version: Optional[str] = None
    provider: Optional[str] = None
    llm_configured: bool = False
    supabase: Optional[bool] = None

class ErrorResponse(BaseModel):
    error: str = Field(..., description="Short, user-facing message (PT-BR)")
    code: Optional[str] = None
    request_id: Optional[str] = None
