from __future__ import annotations
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="User message (max 10000 chars)")
    session_id: Optional[str] = Field(None, alias="sessionId")
    mode: Optional[str] = Field(None, description="dump | processar")
    switch_mode: bool = Field(False, alias="switchMode")

class TokensUsed(BaseModel):
    input: int = 0
    output: int = 0

class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    session_id: str = Field(..., alias="sessionId")
    mode: str
    risk_level: str = Field(..., alias="riskLevel")
    is_emergency_response: bool = Field(False, alias="isEmergencyResponse")
    tokens_used: Optional[TokensUsed] = Field(None, alias="tokensUsed")

class ModeInfo(BaseModel):
    id: str
    emoji: str
    name: str
    description: str

class WelcomeResponse(BaseModel):
    mode: str
    message: str

class AiResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    response: Optional[str] = None

class HistoryItem(BaseModel):
    role: Literal["user", "assistant"]
    content: Optional[str] = None
    ai_response: Optional[AiResponse] = None

class DumpCoreRequest(BaseModel):
    message: str
    history: List[HistoryItem] = Field(default_factory=list)

class DumpCoreResponse(BaseModel):
    ok: bool = True
    response: str
    detected_emotions: List[str] = Field(default_factory=list)
    micro_action: Optional[str] = None
    should_end: bool = False
