from __future__ import annotations
from typing import List, Optional
from pydantic import BaseModel, Field

class AssessRequest(BaseModel):
    message: str = Field(..., description="Raw user text")

class AssessmentOut(BaseModel):
    risk_level: str
    risk_label: str = Field(..., description="PT-BR label, e.g. Alto")
    risk_type: Optional[str] = None
    indicators: List[str] = Field(default_factory=list)
    confidence_score: float = Field(0.0, ge=0, le=1)
    requires_emergency_response: bool = False
    emergency_response: Optional[str] = None

class EmergencyScriptOut(BaseModel):
    risk_type: str
    message: str
