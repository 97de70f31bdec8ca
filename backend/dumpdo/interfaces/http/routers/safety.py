from fastapi import APIRouter, HTTPException

from dumpdo.domain.safety.crisis_handler import select_response
from dumpdo.domain.safety.patterns import RiskType
from dumpdo.domain.safety.service import assess_risk, risk_label
from dumpdo.schemas.safety import AssessRequest, AssessmentOut, EmergencyScriptOut

router = APIRouter()

@router.post("/assess", response_model=AssessmentOut)
def safe_assess(payload: AssessRequest):
    result = assess_risk(payload.message)
    return AssessmentOut(risk_label=risk_label(result.risk_level), **result.to_dict())

@router.get("/emergency/{risk_type}", response_model=EmergencyScriptOut)
def safe_emergency(risk_type: str):
    try:
        rt = RiskType(risk_type)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Tipo de risco desconhecido: {risk_type}")
    return EmergencyScriptOut(risk_type=rt.value, message=select_response(rt))
