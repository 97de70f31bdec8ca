from .patterns import RiskLevel, RiskType
from .service import RiskAssessment, assess_risk, assess_risk_async, is_crisis, risk_label
from .crisis_handler import select_response
from .risk_events import RiskEventRecord, build_risk_event

__all__ = [
    "RiskLevel",
    "RiskType",
    "RiskAssessment",
    "assess_risk",
    "assess_risk_async",
    "is_crisis",
    "risk_label",
    "select_response",
    "RiskEventRecord",
    "build_risk_event",
]
