# backend/dumpdo/domain/safety/risk_events.py
"""
Projection of a RiskAssessment into a `risk_events` row.

Only medium and above are recorded; the raw message text never enters the row.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from dumpdo.domain.safety.crisis_handler import response_type_for
from dumpdo.domain.safety.patterns import RiskLevel
from dumpdo.domain.safety.service import RiskAssessment
from dumpdo.utils.time import day_of_week, time_of_day, utc_now

DETECTION_METHOD = "regex"


@dataclass
class RiskEventRecord:
    risk_level: str
    risk_type: str
    detected_indicators: List[str] = field(default_factory=list)
    confidence_score: float = 0.0
    detection_method: str = DETECTION_METHOD
    emergency_response_sent: bool = False
    response_type: Optional[str] = None
    session_duration_minutes: Optional[float] = None
    message_count_at_event: Optional[int] = None
    time_of_day: str = "night"
    day_of_week: int = 0

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


def should_log(assessment: RiskAssessment) -> bool:
    return assessment.risk_level.rank >= RiskLevel.MEDIUM.rank


def build_risk_event(
    assessment: RiskAssessment,
    *,
    session_duration_minutes: Optional[float] = None,
    message_count: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Optional[RiskEventRecord]:
    """Return the record for medium+ assessments, None otherwise."""
    if not should_log(assessment):
        return None
    now = now or utc_now()
    emergency = assessment.requires_emergency_response
    return RiskEventRecord(
        risk_level=assessment.risk_level.value,
        risk_type=assessment.risk_type.value if assessment.risk_type else "other",
        detected_indicators=list(assessment.indicators),
        confidence_score=assessment.confidence_score,
        emergency_response_sent=emergency,
        response_type=response_type_for(assessment.risk_type) if emergency else None,
        session_duration_minutes=session_duration_minutes,
        message_count_at_event=message_count,
        time_of_day=time_of_day(now),
        day_of_week=day_of_week(now),
    )


__all__ = ["RiskEventRecord", "DETECTION_METHOD", "should_log", "build_risk_event"]
