# backend/dumpdo/domain/safety/service.py
"""
MIND-SAFE: pre-model crisis classifier.

Public API:
- assess_risk(message) -> RiskAssessment
- assess_risk_async(message) -> RiskAssessment
- is_excluded(normalized_text) -> bool
- match_patterns(normalized_text, original_text) -> list[RiskMatch]
- aggregate(matches, excluded=False) -> RiskAssessment
- is_crisis(level) -> bool
- risk_label(level) -> str

Everything is pure and stateless: the tables in `patterns.py` are read-only and
`re.search` keeps no state between calls.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from dumpdo.domain.nlp.normalizers import fold_accents, normalize_text
from dumpdo.domain.safety.crisis_handler import select_response
from dumpdo.domain.safety.patterns import (
    CONFIDENCE_CAP,
    CORROBORATION_STEP,
    EXCLUSION_PATTERNS,
    PATTERN_TIERS,
    RiskLevel,
    RiskPattern,
    RiskType,
)
from dumpdo.utils.text import unique_preserve

__all__ = [
    "RiskMatch",
    "RiskAssessment",
    "EXCLUSION_INDICATOR",
    "assess_risk",
    "assess_risk_async",
    "is_excluded",
    "match_patterns",
    "aggregate",
    "is_crisis",
    "risk_label",
]

logger = logging.getLogger("dumpdo.safety")

EXCLUSION_INDICATOR = "exclusion_match"

_LABELS: Dict[RiskLevel, str] = {
    RiskLevel.NONE: "Seguro",
    RiskLevel.LOW: "Baixo",
    RiskLevel.MEDIUM: "Médio",
    RiskLevel.HIGH: "Alto",
    RiskLevel.CRITICAL: "Crítico",
}


@dataclass(frozen=True)
class RiskMatch:
    pattern: RiskPattern
    matched: str


@dataclass
class RiskAssessment:
    risk_level: RiskLevel = RiskLevel.NONE
    risk_type: Optional[RiskType] = None
    indicators: List[str] = field(default_factory=list)
    confidence_score: float = 0.0
    requires_emergency_response: bool = False
    emergency_response: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_level": self.risk_level.value,
            "risk_type": self.risk_type.value if self.risk_type else None,
            "indicators": list(self.indicators),
            "confidence_score": self.confidence_score,
            "requires_emergency_response": self.requires_emergency_response,
            "emergency_response": self.emergency_response,
        }


# ---------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------
def is_excluded(normalized_text: str) -> bool:
    """True on the first figurative idiom found (checked on the folded form too)."""
    if not normalized_text:
        return False
    folded = fold_accents(normalized_text)
    for rx in EXCLUSION_PATTERNS:
        if rx.search(normalized_text) or rx.search(folded):
            return True
    return False


def match_patterns(normalized_text: str, original_text: str = "") -> List[RiskMatch]:
    """
    Run the tiers critical → low over the normalized, accent-folded and
    original forms. A pattern counts once. Stops after the first tier with a hit.
    """
    forms = unique_preserve([normalized_text or "", fold_accents(normalized_text or ""), original_text or ""])
    forms = [f for f in forms if f]
    if not forms:
        return []

    for _level, tier in PATTERN_TIERS:
        found: List[RiskMatch] = []
        for pattern in tier:
            for form in forms:
                m = pattern.matcher.search(form)
                if m:
                    found.append(RiskMatch(pattern, m.group(0)))
                    break
        if found:
            return found
    return []


def aggregate(matches: Sequence[RiskMatch], excluded: bool = False) -> RiskAssessment:
    """
    Fold matches into one assessment.

    Severity is the highest matched; the primary type is the first match at
    that severity. Each extra match corroborates the primary by +0.1, capped
    per tier.
    """
    if excluded:
        return RiskAssessment(indicators=[EXCLUSION_INDICATOR])
    if not matches:
        return RiskAssessment()

    top = max(matches, key=lambda rm: rm.pattern.severity.rank).pattern.severity
    primary = next(rm.pattern for rm in matches if rm.pattern.severity is top)

    corroborating = len(matches) - 1
    confidence = min(primary.confidence + CORROBORATION_STEP * corroborating, CONFIDENCE_CAP[top])
    confidence = round(confidence, 4)

    emergency = top in (RiskLevel.HIGH, RiskLevel.CRITICAL)
    return RiskAssessment(
        risk_level=top,
        risk_type=primary.risk_type,
        indicators=unique_preserve(rm.pattern.indicator for rm in matches),
        confidence_score=confidence,
        requires_emergency_response=emergency,
        emergency_response=select_response(primary.risk_type) if emergency else None,
    )


# ---------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------
def assess_risk(message: Any) -> RiskAssessment:
    """
    Classify one inbound message. Non-string or blank input is "none".
    """
    if not isinstance(message, str) or not message.strip():
        return RiskAssessment()

    normalized = normalize_text(message)
    if is_excluded(normalized):
        logger.debug("exclusion idiom matched; risk forced to none")
        return aggregate([], excluded=True)

    result = aggregate(match_patterns(normalized, message))
    if result.risk_level is not RiskLevel.NONE:
        logger.info(
            "risk assessed",
            extra={"event": {
                "risk_level": result.risk_level.value,
                "risk_type": result.risk_type.value if result.risk_type else None,
                "indicators": result.indicators,
                "confidence": result.confidence_score,
            }},
        )
    return result


async def assess_risk_async(message: Any) -> RiskAssessment:
    """
    Async wrapper for assess_risk(). Offloads to a thread so callers can use it
    without blocking an event loop.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, assess_risk, message)


def _as_level(level: Union[RiskLevel, str, None]) -> RiskLevel:
    if isinstance(level, RiskLevel):
        return level
    try:
        return RiskLevel((level or "none").lower())
    except ValueError:
        return RiskLevel.NONE


def is_crisis(level: Union[RiskLevel, str, None]) -> bool:
    """True if level calls for the emergency script instead of the model."""
    return _as_level(level) in (RiskLevel.HIGH, RiskLevel.CRITICAL)


def risk_label(level: Union[RiskLevel, str, None]) -> str:
    return _LABELS[_as_level(level)]
