"""
Crisis Response Selector
Maps a detected risk type to its pre-authored safety script.

No generation happens here: the text comes straight from `scripts.py`, so an
emergency reply can never be blocked by a provider outage.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from dumpdo.domain.safety import scripts
from dumpdo.domain.safety.patterns import RiskType

logger = logging.getLogger("dumpdo.safety")

# Response type recorded on risk events
CVV_REFERRAL = "cvv_referral"
GROUNDING_EXERCISE = "grounding_exercise"


def select_response(risk_type: Union[RiskType, str, None]) -> str:
    """
    Return the safety script for `risk_type`.
    Unknown or missing types get the generic script.
    """
    key = risk_type.value if isinstance(risk_type, RiskType) else (risk_type or "")
    script = scripts.SCRIPTS.get(key)
    if script is None:
        logger.warning("no emergency script for risk type %r; using generic", key)
        return scripts.GENERIC
    return script


def response_type_for(risk_type: Optional[RiskType]) -> str:
    """Suicidal ideation is referred to CVV; everything else starts with grounding."""
    if risk_type is RiskType.SUICIDAL_IDEATION:
        return CVV_REFERRAL
    return GROUNDING_EXERCISE


__all__ = ["select_response", "response_type_for", "CVV_REFERRAL", "GROUNDING_EXERCISE"]
