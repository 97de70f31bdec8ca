# backend/dumpdo/domain/responses/sanitizer.py
"""
Post-processing of model output before anything reaches the user.

- truncates fields on word boundaries
- keeps a single question in the `question` field
- filters emotion tags to the closed vocabulary (max 2)
- never raises on malformed output: non-JSON text becomes validation-only
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from dumpdo.domain.nlp.normalizers import truncate_words
from dumpdo.domain.responses.schema import (
    DEFAULT_VALIDATION,
    DETECTED_EMOTIONS_MAX,
    EMOTION_SET,
    MICRO_ACTION_MAX_LENGTH,
    QUESTION_MAX_LENGTH,
    RESPONSE_MAX_LENGTH,
    VALIDATION_MAX_LENGTH,
    DumpCoreResponse,
    StructuredResponse,
)
from dumpdo.utils.text import to_bool, unique_preserve

logger = logging.getLogger("dumpdo.chat")

_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)
# "A) ..." / "B. ..." enumerations keep the question mark that introduces them
_OPTIONS = re.compile(r"(^|\s)[A-D][\)\.]\s")
_OPTIONS_BACKOFF = 30


# ---------- field helpers ----------


def cut_at_first_question(text: str) -> str:
    idx = text.find("?")
    if idx == -1:
        return text
    return text[: idx + 1].strip()


def has_choice_options(text: str) -> bool:
    return bool(_OPTIONS.search(text or ""))


def sanitize_emotions(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    lowered = [e.strip().lower() for e in value if isinstance(e, str)]
    return unique_preserve(e for e in lowered if e in EMOTION_SET)[:DETECTED_EMOTIONS_MAX]


def parse_model_json(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse a JSON object out of model text, tolerating ```json fences."""
    if not raw or not raw.strip():
        return None
    text = raw.strip()
    m = _FENCE.match(text)
    if m:
        text = m.group(1)
    try:
        obj = json.loads(text)
    except (ValueError, TypeError):
        return None
    return obj if isinstance(obj, dict) else None


# ---------- dump mode (chat) ----------


def sanitize_structured_response(raw: Any) -> StructuredResponse:
    obj = raw if isinstance(raw, dict) else {}

    validation = obj.get("validation")
    validation = validation.strip() if isinstance(validation, str) else ""
    validation = truncate_words(validation, VALIDATION_MAX_LENGTH) or DEFAULT_VALIDATION

    question: Optional[str] = None
    q = obj.get("question")
    if isinstance(q, str) and q.strip():
        question = cut_at_first_question(truncate_words(q.strip(), QUESTION_MAX_LENGTH)) or None

    return StructuredResponse(
        validation=validation,
        question=question,
        detected_emotions=sanitize_emotions(obj.get("detected_emotions")),
    )


def fallback_response(raw_text: Optional[str]) -> StructuredResponse:
    """Unparseable output: keep the text as validation, within budget."""
    text = (raw_text or "").strip()
    return StructuredResponse(validation=truncate_words(text, VALIDATION_MAX_LENGTH) or DEFAULT_VALIDATION)


def assemble_message(resp: StructuredResponse) -> str:
    parts = [resp.validation]
    if resp.question and resp.question.strip():
        parts.append(resp.question)
    return " ".join(parts)


def sanitize_model_output(raw_text: Optional[str]) -> StructuredResponse:
    """Raw model text → StructuredResponse. Total: never raises."""
    obj = parse_model_json(raw_text)
    if obj is None:
        logger.warning("model returned non-JSON in structured mode; using text fallback")
        return fallback_response(raw_text)
    return sanitize_structured_response(obj)


# ---------- dump-core ----------


def _truncate_core_response(text: str) -> str:
    if len(text) <= RESPONSE_MAX_LENGTH:
        return text
    if has_choice_options(text):
        cut = text[:RESPONSE_MAX_LENGTH].strip()
        last_space = cut.rfind(" ")
        if last_space > RESPONSE_MAX_LENGTH - _OPTIONS_BACKOFF:
            cut = cut[:last_space].strip()
        return cut
    idx = text.find("?")
    if 0 <= idx < RESPONSE_MAX_LENGTH:
        return text[: idx + 1].strip()
    return text[:RESPONSE_MAX_LENGTH].strip()


def sanitize_dump_core_output(raw: Any) -> DumpCoreResponse:
    obj = raw if isinstance(raw, dict) else {}

    response = obj.get("response")
    response = response.strip() if isinstance(response, str) else ""
    response = _truncate_core_response(response or DEFAULT_VALIDATION)

    micro_action: Optional[str] = None
    ma = obj.get("micro_action")
    if isinstance(ma, str) and ma.strip():
        micro_action = ma.strip()[:MICRO_ACTION_MAX_LENGTH]

    return DumpCoreResponse(
        response=response,
        detected_emotions=sanitize_emotions(obj.get("detected_emotions")),
        micro_action=micro_action,
        should_end=to_bool(obj.get("should_end"), default=False),
    )


def parse_dump_core_output(raw_text: Optional[str]) -> DumpCoreResponse:
    obj = parse_model_json(raw_text)
    if obj is None:
        logger.warning("dump-core model output was not JSON; using text fallback")
        text = (raw_text or "")[:RESPONSE_MAX_LENGTH].strip()
        return DumpCoreResponse(response=text or DEFAULT_VALIDATION)
    return sanitize_dump_core_output(obj)


__all__ = [
    "cut_at_first_question",
    "has_choice_options",
    "sanitize_emotions",
    "parse_model_json",
    "sanitize_structured_response",
    "fallback_response",
    "assemble_message",
    "sanitize_model_output",
    "sanitize_dump_core_output",
    "parse_dump_core_output",
]
