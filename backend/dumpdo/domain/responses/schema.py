# backend/dumpdo/domain/responses/schema.py
"""
Structured output contract for dump mode.

The model is asked for JSON; the backend still enforces every limit below
because providers treat schemas as hints.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

EMOTION_ENUM: Tuple[str, ...] = (
    "raiva",
    "tristeza",
    "ansiedade",
    "exaustão",
    "culpa",
    "frustração",
    "confusão",
    "esperança",
    "alívio",
    "incerto",
)
EMOTION_SET: FrozenSet[str] = frozenset(EMOTION_ENUM)

VALIDATION_MAX_LENGTH = 200
QUESTION_MAX_LENGTH = 150
DETECTED_EMOTIONS_MAX = 2
DEFAULT_VALIDATION = "Entendi."

# dump-core payload
RESPONSE_MAX_LENGTH = 400
MICRO_ACTION_MAX_LENGTH = 120


@dataclass
class StructuredResponse:
    validation: str = DEFAULT_VALIDATION
    question: Optional[str] = None
    detected_emotions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"validation": self.validation}
        if self.question:
            out["question"] = self.question
        if self.detected_emotions:
            out["detected_emotions"] = list(self.detected_emotions)
        return out


@dataclass
class DumpCoreResponse:
    response: str = DEFAULT_VALIDATION
    detected_emotions: List[str] = field(default_factory=list)
    micro_action: Optional[str] = None
    should_end: bool = False


# OpenAPI 3.0 subset accepted by Gemini's responseSchema
GEMINI_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "validation": {
            "type": "string",
            "description": "Validação empática em UMA frase curta. Máximo 200 caracteres.",
            "maxLength": VALIDATION_MAX_LENGTH,
        },
        "question": {
            "type": "string",
            "description": "Pergunta clarificadora OPCIONAL. Só inclua se a pessoa NÃO estiver clara. Máximo 150 chars.",
            "maxLength": QUESTION_MAX_LENGTH,
        },
        "detected_emotions": {
            "type": "array",
            "description": "Até 2 emoções detectadas. Use apenas o enum.",
            "items": {"type": "string", "enum": list(EMOTION_ENUM)},
            "maxItems": DETECTED_EMOTIONS_MAX,
        },
    },
    "required": ["validation"],
}

GEMINI_DUMP_CORE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "response": {"type": "string", "maxLength": RESPONSE_MAX_LENGTH},
        "detected_emotions": {
            "type": "array",
            "items": {"type": "string", "enum": list(EMOTION_ENUM)},
            "maxItems": DETECTED_EMOTIONS_MAX,
        },
        "micro_action": {"type": "string", "nullable": True, "maxLength": MICRO_ACTION_MAX_LENGTH},
        "should_end": {"type": "boolean"},
    },
    "required": ["response"],
}


__all__ = [
    "EMOTION_ENUM",
    "EMOTION_SET",
    "VALIDATION_MAX_LENGTH",
    "QUESTION_MAX_LENGTH",
    "DETECTED_EMOTIONS_MAX",
    "DEFAULT_VALIDATION",
    "RESPONSE_MAX_LENGTH",
    "MICRO_ACTION_MAX_LENGTH",
    "StructuredResponse",
    "DumpCoreResponse",
    "GEMINI_RESPONSE_SCHEMA",
    "GEMINI_DUMP_CORE_SCHEMA",
]
