# backend/dumpdo/domain/safety/patterns.py
"""
MIND-SAFE pattern tables (PT-BR).

Everything here is built once at import and never mutated. Matching uses
`re.Pattern.search`, which keeps no cursor between calls, so the same
compiled pattern can be shared by any number of concurrent requests.

Table order matters: tiers run critical → low, and inside a tier the first
family that matches becomes the primary risk type.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class RiskLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]


_LEVEL_RANK: Dict[RiskLevel, int] = {
    RiskLevel.NONE: 0,
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
    RiskLevel.CRITICAL: 4,
}


class RiskType(str, Enum):
    SUICIDAL_IDEATION = "suicidal_ideation"
    SELF_HARM = "self_harm"
    VIOLENCE = "violence"
    SUBSTANCE_CRISIS = "substance_crisis"
    PANIC_ATTACK = "panic_attack"
    SEVERE_DISTRESS = "severe_distress"


@dataclass(frozen=True)
class RiskPattern:
    matcher: re.Pattern
    risk_type: RiskType
    severity: RiskLevel
    confidence: float

    @property
    def indicator(self) -> str:
        return f"{self.risk_type.value} ({round(self.confidence * 100)}%)"


def _p(source: str, risk_type: RiskType, severity: RiskLevel, confidence: float) -> RiskPattern:
    if not 0.0 < confidence <= 1.0:
        raise ValueError(f"confidence out of range for {source!r}: {confidence}")
    return RiskPattern(re.compile(source, re.IGNORECASE), risk_type, severity, confidence)


_S = RiskType.SUICIDAL_IDEATION
_H = RiskType.SELF_HARM
_V = RiskType.VIOLENCE
_D = RiskType.SUBSTANCE_CRISIS
_P = RiskType.PANIC_ATTACK
_X = RiskType.SEVERE_DISTRESS

_CRIT = RiskLevel.CRITICAL
_HIGH = RiskLevel.HIGH
_MED = RiskLevel.MEDIUM
_LOW = RiskLevel.LOW

# ---------------------------------------------------------------------
# Risk patterns, declaration order = evaluation order
# ---------------------------------------------------------------------
RISK_PATTERNS: Tuple[RiskPattern, ...] = (
    # critical, suicidal ideation, direct statements
    _p(r"\b(quero|vou|penso\s*em|pensando\s*em)\s*me\s*matar\b", _S, _CRIT, 0.9),
    _p(r"\b(quero|preciso)\s*morrer\b", _S, _CRIT, 0.9),
    _p(r"\b(acabar|terminar)\s*(com\s*)?(tudo|minha vida)\b", _S, _CRIT, 0.85),
    _p(r"\bsuic[ií]d", _S, _CRIT, 0.9),
    _p(r"\btirar\s*(a\s*)?(minha\s*)?(pr[oó]pria\s*)?vida\b", _S, _CRIT, 0.9),
    _p(r"\bn[aã]o\s*(quero|aguento)\s*mais\s*viver\b", _S, _CRIT, 0.9),
    _p(r"\bmelhor\s*(sem\s*mim|se\s*eu\s*morresse|morto)\b", _S, _CRIT, 0.85),
    _p(r"\bfardo\s*p(ara|ra)\s*(todos|todo\s*mundo)\b", _S, _CRIT, 0.8),
    _p(r"\bdesaparecer\s*(de\s*vez|para\s*sempre|pra\s*sempre)\b", _S, _CRIT, 0.8),
    # critical, suicidal ideation, methods
    _p(r"\b(pular|me\s*jogar|jogar)\s*(do|de|da)\s*(pr[eé]dio|ponte|altura|janela)\b", _S, _CRIT, 0.9),
    _p(r"\b(tomar|engolir)\s*(todos\s*os\s*)?(rem[eé]dios|comprimidos|veneno)\b", _S, _CRIT, 0.9),
    _p(r"\bcortar\s*(os\s*|meus\s*)?(pulsos?|veias?)\b", _S, _CRIT, 0.9),
    # critical: self-harm
    _p(r"\bme\s*(machucar|cortar|ferir|mutilar)\b", _H, _CRIT, 0.85),
    _p(r"\bautomutila", _H, _CRIT, 0.9),
    _p(r"\bauto-?les[aã]o\b", _H, _CRIT, 0.85),
    _p(r"\bqueimar\s*(a\s*|minha\s*)?pele\b", _H, _CRIT, 0.85),
    _p(r"\bbater\s*(em\s*mim|na\s*parede|minha\s*cabe[cç]a)\b", _H, _CRIT, 0.8),
    _p(r"\bsentir\s*dor\s*(f[ií]sica\s*)?(me\s*)?(ajuda|acalma)\b", _H, _CRIT, 0.8),
    # critical: violence towards others
    _p(r"\b(quero|vou)\s*(matar|machucar)\s*(ele|ela|algu[eé]m|eles|elas)\b", _V, _CRIT, 0.9),
    _p(r"\bfazer\s*(ele|ela|eles|elas)\s*pagar\b", _V, _CRIT, 0.8),
    _p(r"\bvou\s*explodir\b", _V, _CRIT, 0.8),
    _p(r"\bvingar\b", _V, _CRIT, 0.8),
    _p(r"\barma\s*de\s*fogo\b|\b(comprei|tenho|peguei)\s*uma\s*arma\b", _V, _CRIT, 0.85),
    _p(r"\bviol[eê]ncia\s*contra\b", _V, _CRIT, 0.8),
    # critical: substance crisis
    _p(r"\b(usei|usando|cheirei|injetei)\s*(muita|demais)\b", _D, _CRIT, 0.8),
    _p(r"\boverdose\b", _D, _CRIT, 0.9),
    _p(r"\bn[aã]o\s*consigo\s*parar\s*(de\s*)?(usar|beber)\b", _D, _CRIT, 0.8),
    _p(r"\babstin[eê]ncia\s*(pesada|grave|forte)\b", _D, _CRIT, 0.8),
    _p(r"\btremendo\s*demais\b", _D, _CRIT, 0.8),
    _p(r"\bconvuls", _D, _CRIT, 0.85),
    _p(r"\bvou\s*(usar|beber)\s*at[eé]\s*(morrer|apagar|desmaiar)\b", _D, _CRIT, 0.9),
    # high: panic attack
    _p(r"\b(estou\s*|t[oô]\s*)?(tendo|tive|no\s*meio\s*de)\s*(um\s*)?ataque\s*(de\s*)?p[aâ]nico\b", _P, _HIGH, 0.8),
    _p(r"\bn[aã]o\s*consigo\s*respirar\b", _P, _HIGH, 0.8),
    _p(r"\bvou\s*(morrer|enfartar|ter\s*um\s*infarto)\b", _P, _HIGH, 0.75),
    _p(r"\bcora[cç][aã]o\s*(disparado|acelerado|saindo\s*pela\s*boca)\b", _P, _HIGH, 0.75),
    _p(r"\btremendo\s*(muito|inteiro|sem\s*parar)\b", _P, _HIGH, 0.7),
    _p(r"\bperdendo\s*(o\s*)?controle\b", _P, _HIGH, 0.7),
    # high: severe distress
    _p(r"\bn[aã]o\s*aguento\s*mais\b", _X, _HIGH, 0.7),
    _p(r"\bcheguei\s*(no|ao)\s*(meu\s*)?limite\b", _X, _HIGH, 0.7),
    _p(r"\bestou\s*(desesperad[oa]|no\s*fundo\s*do\s*po[cç]o)\b", _X, _HIGH, 0.75),
    _p(r"\bpreciso\s*(de\s*)?ajuda\s*(urgente|agora)\b", _X, _HIGH, 0.8),
    _p(r"\bn[aã]o\s*vejo\s*sa[ií]da\b", _X, _HIGH, 0.75),
    _p(r"\btudo\s*(est[aá]|parece)\s*(perdido|sem\s*sentido)\b", _X, _HIGH, 0.7),
    # medium: significant distress; "não sei o que fazer" is everyday overload
    # in a dump, so it stays here and never triggers the emergency path alone
    _p(r"\bn[aã]o\s*sei\s*(mais\s*)?o\s*que\s*fazer\b", _X, _MED, 0.55),
    _p(r"\b(muito|extremamente)\s*(ansios|triste|angustiad|deprimid)", _X, _MED, 0.6),
    _p(r"\bn[aã]o\s*(durmo|como|saio)\s*(h[aá]|faz)\s*(dias|semanas)\b", _X, _MED, 0.6),
    _p(r"\b(pensamentos|ideias)\s*(ruins|negativ|sombri)", _X, _MED, 0.55),
    _p(r"\bn[aã]o\s*consigo\s*funcionar\b", _X, _MED, 0.55),
    _p(r"\b(chorando|chorei)\s*(o\s*dia\s*todo|sem\s*parar)\b", _X, _MED, 0.6),
    _p(r"\bme\s*isol(ei|ando)\b", _X, _MED, 0.55),
    # low: everyday stress
    _p(r"\b(estou|t[oô]|me\s*sinto)\s*(estressad|cansad|esgotad|sobrecarregad)", _X, _LOW, 0.45),
    _p(r"\bdia\s*(dif[ií]cil|pesado|ruim)\b", _X, _LOW, 0.45),
    _p(r"\bn[aã]o\s*estou\s*bem\b", _X, _LOW, 0.45),
    _p(r"\bpreciso\s*desabafar\b", _X, _LOW, 0.4),
    _p(r"\bmuita\s*(press[aã]o|cobran[cç]a)\b", _X, _LOW, 0.4),
)

# Tiers in evaluation order; each keeps declaration order.
SEVERITY_ORDER: Tuple[RiskLevel, ...] = (_CRIT, _HIGH, _MED, _LOW)
PATTERN_TIERS: Tuple[Tuple[RiskLevel, Tuple[RiskPattern, ...]], ...] = tuple(
    (level, tuple(p for p in RISK_PATTERNS if p.severity is level)) for level in SEVERITY_ORDER
)

# Confidence ceiling per tier: corroboration raises certainty, never past this.
CONFIDENCE_CAP: Dict[RiskLevel, float] = {
    _CRIT: 0.95,
    _HIGH: 0.85,
    _MED: 0.75,
    _LOW: 0.6,
}
CORROBORATION_STEP = 0.1

# ---------------------------------------------------------------------
# Figurative idioms: a hit forces risk level "none"
# ---------------------------------------------------------------------
EXCLUSION_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(src, re.IGNORECASE)
    for src in (
        r"\b(morrer|morrendo|morri|morto|morta)\s*de\s*(rir|vontade|vergonha|medo|fome|sede|calor|frio|sono|t[eé]dio|curiosidade|saudade|inveja|pregui[cç]a)\b",
        r"\b(me\s*)?matando\s*de\s*(rir|trabalhar|estudar)\b",
        r"\bisso\s*me\s*mata\s*de\s*(rir|vergonha)\b",
        r"\bmatar\s*(a\s*)?saudade\b",
        r"\bmatar\s*(a\s*)?fome\b",
        r"\bmatar\s*(o\s*)?tempo\b",
        r"\bmatar\s*(a\s*)?vontade\b",
        r"\bmatar\s*(a\s*)?aula\b|\bmatei\s*(a\s*)?aula\b",
        r"\bsangue\s*(doce|frio|quente|bom)\b",
        r"\bsangue\s*nos\s*olhos\b",
        r"\bcortar\s*(o\s*|meu\s*)?cabelo\b",
        r"\bcortar\s*(o\s*)?mal\s*pela\s*raiz\b",
        r"\bcortar\s*(o\s*)?barato\b",
        r"\bcortar\s*rela[cç][oõ]es\b",
    )
)


__all__ = [
    "RiskLevel",
    "RiskType",
    "RiskPattern",
    "RISK_PATTERNS",
    "PATTERN_TIERS",
    "SEVERITY_ORDER",
    "CONFIDENCE_CAP",
    "CORROBORATION_STEP",
    "EXCLUSION_PATTERNS",
]
