from __future__ import annotations

from typing import Iterable, List

__all__ = [
    "to_bool",
    "unique_preserve",
]

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def to_bool(s: object, default: bool = False) -> bool:
    """Parse common truthy/falsey strings."""
    if isinstance(s, bool):
        return s
    if s is None:
        return default
    if isinstance(s, (int, float)):
        return s != 0
    v = str(s).strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return default


def unique_preserve(items: Iterable[str]) -> List[str]:
    """Deduplicate while preserving order."""
    seen = set()
    out: List[str] = []
    for it in items or []:
        if it not in seen:
            seen.add(it)
            out.append(it)
    return out
