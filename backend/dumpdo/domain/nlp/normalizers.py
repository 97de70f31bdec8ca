# backend/dumpdo/domain/nlp/normalizers.py
# -*- coding: utf-8 -*-
"""
normalizers.py — small, dependency-free text utilities shared by MIND-SAFE
and the response sanitizer.

Public API
----------
normalize_text(text)          canonical form used for risk matching
fold_accents(text)            accent-stripped companion form
collapse_ws(text)
truncate_words(text, max_chars, min_ratio=0.7)
"""

from __future__ import annotations

import re
import unicodedata

# ---------- regexes (compiled once) ----------

RE_WS_MULTI = re.compile(r"\s+", re.UNICODE)

# ---------- core steps ----------


def collapse_ws(text: str) -> str:
    """
    Collapse all whitespace runs to a single space and trim ends.
    """
    return RE_WS_MULTI.sub(" ", text).strip()


def normalize_text(text: str) -> str:
    """
    Canonical form for matching: lowercase, NFC, single spaces, trimmed.
    Total over any string and idempotent.
    """
    if not text:
        return ""
    t = unicodedata.normalize("NFC", str(text).lower())
    return collapse_ws(t)


def fold_accents(text: str) -> str:
    """
    Drop combining marks ("não" -> "nao"). Expects normalized input.
    """
    if not text:
        return ""
    t = unicodedata.normalize("NFD", text)
    t = "".join(c for c in t if not unicodedata.combining(c))
    return unicodedata.normalize("NFC", t)


def truncate_words(text: str, max_chars: int, min_ratio: float = 0.7) -> str:
    """
    Cut to max_chars without splitting a word when possible.

    After the hard cut, backtrack to the last space if it sits beyond
    min_ratio * max_chars; otherwise keep the hard cut.
    """
    t = text or ""
    if len(t) <= max_chars:
        return t
    cut = t[:max_chars].strip()
    last_space = cut.rfind(" ")
    if last_space > max_chars * min_ratio:
        return cut[:last_space].rstrip()
    return cut


__all__ = [
    "normalize_text",
    "fold_accents",
    "collapse_ws",
    "truncate_words",
]
