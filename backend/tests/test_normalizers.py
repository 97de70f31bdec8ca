"""
Text normalization and word-boundary truncation.

Run with: pytest backend/tests/test_normalizers.py -v
"""

from __future__ import annotations

import os
import sys
import unicodedata

THIS_DIR = os.path.dirname(__file__)
PKG_ROOT = os.path.abspath(os.path.join(THIS_DIR, ".."))
if PKG_ROOT not in sys.path:
    sys.path.insert(0, PKG_ROOT)

import pytest
from dumpdo.domain.nlp.normalizers import collapse_ws, fold_accents, normalize_text, truncate_words
from dumpdo.utils.text import to_bool, unique_preserve


class TestNormalizeText:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("  QUERO   Morrer \n", "quero morrer"),
            ("tab\tand\nnewline", "tab and newline"),
            ("", ""),
            ("   ", ""),
        ],
    )
    def test_lower_collapse_trim(self, raw: str, expected: str):
        assert normalize_text(raw) == expected

    def test_composes_decomposed_accents(self):
        decomposed = unicodedata.normalize("NFD", "Não")
        assert decomposed != "Não"
        assert normalize_text(decomposed) == "não"

    @pytest.mark.parametrize("raw", ["Olá  Mundo", "  já\tÉ  TARDE ", "x"])
    def test_idempotent(self, raw: str):
        once = normalize_text(raw)
        assert normalize_text(once) == once

    def test_none_is_empty(self):
        assert normalize_text(None) == ""  # type: ignore[arg-type]


class TestFoldAccents:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("não", "nao"),
            ("pânico", "panico"),
            ("coração", "coracao"),
            ("suicídio", "suicidio"),
            ("plain", "plain"),
        ],
    )
    def test_folds(self, raw: str, expected: str):
        assert fold_accents(raw) == expected


class TestTruncateWords:
    def test_short_text_untouched(self):
        assert truncate_words("curto", 200) == "curto"

    def test_cuts_at_word_boundary(self):
        text = "palavra " * 40  # 320 chars
        out = truncate_words(text, 200)
        assert len(out) <= 200
        assert out.endswith("palavra")
        assert not out.endswith(" ")

    def test_hard_cut_when_no_late_space(self):
        text = "a" * 250
        out = truncate_words(text, 200)
        assert out == "a" * 200

    def test_early_space_is_ignored(self):
        # the only space sits before 70% of the budget, so keep the hard cut
        text = "abc " + "x" * 300
        out = truncate_words(text, 100)
        assert len(out) == 100
        assert out.startswith("abc x")

    def test_empty(self):
        assert truncate_words("", 10) == ""
        assert truncate_words(None, 10) == ""  # type: ignore[arg-type]


class TestTextHelpers:
    def test_collapse_ws(self):
        assert collapse_ws("  a \n\n b  ") == "a b"

    @pytest.mark.parametrize(
        "value, expected",
        [(True, True), ("true", True), ("1", True), ("false", False), ("no", False), (0, False), (None, False)],
    )
    def test_to_bool(self, value, expected):
        assert to_bool(value) is expected

    def test_to_bool_default_on_garbage(self):
        assert to_bool("talvez", default=True) is True

    def test_unique_preserve(self):
        assert unique_preserve(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
