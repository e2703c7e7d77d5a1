"""Transcript normalization shared by the parsers and the comparator.

Diacritics are folded with an ICU transform so that labels printed as
"ÓRGÃO EMISSOR" or "VALIDADE" match regardless of how the text-detection
service encoded accents.
"""

import re
import threading
import unicodedata
from typing import ClassVar

import icu  # type: ignore[import-untyped]


class TextNormalizer:
    """Folds diacritics, collapses whitespace and uppercases transcripts.

    ICU transliterators are not safe to share between threads, so each
    thread lazily builds its own instance.
    """

    _ICU_TRANSFORM: ClassVar[str] = "NFD; [:Nonspacing Mark:] Remove; NFC"

    _CONTROL_WS_RE: ClassVar[re.Pattern[str]] = re.compile(r"[\t\r]+")
    _WS_RE: ClassVar[re.Pattern[str]] = re.compile(r"\s+")

    def __init__(self) -> None:
        self._local = threading.local()

    def normalize(self, value: str) -> str:
        """Strip diacritics and collapse all whitespace (newlines included)."""
        folded = self._transliterator().transliterate(
            unicodedata.normalize("NFC", value)
        )
        folded = self._CONTROL_WS_RE.sub(" ", folded)
        return self._WS_RE.sub(" ", folded).strip()

    def upper(self, value: str) -> str:
        return self.normalize(value).upper()

    def compact(self, value: str) -> str:
        """NFC-compose and collapse whitespace, keeping case and accents.

        Offsets line up with ``upper()`` for text whose letters fold one-to-one.
        """
        composed = unicodedata.normalize("NFC", value)
        return self._WS_RE.sub(" ", composed).strip()

    def _transliterator(self) -> icu.Transliterator:
        transliterator = getattr(self._local, "transliterator", None)
        if transliterator is None:
            transliterator = icu.Transliterator.createInstance(self._ICU_TRANSFORM)
            self._local.transliterator = transliterator
        return transliterator


_LINE_SPLIT_RE = re.compile(r"\r?\n")
_NON_DIGIT_RE = re.compile(r"\D+")
_DATE_RE = re.compile(r"(\d{2})[/\-](\d{2})[/\-](\d{4})")


def split_lines(value: str) -> list[str]:
    """Split a transcript into trimmed, non-empty lines."""
    lines = (line.strip() for line in _LINE_SPLIT_RE.split(value))
    return [line for line in lines if line]


def digits_only(value: str) -> str:
    return _NON_DIGIT_RE.sub("", value)


def normalize_date(value: str | None) -> str | None:
    """Convert the first DD/MM/YYYY or DD-MM-YYYY in *value* to YYYY-MM-DD."""
    if not value:
        return None
    match = _DATE_RE.search(value)
    if match is None:
        return None
    day, month, year = match.groups()
    return f"{year}-{month}-{day}"
