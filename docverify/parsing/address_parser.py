"""Heuristic field extraction for proof-of-residence transcripts (utility bills,
bank statements). The postal code (CEP) anchors the search: the street and
neighborhood are expected on the lines just above it.
"""

import re
from typing import ClassVar

from docverify.parsing.models import AddressFields
from docverify.parsing.text import TextNormalizer, digits_only, split_lines


class AddressParser:
    """Extracts CEP, street, city/state and neighborhood from a transcript."""

    STREET_KEYWORDS: ClassVar[tuple[str, ...]] = (
        "RUA",
        "AV",
        "AVENIDA",
        "TRAVESSA",
        "ALAMEDA",
        "PRACA",
        "RODOVIA",
    )
    STATE_CODES: ClassVar[frozenset[str]] = frozenset(
        {
            "AC", "AL", "AP", "AM", "BA", "CE", "DF", "ES", "GO",
            "MA", "MT", "MS", "MG", "PA", "PB", "PR", "PE", "PI",
            "RJ", "RN", "RS", "RO", "RR", "SC", "SP", "SE", "TO",
        }
    )

    _CEP_RE: ClassVar[re.Pattern[str]] = re.compile(r"\b\d{5}-?\d{3}\b")
    _NOT_NEIGHBORHOOD_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"^(RUA|AV|AVENIDA|TRAVESSA|ALAMEDA|PRACA|RODOVIA|CEP)"
    )
    _CITY_STATE_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"([A-Z\s]+?)[\s\-/]+(" + "|".join(sorted(STATE_CODES)) + r")\b"
    )

    def __init__(self, normalizer: TextNormalizer | None = None) -> None:
        self._normalizer = normalizer or TextNormalizer()

    def parse(self, raw_text: str) -> AddressFields:
        lines = split_lines(raw_text)
        normalized = self._normalizer.upper(raw_text)
        cep_index = self._find_cep_line(lines)
        city, state = self._extract_city_state(lines)
        return AddressFields(
            postal_code=self._extract_cep(lines, normalized),
            street=self._extract_street(lines, cep_index),
            city=city,
            state=state,
            neighborhood=self._extract_neighborhood(lines, cep_index),
        )

    def _find_cep_line(self, lines: list[str]) -> int | None:
        for index, line in enumerate(lines):
            if self._CEP_RE.search(line):
                return index
        return None

    def _extract_cep(self, lines: list[str], text: str) -> str | None:
        for line in lines:
            match = self._CEP_RE.search(line)
            if match:
                return digits_only(match.group(0))
        match = self._CEP_RE.search(text)
        return digits_only(match.group(0)) if match else None

    def _extract_street(self, lines: list[str], cep_index: int | None) -> str | None:
        if cep_index is not None:
            current = lines[cep_index].strip()
            before = lines[cep_index - 1].strip() if cep_index > 0 else ""
            return " ".join(part for part in (before, current) if part) or current

        for line in lines:
            if self._normalizer.upper(line).startswith(self.STREET_KEYWORDS):
                return line.strip()
        return None

    def _extract_city_state(self, lines: list[str]) -> tuple[str | None, str | None]:
        for line in lines:
            match = self._CITY_STATE_RE.search(self._normalizer.upper(line))
            if match:
                return match.group(1).strip(), match.group(2)
        return None, None

    def _extract_neighborhood(self, lines: list[str], cep_index: int | None) -> str | None:
        if cep_index is None or cep_index < 2:
            return None
        candidate = lines[cep_index - 2].strip()
        if not 3 < len(candidate) < 50:
            return None
        upper = self._normalizer.upper(candidate)
        if self._NOT_NEIGHBORHOOD_RE.match(upper) or self._CEP_RE.search(upper):
            return None
        return candidate
