"""Heuristic field extraction for RG and CNH transcripts.

Works on the plain transcript returned by the text-detection service:
1. Classify the document family by keyword presence.
2. Walk the transcript line by line looking for field labels.
3. Fall back to whole-text regexes when a labelled line has no value.

Every extractor returns None instead of raising when a field cannot be
located, so a noisy transcript degrades to fewer fields, never to an error.
"""

import re
from typing import ClassVar

from docverify.parsing.models import (
    ClassificationResult,
    DocumentParseResult,
    DocumentType,
    IdentityFields,
)
from docverify.parsing.text import TextNormalizer, digits_only, normalize_date, split_lines


class DocumentParser:
    """Classifies RG/CNH transcripts and extracts identity fields."""

    RG_KEYWORDS: ClassVar[tuple[str, ...]] = (
        "REGISTRO GERAL",
        "CARTEIRA DE IDENTIDADE",
        "IDENTIDADE",
        "RG",
    )
    CNH_KEYWORDS: ClassVar[tuple[str, ...]] = (
        "CARTEIRA NACIONAL DE HABILITACAO",
        "HABILITACAO",
        "CNH",
        "DETRAN",
    )

    # Longest label first so "NOME COMPLETO" is not cut at "NOME".
    NAME_LABELS: ClassVar[tuple[str, ...]] = ("NOME COMPLETO", "NOME")
    RELATIVE_MARKERS: ClassVar[tuple[str, ...]] = ("MAE", "PAI")
    CPF_LABELS: ClassVar[tuple[str, ...]] = ("CPF",)
    RG_LABELS: ClassVar[tuple[str, ...]] = ("RG", "REGISTRO GERAL", "IDENTIDADE")
    CNH_LABELS: ClassVar[tuple[str, ...]] = ("CNH", "REGISTRO", "REGISTRO NACIONAL")
    ISSUER_LABELS: ClassVar[tuple[str, ...]] = ("ORGAO EMISSOR", "EMISSOR")
    ISSUE_DATE_LABELS: ClassVar[tuple[str, ...]] = (
        "DATA DE EXPEDICAO",
        "DATA EXPEDICAO",
        "DATA EMISSAO",
        "EXPEDICAO",
        "EMISSAO",
    )
    EXPIRY_DATE_LABELS: ClassVar[tuple[str, ...]] = ("VALIDADE", "VALIDO ATE")

    _LEADING_PUNCT_RE: ClassVar[re.Pattern[str]] = re.compile(r"^[:\-\s]+")
    _CPF_RE: ClassVar[re.Pattern[str]] = re.compile(r"\d{3}\.?\d{3}\.?\d{3}-?\d{2}")
    _CPF_TEXT_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"\b\d{3}\.?\d{3}\.?\d{3}-?\d{2}\b"
    )
    _RG_CHARS_RE: ClassVar[re.Pattern[str]] = re.compile(r"[^0-9X]", re.IGNORECASE)
    _RG_TEXT_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"\bRG[^0-9]*([0-9]{4,10}[0-9X]{0,2})", re.IGNORECASE
    )
    _CNH_TEXT_RE: ClassVar[re.Pattern[str]] = re.compile(
        r"\bREGISTRO[^0-9]*([0-9]{9,11})", re.IGNORECASE
    )
    _ISSUER_SLASH_UF_RE: ClassVar[re.Pattern[str]] = re.compile(r"/([A-Z]{2})")
    _ISSUER_DASH_UF_RE: ClassVar[re.Pattern[str]] = re.compile(r"-([A-Z]{2})")
    _UF_TEXT_RE: ClassVar[re.Pattern[str]] = re.compile(r"\bUF[^A-Z0-9]{0,5}([A-Z]{2})")

    def __init__(self, normalizer: TextNormalizer | None = None) -> None:
        self._normalizer = normalizer or TextNormalizer()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classify(self, raw_text: str) -> ClassificationResult:
        """Score each family by keyword presence; ties and zero scores are UNKNOWN."""
        text = self._normalizer.upper(raw_text)
        matched: list[str] = []
        rg_score = 0
        cnh_score = 0
        for keyword in self.RG_KEYWORDS:
            if keyword in text:
                rg_score += 1
                matched.append(keyword)
        for keyword in self.CNH_KEYWORDS:
            if keyword in text:
                cnh_score += 1
                matched.append(keyword)

        document_type = DocumentType.UNKNOWN
        if rg_score > cnh_score and rg_score > 0:
            document_type = DocumentType.RG
        elif cnh_score > rg_score and cnh_score > 0:
            document_type = DocumentType.CNH

        return ClassificationResult(
            document_type=document_type,
            rg_score=rg_score,
            cnh_score=cnh_score,
            matched_keywords=tuple(matched),
        )

    def parse(self, raw_text: str) -> DocumentParseResult:
        """Classify *raw_text* and extract every identity field that can be found."""
        lines = split_lines(raw_text)
        normalized = self._normalizer.upper(raw_text)
        classification = self.classify(raw_text)

        issuer = self._extract_issuer(lines)
        fields = IdentityFields(
            name=self._extract_name(lines),
            cpf=self._extract_cpf(lines, normalized),
            document_number=self._extract_document_number(
                classification.document_type, lines, normalized
            ),
            issue_date=self._extract_date_near(normalized, self.ISSUE_DATE_LABELS),
            expiry_date=self._extract_date_near(normalized, self.EXPIRY_DATE_LABELS),
            issuing_authority=issuer,
            state=self._extract_state(normalized, issuer),
        )
        return DocumentParseResult(
            document_type=classification.document_type,
            fields=fields,
            classification=classification,
        )

    # ------------------------------------------------------------------
    # Line helpers
    # ------------------------------------------------------------------

    def _first_label_in(self, line_upper: str, labels: tuple[str, ...]) -> str | None:
        for label in labels:
            if label in line_upper:
                return label
        return None

    def _value_after_label(self, line: str, label: str) -> str:
        folded = self._normalizer.upper(line)
        index = folded.find(label)
        if index < 0:
            return ""
        compact = self._normalizer.compact(line)
        # Fall back to the folded text when folding changed the length (e.g. "ß").
        source = compact if len(compact) == len(folded) else folded
        raw = source[index + len(label):]
        return self._LEADING_PUNCT_RE.sub("", raw).strip()

    # ------------------------------------------------------------------
    # Field extractors
    # ------------------------------------------------------------------

    def _extract_name(self, lines: list[str]) -> str | None:
        for index, line in enumerate(lines):
            line_upper = self._normalizer.upper(line)
            label = self._first_label_in(line_upper, self.NAME_LABELS)
            if label is None:
                continue
            # "NOME DA MAE" / "NOME DO PAI" carry a relative's name.
            if any(marker in line_upper for marker in self.RELATIVE_MARKERS):
                continue

            value = self._value_after_label(line, label)
            if len(value) > 2:
                return value

            if index + 1 < len(lines):
                following = lines[index + 1].strip()
                if len(following) > 2:
                    return following
        return None

    def _extract_cpf(self, lines: list[str], text: str) -> str | None:
        for line in lines:
            if self._first_label_in(self._normalizer.upper(line), self.CPF_LABELS) is None:
                continue
            match = self._CPF_RE.search(line)
            if match:
                digits = digits_only(match.group(0))
                if len(digits) == 11:
                    return digits

        match = self._CPF_TEXT_RE.search(text)
        if match:
            digits = digits_only(match.group(0))
            if len(digits) == 11:
                return digits
        return None

    def _extract_document_number(
        self,
        document_type: DocumentType,
        lines: list[str],
        text: str,
    ) -> str | None:
        if document_type is DocumentType.CNH:
            return self._extract_cnh_number(lines, text)
        if document_type is DocumentType.RG:
            return self._extract_rg_number(lines, text)
        return self._extract_rg_number(lines, text) or self._extract_cnh_number(lines, text)

    def _extract_rg_number(self, lines: list[str], text: str) -> str | None:
        for line in lines:
            if self._first_label_in(self._normalizer.upper(line), self.RG_LABELS) is None:
                continue
            cleaned = self._RG_CHARS_RE.sub("", line)
            if len(cleaned) >= 4:
                return cleaned

        match = self._RG_TEXT_RE.search(text)
        return match.group(1) if match else None

    def _extract_cnh_number(self, lines: list[str], text: str) -> str | None:
        for line in lines:
            if self._first_label_in(self._normalizer.upper(line), self.CNH_LABELS) is None:
                continue
            cleaned = digits_only(line)
            if len(cleaned) >= 9:
                return cleaned

        match = self._CNH_TEXT_RE.search(text)
        return match.group(1) if match else None

    def _extract_date_near(self, text: str, labels: tuple[str, ...]) -> str | None:
        for label in labels:
            pattern = re.escape(label) + r"[^0-9]{0,20}(\d{2}[/\-]\d{2}[/\-]\d{4})"
            match = re.search(pattern, text)
            if match:
                return normalize_date(match.group(1))
        return None

    def _extract_issuer(self, lines: list[str]) -> str | None:
        for index, line in enumerate(lines):
            label = self._first_label_in(self._normalizer.upper(line), self.ISSUER_LABELS)
            if label is None:
                continue
            value = self._value_after_label(line, label)
            if value:
                return value
            if index + 1 < len(lines):
                return lines[index + 1].strip()
            return None
        return None

    def _extract_state(self, text: str, issuer: str | None) -> str | None:
        if issuer:
            issuer_upper = self._normalizer.upper(issuer)
            for pattern in (self._ISSUER_SLASH_UF_RE, self._ISSUER_DASH_UF_RE):
                match = pattern.search(issuer_upper)
                if match:
                    return match.group(1)

        match = self._UF_TEXT_RE.search(text)
        return match.group(1) if match else None
