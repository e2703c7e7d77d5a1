import hashlib
import math

from docverify.comparison.models import ComparisonResult, ReferenceIdentity
from docverify.comparison.similarity import string_similarity
from docverify.parsing.models import IdentityFields
from docverify.parsing.text import TextNormalizer, digits_only

DEFAULT_DIVERGENCE_THRESHOLD = 0.2
MIN_DIVERGENCE_THRESHOLD = 0.05
MAX_DIVERGENCE_THRESHOLD = 0.5

NAME_REASON = "nome"
CPF_REASON = "cpf"


def hash_cpf(cpf: str) -> str:
    """One-way hash used for stored CPFs (hex SHA-256 of the UTF-8 value)."""
    return hashlib.sha256(cpf.encode("utf-8")).hexdigest()


def hash_self_reported_cpf(cpf: str | None) -> str | None:
    """Hash a CPF typed by the claimant, ignoring its punctuation."""
    if not cpf:
        return None
    digits = digits_only(cpf)
    return hash_cpf(digits) if digits else None


def resolve_divergence_threshold(value: float | str | None) -> float:
    """Accept a 0-1 ratio or a 0-100 percentage and clamp it into [0.05, 0.5]."""
    if value is None or value == "":
        return DEFAULT_DIVERGENCE_THRESHOLD
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return DEFAULT_DIVERGENCE_THRESHOLD
    if not math.isfinite(parsed):
        return DEFAULT_DIVERGENCE_THRESHOLD
    ratio = parsed / 100 if parsed > 1 else parsed
    return min(MAX_DIVERGENCE_THRESHOLD, max(MIN_DIVERGENCE_THRESHOLD, ratio))


class IdentityComparator:
    """Compares extracted identity fields with the claimant's reference identity."""

    def __init__(
        self,
        name_divergence_threshold: float = DEFAULT_DIVERGENCE_THRESHOLD,
        normalizer: TextNormalizer | None = None,
    ) -> None:
        self._threshold = name_divergence_threshold
        self._normalizer = normalizer

    @property
    def threshold(self) -> float:
        return self._threshold

    def neutral(self) -> ComparisonResult:
        """Result recorded when there is nothing to compare against."""
        return ComparisonResult(
            mismatch=False,
            reasons=(),
            name_similarity=1.0,
            name_divergence=0.0,
            name_threshold=self._threshold,
        )

    def compare(self, fields: IdentityFields, reference: ReferenceIdentity) -> ComparisonResult:
        reasons: list[str] = []
        similarity = string_similarity(fields.name, reference.full_name, self._normalizer)
        divergence = 1 - similarity

        if fields.name and reference.full_name and divergence > self._threshold:
            reasons.append(NAME_REASON)

        cpf_matches: bool | None = None
        if fields.cpf and reference.cpf_hash:
            cpf_matches = hash_cpf(fields.cpf) == reference.cpf_hash
            if not cpf_matches:
                reasons.append(CPF_REASON)

        return ComparisonResult(
            mismatch=bool(reasons),
            reasons=tuple(reasons),
            name_similarity=similarity,
            name_divergence=divergence,
            name_threshold=self._threshold,
            cpf_matches=cpf_matches,
        )
