from dataclasses import dataclass


@dataclass(frozen=True)
class ReferenceIdentity:
    """Self-reported identity the document is checked against."""

    full_name: str | None = None
    cpf_hash: str | None = None


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of comparing extracted fields with a reference identity.

    ``reasons`` holds the field keys that diverged ("nome", "cpf");
    ``mismatch`` is True exactly when it is non-empty.
    """

    mismatch: bool
    reasons: tuple[str, ...]
    name_similarity: float
    name_divergence: float
    name_threshold: float
    cpf_matches: bool | None = None
