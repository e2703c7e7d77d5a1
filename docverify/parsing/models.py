from dataclasses import dataclass, field
from enum import Enum


class DocumentType(str, Enum):
    """Identity-document family detected from a transcript."""

    RG = "RG"
    CNH = "CNH"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class ClassificationResult:
    """Keyword scores behind a document-type decision."""

    document_type: DocumentType
    rg_score: int = 0
    cnh_score: int = 0
    matched_keywords: tuple[str, ...] = ()


@dataclass(frozen=True)
class IdentityFields:
    """Fields located on an RG or CNH transcript. Missing fields stay None."""

    name: str | None = None
    cpf: str | None = None
    document_number: str | None = None
    issue_date: str | None = None  # YYYY-MM-DD
    expiry_date: str | None = None  # YYYY-MM-DD
    issuing_authority: str | None = None
    state: str | None = None


@dataclass(frozen=True)
class DocumentParseResult:
    """Output of the identity-document parser."""

    document_type: DocumentType
    fields: IdentityFields = field(default_factory=IdentityFields)
    classification: ClassificationResult = field(
        default_factory=lambda: ClassificationResult(DocumentType.UNKNOWN)
    )


@dataclass(frozen=True)
class AddressFields:
    """Fields located on a proof-of-residence transcript."""

    postal_code: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    neighborhood: str | None = None
