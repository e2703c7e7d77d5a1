from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from docverify.comparison.models import ComparisonResult, ReferenceIdentity
from docverify.parsing.models import ClassificationResult, DocumentType
from docverify.preprocessing.models import ImageLegibilityFailure, PreprocessInfo


class DocumentKind(str, Enum):
    """Upload category chosen by the claimant."""

    RG_FRENTE = "RG_FRENTE"
    RG_VERSO = "RG_VERSO"
    CNH = "CNH"
    COMPROVANTE_RESIDENCIA = "COMPROVANTE_RESIDENCIA"
    SELFIE = "SELFIE"
    OUTROS = "OUTROS"


OCR_ELIGIBLE_KINDS: frozenset[DocumentKind] = frozenset(
    {DocumentKind.RG_FRENTE, DocumentKind.CNH, DocumentKind.COMPROVANTE_RESIDENCIA}
)

_UPLOADED_FAMILY: dict[DocumentKind, DocumentType] = {
    DocumentKind.CNH: DocumentType.CNH,
    DocumentKind.RG_FRENTE: DocumentType.RG,
    DocumentKind.RG_VERSO: DocumentType.RG,
}


def uploaded_family(kind: DocumentKind) -> DocumentType | None:
    """Identity-document family implied by the upload category, if any."""
    return _UPLOADED_FAMILY.get(kind)


class ProposalStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    PENDING_DOCS = "PENDING_DOCS"
    PENDING_SIGNATURE = "PENDING_SIGNATURE"
    SIGNED = "SIGNED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELED = "CANCELED"


# Only proposals still in early review are sent back for new documents.
MISMATCH_FLAGGABLE_STATUSES: frozenset[ProposalStatus] = frozenset(
    {ProposalStatus.SUBMITTED, ProposalStatus.UNDER_REVIEW}
)


class Outcome(str, Enum):
    """How a processed job ended. Only COMPLETED and LEGIBILITY_REJECTED persist a row."""

    COMPLETED = "completed"
    SKIPPED_INELIGIBLE_KIND = "skipped_ineligible_kind"
    SKIPPED_DISABLED = "skipped_disabled"
    LEGIBILITY_REJECTED = "legibility_rejected"


@dataclass(frozen=True)
class OcrJobPayload:
    """Work item: one document file to verify for one owner."""

    document_file_id: str
    request_id: str
    proposal_id: str | None = None
    draft_id: str | None = None


@dataclass(frozen=True)
class DocumentFile:
    """Domain model for an uploaded document (subset of DB columns)."""

    id: str
    kind: DocumentKind
    storage_key: str
    content_type: str
    size_bytes: int
    proposal_id: str | None = None
    draft_id: str | None = None
    checksum: str | None = None


@dataclass(frozen=True)
class ProposalRecord:
    """Proposal owning a document, with its person's reference identity."""

    id: str
    status: ProposalStatus
    person: ReferenceIdentity | None = None


@dataclass(frozen=True)
class DraftRecord:
    """Self-reported data of an onboarding draft. The CPF is plaintext here
    and is only ever hashed in memory."""

    id: str
    full_name: str | None = None
    cpf: str | None = None


@dataclass(frozen=True)
class TranscriptLegibility:
    """Whether the transcript is long enough to be considered readable."""

    ok: bool
    min_text_length: int
    raw_length: int


@dataclass(frozen=True)
class DocTypeCheck:
    detected: DocumentType | None
    uploaded: DocumentType | None
    mismatch: bool


@dataclass(frozen=True)
class FieldChecks:
    """Check-digit validity of extracted identifiers."""

    cpf_valid: bool | None = None
    cep_valid: bool | None = None


@dataclass(frozen=True)
class Heuristics:
    """Diagnostic record of one attempt; each stage contributes one sub-record."""

    request_id: str
    legibility: TranscriptLegibility | ImageLegibilityFailure
    preprocess: PreprocessInfo | None = None
    classification: ClassificationResult | None = None
    comparison: ComparisonResult | None = None
    doc_type: DocTypeCheck | None = None
    field_checks: FieldChecks | None = None
    expired: bool | None = None


@dataclass(frozen=True)
class OcrResultRecord:
    """A row of the append-only ocr_results table."""

    document_file_id: str
    raw_text: str
    structured_data: dict[str, Any]
    score: float
    heuristics: dict[str, Any]
    proposal_id: str | None = None
    draft_id: str | None = None
    id: str | None = None
    created_at: datetime | None = None
