from abc import ABC, abstractmethod
from dataclasses import dataclass

from docverify.comparison.models import ComparisonResult
from docverify.ocr.models import TextDetectionResult
from docverify.parsing.models import AddressFields, ClassificationResult, IdentityFields
from docverify.preprocessing.models import PreprocessResult
from docverify.processor.models import (
    DocTypeCheck,
    DocumentFile,
    FieldChecks,
    OcrJobPayload,
    Outcome,
    ProposalRecord,
    TranscriptLegibility,
)


@dataclass(slots=True)
class PipelineContext:
    payload: OcrJobPayload
    job_id: int | None = None
    document: DocumentFile | None = None
    proposal: ProposalRecord | None = None
    raw_bytes: bytes = b""
    preprocess_result: PreprocessResult | None = None
    detection: TextDetectionResult | None = None
    transcript_legibility: TranscriptLegibility | None = None
    document_type: str = ""
    identity_fields: IdentityFields | None = None
    address_fields: AddressFields | None = None
    classification: ClassificationResult | None = None
    comparison: ComparisonResult | None = None
    doc_type_check: DocTypeCheck | None = None
    field_checks: FieldChecks | None = None
    expired: bool | None = None
    result_id: str | None = None
    outcome: Outcome | None = None
    skip_reason: str = ""

    @property
    def raw_text(self) -> str:
        return self.detection.raw_text if self.detection else ""

    def require_document(self) -> DocumentFile:
        if self.document is None:
            raise ValueError("PipelineContext.document must be set by LoadDocumentStep")
        return self.document


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        """Advance the context. Setting ``context.outcome`` stops the pipeline."""
        raise NotImplementedError
