from collections.abc import Callable
from datetime import datetime, timezone

from docverify.comparison.comparator import IdentityComparator, hash_self_reported_cpf
from docverify.comparison.models import ReferenceIdentity
from docverify.database.repositories.document_files_repository import DocumentFilesRepository
from docverify.database.repositories.ocr_results_repository import OcrResultsRepository
from docverify.database.repositories.owners_repository import OwnersRepository
from docverify.logging.logger import Log
from docverify.ocr.base import BaseTextDetector
from docverify.parsing.address_parser import AddressParser
from docverify.parsing.document_parser import DocumentParser
from docverify.parsing.models import DocumentType
from docverify.parsing.validators import is_valid_cep, is_valid_cpf
from docverify.preprocessing.image_preprocessor import ImagePreprocessor
from docverify.preprocessing.legibility import LegibilityGate
from docverify.processor.exceptions import DocumentOwnershipError, InvalidJobPayloadError
from docverify.processor.models import (
    MISMATCH_FLAGGABLE_STATUSES,
    OCR_ELIGIBLE_KINDS,
    DocTypeCheck,
    DocumentKind,
    FieldChecks,
    Heuristics,
    OcrResultRecord,
    Outcome,
    TranscriptLegibility,
    uploaded_family,
)
from docverify.processor.pipeline import PipelineContext, PipelineStep
from docverify.processor.result_serializer import RESIDENCE_DOCUMENT_TYPE, ResultSerializer
from docverify.storage.base import BaseObjectStorage


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LoadDocumentStep(PipelineStep):
    """Load the document file and its owning proposal, checking the job is consistent."""

    def __init__(
        self,
        doc_repo: DocumentFilesRepository,
        owners_repo: OwnersRepository,
    ) -> None:
        self._doc_repo = doc_repo
        self._owners_repo = owners_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        payload = context.payload
        if bool(payload.proposal_id) == bool(payload.draft_id):
            raise InvalidJobPayloadError(
                f"OCR job for document {payload.document_file_id} must name exactly one "
                "of proposal_id or draft_id"
            )

        document = self._doc_repo.find_by_id(payload.document_file_id)
        if payload.proposal_id and document.proposal_id != payload.proposal_id:
            raise DocumentOwnershipError(
                f"Document {document.id} does not belong to proposal {payload.proposal_id}"
            )
        if payload.draft_id and document.draft_id != payload.draft_id:
            raise DocumentOwnershipError(
                f"Document {document.id} does not belong to draft {payload.draft_id}"
            )

        context.document = document
        if payload.proposal_id:
            context.proposal = self._owners_repo.find_proposal(payload.proposal_id)
        return context


class EligibilityStep(PipelineStep):
    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.require_document()
        if document.kind not in OCR_ELIGIBLE_KINDS:
            context.outcome = Outcome.SKIPPED_INELIGIBLE_KIND
            context.skip_reason = f"document kind {document.kind.value} is not transcribed"
        return context


class FeatureFlagStep(PipelineStep):
    def __init__(self, detector: BaseTextDetector) -> None:
        self._detector = detector

    def run(self, context: PipelineContext) -> PipelineContext:
        if not self._detector.enabled:
            context.outcome = Outcome.SKIPPED_DISABLED
            context.skip_reason = "ocr_disabled"
        return context


class DownloadStep(PipelineStep):
    def __init__(self, storage: BaseObjectStorage) -> None:
        self._storage = storage

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.require_document()
        context.raw_bytes = self._storage.download(document.storage_key)
        Log.info(
            f"Downloaded {len(context.raw_bytes)} bytes for document {document.id}",
            request_id=context.payload.request_id,
        )
        return context


class PreprocessStep(PipelineStep):
    def __init__(self, preprocessor: ImagePreprocessor) -> None:
        self._preprocessor = preprocessor

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.require_document()
        context.preprocess_result = self._preprocessor.preprocess(
            context.raw_bytes, document.content_type
        )
        return context


class LegibilityGateStep(PipelineStep):
    """Record a terminal result for images below the resolution or size thresholds.

    Rejected images never reach text detection.
    """

    def __init__(
        self,
        gate: LegibilityGate,
        results_repo: OcrResultsRepository,
        serializer: ResultSerializer,
    ) -> None:
        self._gate = gate
        self._results_repo = results_repo
        self._serializer = serializer

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.require_document()
        if context.preprocess_result is None or context.preprocess_result.info is None:
            return context

        info = context.preprocess_result.info
        failure = self._gate.check(info, original_size=len(context.raw_bytes))
        if failure is None:
            return context

        if document.kind == DocumentKind.COMPROVANTE_RESIDENCIA:
            document_type = RESIDENCE_DOCUMENT_TYPE
        else:
            family = uploaded_family(document.kind)
            document_type = (family or DocumentType.UNKNOWN).value

        heuristics = Heuristics(
            request_id=context.payload.request_id,
            legibility=failure,
            preprocess=info,
        )
        record = OcrResultRecord(
            document_file_id=document.id,
            raw_text="",
            structured_data=self._serializer.structured_data(document_type, None),
            score=0.0,
            heuristics=self._serializer.heuristics(heuristics),
            proposal_id=context.payload.proposal_id,
            draft_id=context.payload.draft_id,
        )
        context.result_id = self._results_repo.insert(record)
        context.outcome = Outcome.LEGIBILITY_REJECTED
        context.skip_reason = (
            f"legibility ({failure.width}x{failure.height}, {failure.size} bytes)"
        )
        return context


class TranscribeStep(PipelineStep):
    def __init__(self, detector: BaseTextDetector, min_text_length: int) -> None:
        self._detector = detector
        self._min_text_length = min_text_length

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.require_document()
        if context.preprocess_result is not None:
            content = context.preprocess_result.content
            content_type = context.preprocess_result.content_type
        else:
            content, content_type = context.raw_bytes, document.content_type

        context.detection = self._detector.detect(content, content_type)
        raw_length = len(context.raw_text.strip())
        context.transcript_legibility = TranscriptLegibility(
            ok=raw_length >= self._min_text_length,
            min_text_length=self._min_text_length,
            raw_length=raw_length,
        )
        Log.info(
            f"Transcribed {raw_length} chars from document {document.id}",
            request_id=context.payload.request_id,
        )
        return context


class ParseStep(PipelineStep):
    def __init__(self, document_parser: DocumentParser, address_parser: AddressParser) -> None:
        self._document_parser = document_parser
        self._address_parser = address_parser

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.require_document()
        if document.kind == DocumentKind.COMPROVANTE_RESIDENCIA:
            context.address_fields = self._address_parser.parse(context.raw_text)
            context.document_type = RESIDENCE_DOCUMENT_TYPE
            return context

        parsed = self._document_parser.parse(context.raw_text)
        context.identity_fields = parsed.fields
        context.classification = parsed.classification
        context.document_type = parsed.document_type.value
        return context


class CompareStep(PipelineStep):
    """Compare extracted identity fields with the proposal's person or the draft's data."""

    def __init__(self, comparator: IdentityComparator, owners_repo: OwnersRepository) -> None:
        self._comparator = comparator
        self._owners_repo = owners_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.identity_fields is None:
            context.comparison = self._comparator.neutral()
            return context

        reference = self._resolve_reference(context)
        if reference is None:
            context.comparison = self._comparator.neutral()
        else:
            context.comparison = self._comparator.compare(context.identity_fields, reference)
        return context

    def _resolve_reference(self, context: PipelineContext) -> ReferenceIdentity | None:
        if context.proposal is not None and context.proposal.person is not None:
            return context.proposal.person

        draft_id = context.require_document().draft_id
        if not draft_id:
            return None
        draft = self._owners_repo.find_draft(draft_id)
        if draft is None:
            return None
        return ReferenceIdentity(
            full_name=draft.full_name,
            cpf_hash=hash_self_reported_cpf(draft.cpf),
        )


class DeriveFlagsStep(PipelineStep):
    """Expiry, declared-versus-detected type and check-digit flags."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or _utc_now

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.require_document()
        fields = context.identity_fields

        context.expired = self._is_expired(fields.expiry_date if fields else None)

        detected = context.classification.document_type if context.classification else None
        uploaded = uploaded_family(document.kind)
        mismatch = (
            detected is not None
            and detected != DocumentType.UNKNOWN
            and uploaded is not None
            and detected != uploaded
        )
        context.doc_type_check = DocTypeCheck(
            detected=detected, uploaded=uploaded, mismatch=mismatch
        )

        cpf = fields.cpf if fields else None
        cep = context.address_fields.postal_code if context.address_fields else None
        context.field_checks = FieldChecks(
            cpf_valid=is_valid_cpf(cpf) if cpf else None,
            cep_valid=is_valid_cep(cep) if cep else None,
        )
        return context

    def _is_expired(self, expiry_date: str | None) -> bool | None:
        if not expiry_date:
            return None
        try:
            expires_at = datetime.strptime(expiry_date, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        except ValueError:
            return None
        return expires_at < self._clock()


class PersistResultStep(PipelineStep):
    def __init__(self, results_repo: OcrResultsRepository, serializer: ResultSerializer) -> None:
        self._results_repo = results_repo
        self._serializer = serializer

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.require_document()
        if context.comparison is None or context.transcript_legibility is None:
            raise ValueError("PipelineContext must be transcribed and compared before persist")

        preprocess_info = context.preprocess_result.info if context.preprocess_result else None
        heuristics = Heuristics(
            request_id=context.payload.request_id,
            legibility=context.transcript_legibility,
            preprocess=preprocess_info,
            classification=context.classification,
            comparison=context.comparison,
            doc_type=context.doc_type_check,
            field_checks=context.field_checks,
            expired=context.expired,
        )
        fields = context.address_fields or context.identity_fields
        record = OcrResultRecord(
            document_file_id=document.id,
            raw_text=context.raw_text,
            structured_data=self._serializer.structured_data(context.document_type, fields),
            score=context.comparison.name_similarity,
            heuristics=self._serializer.heuristics(heuristics),
            proposal_id=context.payload.proposal_id,
            draft_id=context.payload.draft_id,
        )
        context.result_id = self._results_repo.insert(record)
        Log.info(
            f"Stored OCR result {context.result_id} for document {document.id}",
            request_id=context.payload.request_id,
        )
        return context


class FlagMismatchStep(PipelineStep):
    """Send a proposal back to PENDING_DOCS when the document contradicts it."""

    def __init__(self, owners_repo: OwnersRepository) -> None:
        self._owners_repo = owners_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        comparison = context.comparison
        proposal = context.proposal
        if comparison is None or not comparison.mismatch or proposal is None:
            return context
        if proposal.status not in MISMATCH_FLAGGABLE_STATUSES:
            return context

        moved = self._owners_repo.flag_pending_docs(proposal.id, comparison.reasons)
        if moved:
            Log.warning(
                f"Proposal {proposal.id} moved to PENDING_DOCS: "
                f"OCR mismatch on {', '.join(comparison.reasons)}",
                request_id=context.payload.request_id,
            )
        return context
