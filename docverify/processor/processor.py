import time

from docverify.comparison.comparator import IdentityComparator, resolve_divergence_threshold
from docverify.config.settings import Settings
from docverify.database.repositories.document_files_repository import DocumentFilesRepository
from docverify.database.repositories.ocr_results_repository import OcrResultsRepository
from docverify.database.repositories.owners_repository import OwnersRepository
from docverify.logging.logger import Log
from docverify.ocr.base import BaseTextDetector
from docverify.ocr.factory import TextDetectorFactory
from docverify.parsing.address_parser import AddressParser
from docverify.parsing.document_parser import DocumentParser
from docverify.parsing.text import TextNormalizer
from docverify.preprocessing.image_preprocessor import ImagePreprocessor
from docverify.preprocessing.legibility import LegibilityGate
from docverify.processor.models import OcrJobPayload, Outcome
from docverify.processor.pipeline import PipelineContext, PipelineStep
from docverify.processor.result_serializer import ResultSerializer
from docverify.processor.steps import (
    CompareStep,
    DeriveFlagsStep,
    DownloadStep,
    EligibilityStep,
    FeatureFlagStep,
    FlagMismatchStep,
    LegibilityGateStep,
    LoadDocumentStep,
    ParseStep,
    PersistResultStep,
    PreprocessStep,
    TranscribeStep,
)
from docverify.storage.base import BaseObjectStorage
from docverify.storage.factory import StorageFactory


class Processor:
    """Orchestrates the OCR verification pipeline for one document file.

    Pipeline: load -> eligibility -> feature flag -> download -> preprocess ->
    legibility gate -> transcribe -> parse -> compare -> derive flags ->
    persist -> flag mismatch. A step that sets ``context.outcome`` ends the
    run early; exceptions propagate to the job runner.
    """

    def __init__(self, steps: list[PipelineStep]) -> None:
        self._steps = steps

    def process(self, payload: OcrJobPayload, job_id: int | None = None) -> Outcome:
        """Run every step for *payload* and return how the run ended."""
        started_at = time.monotonic()
        Log.info(
            f"OCR start: document {payload.document_file_id} "
            f"(job {job_id}, request {payload.request_id})",
            request_id=payload.request_id,
            document_file_id=payload.document_file_id,
            job_id=job_id,
        )

        context = PipelineContext(payload=payload, job_id=job_id)
        for step in self._steps:
            context = step.run(context)
            if context.outcome is not None:
                Log.info(
                    f"OCR skipped: document {payload.document_file_id}: {context.skip_reason}",
                    request_id=payload.request_id,
                    document_file_id=payload.document_file_id,
                    job_id=job_id,
                    outcome=context.outcome.value,
                )
                break

        outcome = context.outcome or Outcome.COMPLETED
        duration_ms = int((time.monotonic() - started_at) * 1000)
        Log.info(
            f"OCR done: document {payload.document_file_id} "
            f"({outcome.value}, {duration_ms} ms)",
            request_id=payload.request_id,
            document_file_id=payload.document_file_id,
            job_id=job_id,
            duration_ms=duration_ms,
        )
        return outcome


def build_steps(
    settings: Settings,
    detector: BaseTextDetector,
    storage: BaseObjectStorage,
    doc_repo: DocumentFilesRepository | None = None,
    owners_repo: OwnersRepository | None = None,
    results_repo: OcrResultsRepository | None = None,
) -> list[PipelineStep]:
    """Assemble the ordered pipeline steps from settings and adapters."""
    doc_repo = doc_repo or DocumentFilesRepository()
    owners_repo = owners_repo or OwnersRepository()
    results_repo = results_repo or OcrResultsRepository()
    normalizer = TextNormalizer()
    serializer = ResultSerializer()
    comparator = IdentityComparator(
        name_divergence_threshold=resolve_divergence_threshold(
            settings.ocr_divergence_threshold
        ),
        normalizer=normalizer,
    )
    gate = LegibilityGate(
        min_width=settings.ocr_min_width,
        min_height=settings.ocr_min_height,
        min_bytes=settings.ocr_min_bytes,
    )
    return [
        LoadDocumentStep(doc_repo, owners_repo),
        EligibilityStep(),
        FeatureFlagStep(detector),
        DownloadStep(storage),
        PreprocessStep(ImagePreprocessor()),
        LegibilityGateStep(gate, results_repo, serializer),
        TranscribeStep(detector, settings.ocr_min_text_length),
        ParseStep(DocumentParser(normalizer), AddressParser(normalizer)),
        CompareStep(comparator, owners_repo),
        DeriveFlagsStep(),
        PersistResultStep(results_repo, serializer),
        FlagMismatchStep(owners_repo),
    ]


def build_processor(settings: Settings) -> Processor:
    """Build a Processor with all required adapters."""
    detector = TextDetectorFactory.create(settings)
    storage = StorageFactory.create(settings)
    return Processor(steps=build_steps(settings, detector, storage))
