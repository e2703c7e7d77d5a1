from docverify.config.settings import Settings
from docverify.database.models import OcrJobRecord
from docverify.database.repositories.job_repository import JobRepository
from docverify.logging.logger import Log
from docverify.processor.exceptions import NonRetryableError
from docverify.processor.processor import Processor


class JobRunner:
    """Run one job, catch exceptions, and apply retry logic."""

    def __init__(
        self,
        processor: Processor,
        job_repo: JobRepository,
        settings: Settings,
    ) -> None:
        self._processor = processor
        self._job_repo = job_repo
        self._settings = settings

    def run(self, job: OcrJobRecord) -> None:
        """Execute a single job with error handling."""
        Log.info(
            f"Running job {job.id} (attempt {job.attempts + 1})",
            request_id=job.request_id,
            job_id=job.id,
        )
        try:
            outcome = self._processor.process(job.payload(), job.id)
            self._job_repo.mark_done(job.id)
            Log.info(f"Job {job.id} completed: {outcome.value}", job_id=job.id)
        except Exception as exc:
            self._handle_failure(job, exc)

    def backoff_seconds(self, attempts: int) -> float:
        """Delay before the next attempt after *attempts* failures so far."""
        return float(self._settings.job_backoff_base_seconds * 2**attempts)

    def _handle_failure(self, job: OcrJobRecord, exc: Exception) -> None:
        """Fail integrity faults and exhausted jobs; otherwise schedule a retry."""
        if isinstance(exc, NonRetryableError):
            Log.error(
                f"Job {job.id} data-integrity fault for document {job.document_file_id}: {exc}",
                request_id=job.request_id,
                job_id=job.id,
            )
            self._job_repo.mark_failed(job.id, str(exc))
            return

        Log.error(f"Job {job.id} failed: {exc}", request_id=job.request_id, job_id=job.id)
        if job.attempts + 1 >= self._settings.max_job_attempts:
            self._job_repo.mark_failed(job.id, str(exc))
            Log.error(f"Job {job.id} permanently failed after {job.attempts + 1} attempts")
        else:
            delay = self.backoff_seconds(job.attempts)
            self._job_repo.increment_attempts(job.id, delay, str(exc))
            Log.warning(
                f"Job {job.id} will be retried in {delay:.0f}s (attempt {job.attempts + 2})"
            )
