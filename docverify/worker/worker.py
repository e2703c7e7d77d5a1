import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait

from docverify.config.settings import Settings
from docverify.database.connection import get_connection
from docverify.database.models import OcrJobRecord
from docverify.database.repositories.job_repository import JobRepository
from docverify.logging.logger import Log
from docverify.worker.job_runner import JobRunner
from docverify.worker.rate_limiter import SlidingWindowRateLimiter


class Worker:
    """Dispatch loop: wait for a free thread and a rate-limit slot -> claim -> submit.

    Each claimed job runs to completion on its own pool thread; the
    dispatcher never waits for a specific job.
    """

    def __init__(
        self,
        job_repo: JobRepository,
        job_runner: JobRunner,
        settings: Settings,
        rate_limiter: SlidingWindowRateLimiter | None = None,
    ) -> None:
        self._job_repo = job_repo
        self._job_runner = job_runner
        self._settings = settings
        self._concurrency = max(1, settings.ocr_concurrency)
        self._rate_limiter = rate_limiter or SlidingWindowRateLimiter(
            max_calls=settings.ocr_limiter_max,
            window_seconds=settings.ocr_limiter_duration_ms / 1000,
        )

    def run(self, max_jobs: int | None = None) -> None:
        """Main dispatch loop. Runs forever until interrupted.

        If max_jobs is set, stop after dispatching that many jobs and wait for
        them to finish (for testing).
        """
        Log.info(f"Worker started with {self._concurrency} threads, polling for jobs")
        jobs_dispatched = 0
        in_flight: set[Future[None]] = set()
        executor = ThreadPoolExecutor(
            max_workers=self._concurrency, thread_name_prefix="ocr-job"
        )
        try:
            while max_jobs is None or jobs_dispatched < max_jobs:
                in_flight = self._reap(in_flight)
                if len(in_flight) >= self._concurrency:
                    wait(in_flight, return_when=FIRST_COMPLETED)
                    continue

                retry_after = self._rate_limiter.retry_after()
                if retry_after is not None:
                    Log.debug(f"Rate limit reached, waiting {retry_after:.1f}s")
                    time.sleep(retry_after)
                    continue

                job = self._try_claim_job()
                if job:
                    self._rate_limiter.record()
                    in_flight.add(executor.submit(self._job_runner.run, job))
                    jobs_dispatched += 1
                else:
                    Log.debug("No jobs available, sleeping")
                    time.sleep(self._settings.job_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully, waiting for in-flight jobs")
        finally:
            executor.shutdown(wait=True)
            self._reap(in_flight)

    def _reap(self, in_flight: set[Future[None]]) -> set[Future[None]]:
        """Drop finished futures, logging any error that escaped the job runner."""
        pending: set[Future[None]] = set()
        for future in in_flight:
            if not future.done():
                pending.add(future)
                continue
            exc = future.exception()
            if exc is not None:
                Log.error(f"Job thread crashed: {exc}")
        return pending

    def _try_claim_job(self) -> OcrJobRecord | None:
        """Attempt to claim the next pending job. Gracefully handle DB errors."""
        try:
            with get_connection() as conn:
                return self._job_repo.claim_next_job(conn)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
