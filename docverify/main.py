from docverify.config.settings import Settings
from docverify.database.connection import close_pool, init_pool
from docverify.database.repositories.job_repository import JobRepository
from docverify.logging.logger import Log
from docverify.processor.processor import build_processor
from docverify.worker.job_runner import JobRunner
from docverify.worker.worker import Worker


def main() -> None:
    """Entry point: initialize pool -> build dependencies -> start worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    Log.info(
        f"Starting OCR worker (env={settings.app_env}, provider={settings.ocr_provider}, "
        f"storage={settings.storage_driver}, concurrency={settings.ocr_concurrency}, "
        f"limit={settings.ocr_limiter_max}/{settings.ocr_limiter_duration_ms}ms)"
    )
    init_pool(settings)

    try:
        processor = build_processor(settings)
        job_repo = JobRepository(settings.max_job_attempts)
        job_runner = JobRunner(processor, job_repo, settings)
        worker = Worker(job_repo, job_runner, settings)
        worker.run()
    finally:
        close_pool()
        Log.info("OCR worker stopped")


if __name__ == "__main__":
    main()
