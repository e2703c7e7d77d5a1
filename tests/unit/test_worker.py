import threading
from unittest.mock import MagicMock, call, patch

from docverify.database.models import OcrJobRecord
from docverify.worker.rate_limiter import SlidingWindowRateLimiter
from docverify.worker.worker import Worker


def _settings(concurrency: int = 2) -> MagicMock:
    return MagicMock(
        job_poll_interval_seconds=1,
        ocr_concurrency=concurrency,
        ocr_limiter_max=10,
        ocr_limiter_duration_ms=60000,
    )


def _make_worker(
    concurrency: int = 2,
    rate_limiter: SlidingWindowRateLimiter | None = None,
) -> tuple[Worker, MagicMock, MagicMock]:
    """Create a Worker with mocked dependencies."""
    mock_repo = MagicMock()
    mock_runner = MagicMock()
    worker = Worker(mock_repo, mock_runner, _settings(concurrency), rate_limiter=rate_limiter)
    return worker, mock_repo, mock_runner


def _make_job(job_id: int = 1) -> OcrJobRecord:
    return OcrJobRecord(
        id=job_id,
        document_file_id=f"doc-{job_id}",
        request_id=f"req-{job_id}",
        status="processing",
        attempts=0,
        proposal_id="prop-1",
    )


class TestWorkerDispatch:
    def test_dispatches_job_to_runner(self) -> None:
        worker, _repo, mock_runner = _make_worker()
        job = _make_job()

        with patch.object(worker, "_try_claim_job", side_effect=[job, KeyboardInterrupt]):
            worker.run()

        mock_runner.run.assert_called_once_with(job)

    def test_dispatches_multiple_jobs(self) -> None:
        worker, _repo, mock_runner = _make_worker()

        with patch.object(
            worker,
            "_try_claim_job",
            side_effect=[_make_job(1), _make_job(2), _make_job(3), KeyboardInterrupt],
        ):
            worker.run()

        assert mock_runner.run.call_count == 3

    def test_stops_after_max_jobs(self) -> None:
        worker, _repo, mock_runner = _make_worker()

        with patch.object(worker, "_try_claim_job", return_value=_make_job()):
            worker.run(max_jobs=2)

        assert mock_runner.run.call_count == 2

    def test_runs_jobs_concurrently(self) -> None:
        worker, _repo, mock_runner = _make_worker(concurrency=2)
        both_started = threading.Barrier(2, timeout=5)
        mock_runner.run.side_effect = lambda job: both_started.wait()

        with patch.object(worker, "_try_claim_job", return_value=_make_job()):
            worker.run(max_jobs=2)

        assert mock_runner.run.call_count == 2
        assert not both_started.broken

    def test_runner_crash_does_not_stop_worker(self) -> None:
        worker, _repo, mock_runner = _make_worker(concurrency=1)
        mock_runner.run.side_effect = [RuntimeError("db down"), None]

        with patch.object(worker, "_try_claim_job", return_value=_make_job()):
            worker.run(max_jobs=2)

        assert mock_runner.run.call_count == 2


class TestWorkerSleep:
    def test_sleeps_when_no_job(self) -> None:
        worker, _repo, _runner = _make_worker()

        with (
            patch.object(worker, "_try_claim_job", side_effect=[None, KeyboardInterrupt]),
            patch("docverify.worker.worker.time.sleep") as mock_sleep,
        ):
            worker.run()

        mock_sleep.assert_called_once_with(1)


class TestWorkerRateLimit:
    def test_waits_when_window_is_full(self) -> None:
        now = [0.0]
        limiter = SlidingWindowRateLimiter(max_calls=1, window_seconds=60, clock=lambda: now[0])
        worker, _repo, mock_runner = _make_worker(rate_limiter=limiter)

        def fake_sleep(seconds: float) -> None:
            now[0] += seconds

        with (
            patch.object(worker, "_try_claim_job", return_value=_make_job()) as mock_claim,
            patch("docverify.worker.worker.time.sleep", side_effect=fake_sleep) as mock_sleep,
        ):
            worker.run(max_jobs=2)

        assert mock_runner.run.call_count == 2
        assert mock_claim.call_count == 2
        assert mock_sleep.call_args_list == [call(60.0)]


class TestWorkerShutdown:
    def test_handles_keyboard_interrupt(self) -> None:
        worker, _repo, _runner = _make_worker()

        with patch.object(worker, "_try_claim_job", side_effect=KeyboardInterrupt):
            worker.run()  # Should not raise

    def test_try_claim_job_swallows_db_errors(self) -> None:
        worker, _repo, _runner = _make_worker()

        with patch("docverify.worker.worker.get_connection", side_effect=RuntimeError("down")):
            assert worker._try_claim_job() is None
