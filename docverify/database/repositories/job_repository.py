import uuid
from typing import Any

import psycopg
from psycopg.rows import dict_row

from docverify.database.connection import get_connection
from docverify.database.models import OcrJobRecord
from docverify.processor.models import OcrJobPayload

_JOB_COLUMNS = """
    id, document_file_id, request_id, proposal_id, draft_id, status, attempts,
    error_message, available_at, locked_at, created_at, updated_at
"""


def _to_record(row: dict[str, Any]) -> OcrJobRecord:
    return OcrJobRecord(
        id=row["id"],
        document_file_id=str(row["document_file_id"]),
        request_id=str(row["request_id"]),
        proposal_id=str(row["proposal_id"]) if row["proposal_id"] is not None else None,
        draft_id=str(row["draft_id"]) if row["draft_id"] is not None else None,
        status=row["status"],
        attempts=row["attempts"],
        error_message=row.get("error_message"),
        available_at=row.get("available_at"),
        locked_at=row.get("locked_at"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class JobRepository:
    """Database operations for the ocr_jobs table (the OCR work queue)."""

    def __init__(self, max_attempts: int) -> None:
        self._max_attempts = max_attempts

    def enqueue(self, payload: OcrJobPayload) -> int:
        """Insert a pending job and return its ID."""
        request_id = payload.request_id or str(uuid.uuid4())
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO ocr_jobs
                        (document_file_id, request_id, proposal_id, draft_id,
                         status, attempts, available_at)
                    VALUES (%s, %s, %s, %s, 'pending', 0, NOW())
                    RETURNING id
                    """,
                    (
                        payload.document_file_id,
                        request_id,
                        payload.proposal_id,
                        payload.draft_id,
                    ),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise RuntimeError("INSERT INTO ocr_jobs returned no id")
        return int(row[0])

    def claim_next_job(self, conn: psycopg.Connection[Any]) -> OcrJobRecord | None:
        """Claim the next due pending job using SELECT FOR UPDATE SKIP LOCKED."""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                SELECT {_JOB_COLUMNS}
                FROM ocr_jobs
                WHERE status = 'pending'
                  AND attempts < %s
                  AND available_at <= NOW()
                ORDER BY available_at, created_at
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """,
                (self._max_attempts,),
            )
            row = cur.fetchone()

        if row is None:
            conn.commit()
            return None

        conn.execute(
            """
            UPDATE ocr_jobs
            SET status = 'processing', locked_at = NOW(), updated_at = NOW()
            WHERE id = %s
            """,
            (row["id"],),
        )
        conn.commit()

        record = _to_record(row)
        record.status = "processing"
        return record

    def mark_done(self, job_id: int) -> None:
        """Mark a job as done."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE ocr_jobs
                SET status = 'done', locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (job_id,),
            )
            conn.commit()

    def mark_failed(self, job_id: int, error: str) -> None:
        """Mark a job as permanently failed."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE ocr_jobs
                SET status = 'failed', attempts = attempts + 1, error_message = %s,
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (error, job_id),
            )
            conn.commit()

    def increment_attempts(self, job_id: int, delay_seconds: float, error: str) -> None:
        """Increment attempt count and return the job to pending after *delay_seconds*."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE ocr_jobs
                SET attempts = attempts + 1, status = 'pending', error_message = %s,
                    locked_at = NULL,
                    available_at = NOW() + make_interval(secs => %s),
                    updated_at = NOW()
                WHERE id = %s
                """,
                (error, delay_seconds, job_id),
            )
            conn.commit()

    def find_by_id(self, job_id: int) -> OcrJobRecord | None:
        """Find a job by ID. Useful for tests."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_JOB_COLUMNS} FROM ocr_jobs WHERE id = %s",
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _to_record(row)
