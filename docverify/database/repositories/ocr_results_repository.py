import uuid
from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from docverify.database.connection import get_connection
from docverify.processor.models import OcrResultRecord

_RESULT_COLUMNS = """
    id, proposal_id, draft_id, document_file_id, raw_text,
    structured_data, score, heuristics, created_at
"""


def _to_record(row: dict[str, Any]) -> OcrResultRecord:
    return OcrResultRecord(
        id=str(row["id"]),
        proposal_id=str(row["proposal_id"]) if row["proposal_id"] is not None else None,
        draft_id=str(row["draft_id"]) if row["draft_id"] is not None else None,
        document_file_id=str(row["document_file_id"]),
        raw_text=row["raw_text"],
        structured_data=row["structured_data"],
        score=float(row["score"]),
        heuristics=row["heuristics"],
        created_at=row["created_at"],
    )


class OcrResultsRepository:
    """Append-only access to the ocr_results table.

    Every processing attempt inserts a new row; rows are never updated, so
    readers must pick the most recent one per document.
    """

    def insert(self, record: OcrResultRecord) -> str:
        """Insert one result row and return its generated ID."""
        result_id = str(uuid.uuid4())
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO ocr_results
                    (id, proposal_id, draft_id, document_file_id, raw_text,
                     structured_data, score, heuristics, created_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, NOW())
                """,
                (
                    result_id,
                    record.proposal_id,
                    record.draft_id,
                    record.document_file_id,
                    record.raw_text,
                    Jsonb(record.structured_data),
                    record.score,
                    Jsonb(record.heuristics),
                ),
            )
            conn.commit()
        return result_id

    def find_latest_by_document(self, document_file_id: str) -> OcrResultRecord | None:
        """Return the most recent result for a document file, if any."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_RESULT_COLUMNS}
                    FROM ocr_results
                    WHERE document_file_id = %s
                    ORDER BY created_at DESC
                    LIMIT 1
                    """,
                    (document_file_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _to_record(row)

    def list_by_document(self, document_file_id: str) -> list[OcrResultRecord]:
        """Return every result for a document file, newest first."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_RESULT_COLUMNS}
                    FROM ocr_results
                    WHERE document_file_id = %s
                    ORDER BY created_at DESC
                    """,
                    (document_file_id,),
                )
                rows = cur.fetchall()
        return [_to_record(row) for row in rows]
