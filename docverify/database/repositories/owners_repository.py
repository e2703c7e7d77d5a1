import uuid
from typing import Any

from psycopg.rows import dict_row

from docverify.comparison.models import ReferenceIdentity
from docverify.database.connection import get_connection
from docverify.processor.models import (
    MISMATCH_FLAGGABLE_STATUSES,
    DraftRecord,
    ProposalRecord,
    ProposalStatus,
)

OCR_MISMATCH_REASON_PREFIX = "Divergencia OCR"


def mismatch_reason(reasons: tuple[str, ...] | list[str]) -> str:
    """Human-readable status-history reason, e.g. ``Divergencia OCR (nome, cpf)``."""
    return f"{OCR_MISMATCH_REASON_PREFIX} ({', '.join(reasons)})"


class OwnersRepository:
    """Reads document owners (proposals, drafts) and moves proposals back to PENDING_DOCS."""

    def find_proposal(self, proposal_id: str) -> ProposalRecord | None:
        """Load a proposal with its person's full name and CPF hash."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT p.id, p.status, pe.id AS person_id,
                           pe.full_name, pe.cpf_hash
                    FROM proposals p
                    LEFT JOIN persons pe ON pe.id = p.person_id
                    WHERE p.id = %s
                    """,
                    (proposal_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        person = None
        if row["person_id"] is not None:
            person = ReferenceIdentity(full_name=row["full_name"], cpf_hash=row["cpf_hash"])
        return ProposalRecord(
            id=str(row["id"]),
            status=ProposalStatus(row["status"]),
            person=person,
        )

    def find_draft(self, draft_id: str) -> DraftRecord | None:
        """Load the self-reported name and CPF stored in a draft's JSON data."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT id, data FROM drafts WHERE id = %s",
                    (draft_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        data: dict[str, Any] = row["data"] if isinstance(row["data"], dict) else {}
        return DraftRecord(
            id=str(row["id"]),
            full_name=_optional_str(data.get("fullName")),
            cpf=_optional_str(data.get("cpf")),
        )

    def flag_pending_docs(self, proposal_id: str, reasons: tuple[str, ...]) -> bool:
        """Move a proposal to PENDING_DOCS and record the status change.

        The update only applies while the proposal is still in a flaggable
        status, so concurrent jobs cannot move it twice. Returns True when the
        transition happened.
        """
        flaggable = sorted(status.value for status in MISMATCH_FLAGGABLE_STATUSES)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    WITH previous AS (
                        SELECT id, status
                        FROM proposals
                        WHERE id = %s AND status::text = ANY(%s)
                        FOR UPDATE
                    )
                    UPDATE proposals p
                    SET status = %s, updated_at = NOW()
                    FROM previous
                    WHERE p.id = previous.id
                    RETURNING previous.status
                    """,
                    (proposal_id, flaggable, ProposalStatus.PENDING_DOCS.value),
                )
                row = cur.fetchone()
                if row is None:
                    conn.rollback()
                    return False

                cur.execute(
                    """
                    INSERT INTO proposal_status_history
                        (id, proposal_id, from_status, to_status, reason, created_at)
                    VALUES (%s, %s, %s, %s, %s, NOW())
                    """,
                    (
                        str(uuid.uuid4()),
                        proposal_id,
                        str(row[0]),
                        ProposalStatus.PENDING_DOCS.value,
                        mismatch_reason(reasons),
                    ),
                )
            conn.commit()
        return True


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
