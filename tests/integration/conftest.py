import os
import uuid
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest
from psycopg.types.json import Jsonb

from docverify.config.settings import Settings
from docverify.database.connection import close_pool, get_connection, init_pool
from docverify.processor.models import OcrJobPayload

# Minimal shape of the tables the worker touches. The owning web app manages
# the real migrations; IF NOT EXISTS leaves an existing schema alone.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS persons (
    id TEXT PRIMARY KEY,
    full_name TEXT NOT NULL,
    cpf_hash TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS proposals (
    id TEXT PRIMARY KEY,
    person_id TEXT REFERENCES persons (id),
    status TEXT NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE TABLE IF NOT EXISTS drafts (
    id TEXT PRIMARY KEY,
    data JSONB
);
CREATE TABLE IF NOT EXISTS document_files (
    id TEXT PRIMARY KEY,
    proposal_id TEXT,
    draft_id TEXT,
    type TEXT NOT NULL,
    storage_key TEXT NOT NULL,
    content_type TEXT NOT NULL,
    size INTEGER NOT NULL,
    checksum TEXT
);
CREATE TABLE IF NOT EXISTS proposal_status_history (
    id TEXT PRIMARY KEY,
    proposal_id TEXT NOT NULL,
    from_status TEXT,
    to_status TEXT NOT NULL,
    reason TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE TABLE IF NOT EXISTS ocr_results (
    id TEXT PRIMARY KEY,
    proposal_id TEXT,
    draft_id TEXT,
    document_file_id TEXT NOT NULL,
    raw_text TEXT NOT NULL,
    structured_data JSONB NOT NULL,
    score DOUBLE PRECISION NOT NULL,
    heuristics JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE TABLE IF NOT EXISTS ocr_jobs (
    id BIGSERIAL PRIMARY KEY,
    document_file_id TEXT NOT NULL,
    request_id TEXT NOT NULL,
    proposal_id TEXT,
    draft_id TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    attempts INTEGER NOT NULL DEFAULT 0,
    error_message TEXT,
    available_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    locked_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

# Children first so foreign keys never block the cleanup.
_CLEANUP_ORDER = (
    ("ocr_jobs", "id"),
    ("ocr_results", "document_file_id"),
    ("proposal_status_history", "proposal_id"),
    ("document_files", "id"),
    ("drafts", "id"),
    ("proposals", "id"),
    ("persons", "id"),
)


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "onboarding_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute(SCHEMA_SQL)
            conn.commit()
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(
    integration_pool: None,
) -> Generator[list[tuple[str, Any]], None, None]:
    cleanup: list[tuple[str, Any]] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for table, column in _CLEANUP_ORDER:
                for entry_table, value in cleanup:
                    if entry_table == table:
                        cur.execute(f"DELETE FROM {table} WHERE {column} = %s", (value,))
        conn.commit()


@pytest.fixture
def files_root(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def e2e_settings(test_settings: Settings, files_root: Path) -> Settings:
    """Settings wired to the offline detector and local storage."""
    return test_settings.model_copy(
        update={
            "ocr_provider": "example",
            "storage_driver": "local",
            "files_root": str(files_root),
            "job_backoff_base_seconds": 0,
        }
    )


class Seeder:
    """Inserts owners, documents and jobs, registering each row for cleanup."""

    def __init__(self, conn: psycopg.Connection[Any], cleanup: list[tuple[str, Any]]) -> None:
        self._conn = conn
        self._cleanup = cleanup

    def person(self, full_name: str, cpf_hash: str) -> str:
        person_id = str(uuid.uuid4())
        self._conn.execute(
            "INSERT INTO persons (id, full_name, cpf_hash) VALUES (%s, %s, %s)",
            (person_id, full_name, cpf_hash),
        )
        self._conn.commit()
        self._cleanup.append(("persons", person_id))
        return person_id

    def proposal(self, status: str, person_id: str | None = None) -> str:
        proposal_id = str(uuid.uuid4())
        self._conn.execute(
            "INSERT INTO proposals (id, person_id, status) VALUES (%s, %s, %s)",
            (proposal_id, person_id, status),
        )
        self._conn.commit()
        self._cleanup.append(("proposals", proposal_id))
        self._cleanup.append(("proposal_status_history", proposal_id))
        return proposal_id

    def draft(self, data: dict[str, Any]) -> str:
        draft_id = str(uuid.uuid4())
        self._conn.execute(
            "INSERT INTO drafts (id, data) VALUES (%s, %s)",
            (draft_id, Jsonb(data)),
        )
        self._conn.commit()
        self._cleanup.append(("drafts", draft_id))
        return draft_id

    def document(
        self,
        kind: str,
        storage_key: str,
        content: bytes,
        content_type: str = "image/jpeg",
        proposal_id: str | None = None,
        draft_id: str | None = None,
    ) -> str:
        document_id = str(uuid.uuid4())
        self._conn.execute(
            """
            INSERT INTO document_files
                (id, proposal_id, draft_id, type, storage_key, content_type, size)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (document_id, proposal_id, draft_id, kind, storage_key, content_type, len(content)),
        )
        self._conn.commit()
        self._cleanup.append(("document_files", document_id))
        self._cleanup.append(("ocr_results", document_id))
        return document_id

    def job(self, payload: OcrJobPayload, available_at: str = "2000-01-01", attempts: int = 0) -> int:
        """Insert a pending job; the old default ``available_at`` puts it first in the queue."""
        with self._conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO ocr_jobs
                    (document_file_id, request_id, proposal_id, draft_id,
                     status, attempts, available_at)
                VALUES (%s, %s, %s, %s, 'pending', %s, %s)
                RETURNING id
                """,
                (
                    payload.document_file_id,
                    payload.request_id,
                    payload.proposal_id,
                    payload.draft_id,
                    attempts,
                    available_at,
                ),
            )
            row = cur.fetchone()
            assert row is not None
            job_id = int(row[0])
        self._conn.commit()
        self._cleanup.append(("ocr_jobs", job_id))
        return job_id


@pytest.fixture
def seeder(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[tuple[str, Any]],
) -> Seeder:
    return Seeder(db_conn, integration_cleanup)
