from psycopg.rows import dict_row

from docverify.database.connection import get_connection
from docverify.processor.exceptions import DocumentNotFoundError
from docverify.processor.models import DocumentFile, DocumentKind


class DocumentFilesRepository:
    """Read-only access to the document_files table."""

    def find_by_id(self, document_file_id: str) -> DocumentFile:
        """Find an uploaded document file by ID.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, proposal_id, draft_id, type, storage_key,
                           content_type, size, checksum
                    FROM document_files
                    WHERE id = %s
                    """,
                    (document_file_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise DocumentNotFoundError(f"Document file {document_file_id} not found")

        return DocumentFile(
            id=str(row["id"]),
            kind=DocumentKind(row["type"]),
            storage_key=row["storage_key"],
            content_type=row["content_type"],
            size_bytes=row["size"],
            proposal_id=str(row["proposal_id"]) if row["proposal_id"] is not None else None,
            draft_id=str(row["draft_id"]) if row["draft_id"] is not None else None,
            checksum=row["checksum"],
        )
