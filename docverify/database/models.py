from dataclasses import dataclass
from datetime import datetime

from docverify.processor.models import OcrJobPayload


@dataclass
class OcrJobRecord:
    """Represents a row from the ocr_jobs table."""

    id: int
    document_file_id: str
    request_id: str
    status: str
    attempts: int
    proposal_id: str | None = None
    draft_id: str | None = None
    error_message: str | None = None
    available_at: datetime | None = None
    locked_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def payload(self) -> OcrJobPayload:
        return OcrJobPayload(
            document_file_id=self.document_file_id,
            request_id=self.request_id,
            proposal_id=self.proposal_id,
            draft_id=self.draft_id,
        )
