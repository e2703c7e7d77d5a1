from abc import ABC, abstractmethod

from docverify.ocr.models import TextDetectionResult


class BaseTextDetector(ABC):
    """Contract for all text-detection adapters."""

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """Whether the adapter is configured to make calls.

        Checked before any download so a missing credential skips the job
        instead of failing it on every attempt.
        """

    @abstractmethod
    def detect(self, content: bytes, content_type: str) -> TextDetectionResult:
        """Transcribe a document image or PDF.

        Args:
            content: Raw bytes (already preprocessed for images).
            content_type: MIME type of *content*.

        Returns:
            TextDetectionResult with the full-page transcript.

        Raises:
            TextDetectionDisabledError: if the adapter is not enabled.
            TextDetectionNetworkError: on transport or provider availability errors.
            TextDetectionError: on any other failure.
        """
