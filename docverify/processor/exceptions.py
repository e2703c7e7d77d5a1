class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class NonRetryableError(ProcessorError):
    """Raised for faults that a retry cannot fix; the job fails immediately."""


class InvalidJobPayloadError(NonRetryableError):
    """Raised when a job does not name exactly one owner (proposal or draft)."""


class DocumentNotFoundError(NonRetryableError):
    """Raised when a document cannot be found in the database."""


class DocumentOwnershipError(NonRetryableError):
    """Raised when the job's owner does not match the document's owner."""


class ImagePreprocessError(NonRetryableError):
    """Raised when an image upload cannot be decoded."""
