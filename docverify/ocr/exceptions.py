class TextDetectionError(Exception):
    """Raised when text detection fails."""


class TextDetectionNetworkError(TextDetectionError):
    """Raised when the provider call fails due to network/infrastructure issues."""


class TextDetectionDisabledError(TextDetectionError):
    """Raised when a disabled detector is asked to transcribe."""
