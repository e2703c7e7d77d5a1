from dataclasses import dataclass


@dataclass(frozen=True)
class PreprocessInfo:
    """What the preprocessor did to an image. Dimensions are pre-rotation."""

    resized: bool
    rotated: bool
    original_width: int | None = None
    original_height: int | None = None


@dataclass(frozen=True)
class PreprocessResult:
    """Bytes to send for text detection. ``info`` is None for non-image content."""

    content: bytes
    content_type: str
    info: PreprocessInfo | None = None


@dataclass(frozen=True)
class ImageLegibilityFailure:
    """Thresholds and measured values of an image rejected before transcription."""

    reason: str
    min_width: int
    min_height: int
    min_bytes: int
    width: int
    height: int
    size: int
    ok: bool = False
