from docverify.preprocessing.models import ImageLegibilityFailure, PreprocessInfo


class LegibilityGate:
    """Rejects images too small to be worth a paid transcription call."""

    REASON = "resolution_or_size"

    def __init__(self, min_width: int, min_height: int, min_bytes: int) -> None:
        self._min_width = min_width
        self._min_height = min_height
        self._min_bytes = min_bytes

    def check(self, info: PreprocessInfo, original_size: int) -> ImageLegibilityFailure | None:
        """Return the failure details, or None when the image passes.

        Unknown dimensions are not held against the image; the byte-size
        threshold always applies.
        """
        width = info.original_width or 0
        height = info.original_height or 0
        too_small = (
            (width > 0 and width < self._min_width)
            or (height > 0 and height < self._min_height)
            or original_size < self._min_bytes
        )
        if not too_small:
            return None
        return ImageLegibilityFailure(
            reason=self.REASON,
            min_width=self._min_width,
            min_height=self._min_height,
            min_bytes=self._min_bytes,
            width=width,
            height=height,
            size=original_size,
        )
