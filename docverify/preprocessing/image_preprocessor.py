import io
from typing import ClassVar

from PIL import Image, ImageOps, UnidentifiedImageError

from docverify.logging.logger import Log
from docverify.preprocessing.models import PreprocessInfo, PreprocessResult
from docverify.processor.exceptions import ImagePreprocessError


class ImagePreprocessor:
    """Normalizes orientation and size of uploaded images before transcription.

    Images are rotated according to their EXIF orientation, shrunk to fit a
    ``max_dimension`` square (never enlarged) and re-encoded as JPEG. Any other
    content type, PDFs included, is passed through untouched.
    """

    MAX_DIMENSION: ClassVar[int] = 2000
    JPEG_QUALITY: ClassVar[int] = 90
    OUTPUT_CONTENT_TYPE: ClassVar[str] = "image/jpeg"
    _EXIF_ORIENTATION_TAG: ClassVar[int] = 0x0112

    def __init__(self, max_dimension: int | None = None) -> None:
        self._max_dimension = max_dimension or self.MAX_DIMENSION

    def preprocess(self, content: bytes, content_type: str) -> PreprocessResult:
        """Return processed bytes plus metadata for images; pass other content through.

        Raises:
            ImagePreprocessError: if *content* is declared as an image but cannot
                be decoded.
        """
        if not content_type.lower().startswith("image/"):
            return PreprocessResult(content=content, content_type=content_type)

        try:
            with Image.open(io.BytesIO(content)) as image:
                return self._process_image(image)
        except UnidentifiedImageError as exc:
            raise ImagePreprocessError(f"Cannot decode image: {exc}") from exc
        except (OSError, ValueError) as exc:
            raise ImagePreprocessError(f"Image preprocessing failed: {exc}") from exc

    def _process_image(self, image: Image.Image) -> PreprocessResult:
        original_width, original_height = image.size
        orientation = image.getexif().get(self._EXIF_ORIENTATION_TAG, 1)

        # exif_transpose returns a detached copy, safe to mutate after close.
        output = ImageOps.exif_transpose(image)

        resized = False
        if original_width > self._max_dimension or original_height > self._max_dimension:
            output.thumbnail((self._max_dimension, self._max_dimension))
            resized = True

        if output.mode != "RGB":
            output = output.convert("RGB")

        buffer = io.BytesIO()
        output.save(buffer, format="JPEG", quality=self.JPEG_QUALITY)

        info = PreprocessInfo(
            resized=resized,
            rotated=orientation != 1,
            original_width=original_width,
            original_height=original_height,
        )
        Log.debug(
            f"Preprocessed image {original_width}x{original_height} -> "
            f"{output.width}x{output.height} (resized={resized}, rotated={info.rotated})"
        )
        return PreprocessResult(
            content=buffer.getvalue(),
            content_type=self.OUTPUT_CONTENT_TYPE,
            info=info,
        )
