from docverify.config.settings import Settings
from docverify.logging.logger import Log
from docverify.ocr.base import BaseTextDetector
from docverify.ocr.example_adapter import ExampleTextDetector
from docverify.ocr.google_vision_adapter import GoogleVisionAdapter


class TextDetectorFactory:
    """Creates the configured text-detection adapter."""

    PROVIDERS = ("google_vision", "example")

    @classmethod
    def create(cls, settings: Settings) -> BaseTextDetector:
        provider = settings.ocr_provider.lower()
        if provider == "example":
            return ExampleTextDetector()
        if provider == "google_vision":
            detector = GoogleVisionAdapter(
                api_key=settings.google_vision_api_key,
                timeout_seconds=settings.google_vision_timeout_seconds,
                base_url=settings.google_vision_base_url,
                enabled=settings.ocr_enabled,
            )
            if not detector.enabled:
                Log.warning(
                    "Google Vision OCR disabled (OCR_ENABLED=false or no API key); "
                    "OCR jobs will be skipped"
                )
            return detector
        raise ValueError(
            f"Unknown OCR provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
