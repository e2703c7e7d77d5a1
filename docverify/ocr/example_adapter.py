"""Example text-detection adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseTextDetector and register the provider in TextDetectorFactory.
"""

from typing import ClassVar

from docverify.ocr.base import BaseTextDetector
from docverify.ocr.models import TextDetectionResult


class ExampleTextDetector(BaseTextDetector):
    """Example adapter that returns a fixed RG transcript.

    No network calls. Useful for local development and end-to-end runs
    without provider credentials.
    """

    FIXED_TRANSCRIPT: ClassVar[str] = (
        "REPUBLICA FEDERATIVA DO BRASIL\n"
        "REGISTRO GERAL 12.345.678-9\n"
        "NOME\n"
        "JOAO DA SILVA\n"
        "CPF 123.456.789-09\n"
        "DATA DE EXPEDICAO 01/02/2015\n"
        "ORGAO EMISSOR SSP/SC\n"
    )

    def __init__(self, transcript: str | None = None) -> None:
        self._transcript = transcript if transcript is not None else self.FIXED_TRANSCRIPT

    @property
    def enabled(self) -> bool:
        return True

    def detect(self, content: bytes, content_type: str) -> TextDetectionResult:
        _ = content, content_type
        return TextDetectionResult(raw_text=self._transcript)
