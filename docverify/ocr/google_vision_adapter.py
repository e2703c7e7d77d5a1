import base64
from typing import Any, ClassVar

import httpx

from docverify.ocr.base import BaseTextDetector
from docverify.ocr.exceptions import (
    TextDetectionDisabledError,
    TextDetectionError,
    TextDetectionNetworkError,
)
from docverify.ocr.models import TextAnnotation, TextDetectionResult


class GoogleVisionAdapter(BaseTextDetector):
    """Text detection through the Google Cloud Vision REST API.

    Images go to ``images:annotate``; PDFs go to ``files:annotate``, which
    transcribes up to five pages synchronously. Both use
    DOCUMENT_TEXT_DETECTION, tuned for dense printed text.
    """

    FEATURE: ClassVar[dict[str, str]] = {"type": "DOCUMENT_TEXT_DETECTION"}
    PDF_CONTENT_TYPE: ClassVar[str] = "application/pdf"
    PDF_MAX_PAGES: ClassVar[int] = 5
    RETRYABLE_STATUS: ClassVar[frozenset[int]] = frozenset({408, 429, 500, 502, 503, 504})

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str,
        enabled: bool = True,
        client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self._enabled = enabled and bool(api_key)
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout_seconds)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def detect(self, content: bytes, content_type: str) -> TextDetectionResult:
        if not self._enabled:
            raise TextDetectionDisabledError("Google Vision text detection is disabled")

        encoded = base64.b64encode(content).decode("ascii")
        if content_type.lower() == self.PDF_CONTENT_TYPE:
            payload = self._post("/files:annotate", self._file_request(encoded))
            return self._parse_file_response(payload)
        payload = self._post("/images:annotate", self._image_request(encoded))
        return self._parse_image_response(payload)

    def _image_request(self, encoded: str) -> dict[str, Any]:
        return {"requests": [{"image": {"content": encoded}, "features": [self.FEATURE]}]}

    def _file_request(self, encoded: str) -> dict[str, Any]:
        return {
            "requests": [
                {
                    "inputConfig": {"content": encoded, "mimeType": self.PDF_CONTENT_TYPE},
                    "features": [self.FEATURE],
                    "pages": list(range(1, self.PDF_MAX_PAGES + 1)),
                }
            ]
        }

    def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._client.post(path, params={"key": self._api_key}, json=body)
            response.raise_for_status()
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise TextDetectionNetworkError(f"Vision network error: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status in self.RETRYABLE_STATUS:
                raise TextDetectionNetworkError(f"Vision API unavailable ({status})") from exc
            raise TextDetectionError(f"Vision API error ({status}): {exc}") from exc
        except httpx.HTTPError as exc:
            raise TextDetectionNetworkError(f"Vision transport error: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise TextDetectionError(f"Vision returned invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise TextDetectionError("Vision response must be an object")
        return payload

    def _parse_image_response(self, payload: dict[str, Any]) -> TextDetectionResult:
        responses = payload.get("responses") or []
        if not responses:
            return TextDetectionResult(raw_text="", raw_response=payload)
        first = self._check_error(responses[0])
        return TextDetectionResult(
            raw_text=self._extract_text(first),
            annotations=self._extract_annotations(first),
            raw_response=payload,
        )

    def _parse_file_response(self, payload: dict[str, Any]) -> TextDetectionResult:
        file_responses = payload.get("responses") or []
        if not file_responses:
            return TextDetectionResult(raw_text="", raw_response=payload)
        pages = self._check_error(file_responses[0]).get("responses") or []
        texts: list[str] = []
        annotations: list[TextAnnotation] = []
        for page in pages:
            page = self._check_error(page)
            text = self._extract_text(page)
            if text:
                texts.append(text)
            annotations.extend(self._extract_annotations(page))
        return TextDetectionResult(
            raw_text="\n".join(texts),
            annotations=annotations,
            raw_response=payload,
        )

    @staticmethod
    def _check_error(response: dict[str, Any]) -> dict[str, Any]:
        error = response.get("error")
        if error:
            raise TextDetectionError(
                f"Vision annotate error {error.get('code')}: {error.get('message')}"
            )
        return response

    @staticmethod
    def _extract_text(response: dict[str, Any]) -> str:
        full_text = (response.get("fullTextAnnotation") or {}).get("text")
        if full_text:
            return str(full_text)
        annotations = response.get("textAnnotations") or []
        if annotations:
            return str(annotations[0].get("description") or "")
        return ""

    @staticmethod
    def _extract_annotations(response: dict[str, Any]) -> list[TextAnnotation]:
        # The first textAnnotation is the whole page; the rest are tokens.
        tokens = (response.get("textAnnotations") or [])[1:]
        return [
            TextAnnotation(
                description=str(token.get("description") or ""),
                vertices=tuple(
                    (int(v.get("x", 0)), int(v.get("y", 0)))
                    for v in (token.get("boundingPoly") or {}).get("vertices") or []
                ),
            )
            for token in tokens
        ]
