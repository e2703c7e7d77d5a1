from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TextAnnotation:
    """A single detected token and its bounding polygon."""

    description: str
    vertices: tuple[tuple[int, int], ...] = ()


@dataclass(frozen=True)
class TextDetectionResult:
    """Transcript returned by a text-detection provider."""

    raw_text: str
    annotations: list[TextAnnotation] = field(default_factory=list)
    raw_response: dict[str, Any] = field(default_factory=dict)
