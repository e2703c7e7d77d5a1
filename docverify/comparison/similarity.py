import re

from rapidfuzz.distance import Levenshtein

from docverify.parsing.text import TextNormalizer

NAME_STOPWORDS: frozenset[str] = frozenset({"DA", "DE", "DO", "DAS", "DOS", "E"})

_NON_ALNUM_RE = re.compile(r"[^A-Z0-9 ]+")
_WS_RE = re.compile(r"\s+")

_default_normalizer = TextNormalizer()


def normalize_name(value: str, normalizer: TextNormalizer | None = None) -> str:
    """Uppercase, fold diacritics, drop punctuation and Portuguese connectives.

    "Maria da Silva" and "MARIA SILVA" both normalize to "MARIA SILVA".
    """
    upper = (normalizer or _default_normalizer).upper(value)
    cleaned = _WS_RE.sub(" ", _NON_ALNUM_RE.sub("", upper)).strip()
    if not cleaned:
        return ""
    return " ".join(token for token in cleaned.split(" ") if token not in NAME_STOPWORDS)


def string_similarity(
    a: str | None,
    b: str | None,
    normalizer: TextNormalizer | None = None,
) -> float:
    """Return 1 - distance / longest length over normalized names.

    Missing input, or input that normalizes to nothing, yields 0.0.
    """
    if not a or not b:
        return 0.0
    normalized_a = normalize_name(a, normalizer)
    normalized_b = normalize_name(b, normalizer)
    if not normalized_a or not normalized_b:
        return 0.0
    return Levenshtein.normalized_similarity(normalized_a, normalized_b)
