import pytest

from docverify.comparison.similarity import (
    normalize_name,
    string_similarity,
)


class TestNormalizeName:
    def test_drops_connectives_and_accents(self) -> None:
        assert normalize_name("Maria da Conceição") == "MARIA CONCEICAO"

    def test_strips_punctuation(self) -> None:
        assert normalize_name("  O'Neil,  Ana ") == "ONEIL ANA"

    def test_only_stopwords_normalizes_to_empty(self) -> None:
        assert normalize_name("de da") == ""


class TestStringSimilarity:
    @pytest.mark.parametrize("name", ["JOAO DA SILVA", "maria oliveira", "Zé"])
    def test_identity_is_one(self, name: str) -> None:
        assert string_similarity(name, name) == 1.0

    def test_ignores_case_accents_and_connectives(self) -> None:
        assert string_similarity("João da Silva", "JOAO SILVA") == 1.0

    def test_missing_side_is_zero(self) -> None:
        assert string_similarity(None, "JOAO") == 0.0
        assert string_similarity("JOAO", "") == 0.0

    def test_empty_after_normalization_is_zero(self) -> None:
        assert string_similarity("DE", "JOAO") == 0.0

    def test_partial_similarity(self) -> None:
        assert string_similarity("JOAO SILVA", "JOAO SILVB") == pytest.approx(0.9)

    @pytest.mark.parametrize(
        ("a", "b"),
        [("Maria da Silva", "Mario Souza"), ("Ana", "Anna Paula"), ("JOAO", "JOSE")],
    )
    def test_symmetric(self, a: str, b: str) -> None:
        assert string_similarity(a, b) == string_similarity(b, a)

    def test_divides_by_longest_name(self) -> None:
        # ANA -> ANNA PAULA takes 7 edits over 10 characters.
        assert string_similarity("Ana", "Anna Paula") == pytest.approx(0.3)

    def test_one_edit_in_ten_characters(self) -> None:
        assert string_similarity("JOAO SILXY", "JOAO SILVA") == pytest.approx(0.8)
