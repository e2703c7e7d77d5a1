import unicodedata

from docverify.parsing.text import TextNormalizer, digits_only, normalize_date, split_lines
from docverify.parsing.validators import is_valid_cep, is_valid_cpf


class TestTextNormalizer:
    def test_folds_diacritics(self) -> None:
        assert TextNormalizer().normalize("Órgão Emissor") == "Orgao Emissor"

    def test_collapses_whitespace(self) -> None:
        assert TextNormalizer().normalize("  a\tb\r\n  c  ") == "a b c"

    def test_upper(self) -> None:
        assert TextNormalizer().upper("habilitação") == "HABILITACAO"

    def test_compact_keeps_accents_and_aligns_with_upper(self) -> None:
        normalizer = TextNormalizer()
        decomposed = unicodedata.normalize("NFD", "Órgão  Emissor")
        compact = normalizer.compact(decomposed)
        assert compact == "Órgão Emissor"
        assert len(compact) == len(normalizer.upper(decomposed))


class TestHelpers:
    def test_split_lines_drops_blanks(self) -> None:
        assert split_lines("a\r\n\n  b  \n\n") == ["a", "b"]

    def test_digits_only(self) -> None:
        assert digits_only("123.456.789-09") == "12345678909"

    def test_normalize_date_slash(self) -> None:
        assert normalize_date("01/02/2015") == "2015-02-01"

    def test_normalize_date_dash(self) -> None:
        assert normalize_date("15-03-2020") == "2020-03-15"

    def test_normalize_date_invalid(self) -> None:
        assert normalize_date("2020/03/15") is None
        assert normalize_date(None) is None


class TestValidators:
    def test_valid_cpf(self) -> None:
        assert is_valid_cpf("123.456.789-09") is True
        assert is_valid_cpf("93541134780") is True

    def test_invalid_cpf_check_digit(self) -> None:
        assert is_valid_cpf("12345678900") is False

    def test_repeated_digit_cpf_is_invalid(self) -> None:
        assert is_valid_cpf("111.111.111-11") is False

    def test_short_cpf_is_invalid(self) -> None:
        assert is_valid_cpf("1234") is False

    def test_valid_cep(self) -> None:
        assert is_valid_cep("88010-000") is True

    def test_invalid_cep(self) -> None:
        assert is_valid_cep("8801") is False
        assert is_valid_cep("00000000") is False
