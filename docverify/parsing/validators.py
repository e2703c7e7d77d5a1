"""Check-digit validation for Brazilian identifiers found on documents."""

import re

from docverify.parsing.text import digits_only

_REPEATED_DIGIT_RE = re.compile(r"^(\d)\1+$")


def _cpf_check_digit(digits: str, weight_start: int) -> int:
    total = sum(int(d) * (weight_start - i) for i, d in enumerate(digits))
    check = (total * 10) % 11
    return 0 if check == 10 else check


def is_valid_cpf(value: str) -> bool:
    """Return True when *value* carries 11 digits with valid CPF check digits."""
    cpf = digits_only(value)
    if len(cpf) != 11 or _REPEATED_DIGIT_RE.match(cpf):
        return False
    if _cpf_check_digit(cpf[:9], 10) != int(cpf[9]):
        return False
    return _cpf_check_digit(cpf[:10], 11) == int(cpf[10])


def is_valid_cep(value: str) -> bool:
    cep = digits_only(value)
    if len(cep) != 8:
        return False
    return not _REPEATED_DIGIT_RE.match(cep)
