# tests/validation/test_rules.py
"""Testes das regras de formato UK (NI number, tax code, postcode)."""

import pytest

from payroll_pipeline.validation.rules import validate_ni_number, validate_postcode, validate_tax_code


@pytest.mark.parametrize("ni", ["AB123456C", "ab 12 34 56 c", "JG103759A"])
def test_valid_ni_numbers(ni):
    assert validate_ni_number(ni) is True


@pytest.mark.parametrize(
    "ni",
    [
        None,
        "",
        "AB12345C",    # dígitos a menos
        "DA123456C",   # primeira letra proibida
        "AO123456C",   # segunda letra O
        "GB123456A",   # prefixo inválido
        "ZZ123456A",
        "123456789",
    ],
)
def test_invalid_ni_numbers(ni):
    assert validate_ni_number(ni) is False


@pytest.mark.parametrize(
    "code",
    ["1257L", "1257lx", "K497", "K497L", "BR", "0T", "NT", "D0", "S1257L", "C1257L", "1250T"],
)
def test_valid_tax_codes(code):
    assert validate_tax_code(code) is True


@pytest.mark.parametrize("code", [None, "", "INVALID", "12345L", "L1257", "X1257L"])
def test_invalid_tax_codes(code):
    assert validate_tax_code(code) is False


@pytest.mark.parametrize("pc", ["SW1A 1AA", "M1 1AE", "b33 8th", "CR2 6XH", "DN55 1PT"])
def test_valid_postcodes(pc):
    assert validate_postcode(pc) is True


@pytest.mark.parametrize("pc", [None, "", "12345", "SW1A", "SW1A 1A"])
def test_invalid_postcodes(pc):
    assert validate_postcode(pc) is False
