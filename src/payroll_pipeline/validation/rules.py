# src/payroll_pipeline/validation/rules.py
"""
Regras de formato de identificadores fiscais do Reino Unido.

Usadas pelo RuleBasedFlagger durante a validação pré-processamento.
Todas as funções normalizam o input (remove espaços, maiúsculas) e
retornam bool; nenhuma levanta exceção para strings malformadas.
"""

from __future__ import annotations

import re
from typing import Optional

_NI_RE = re.compile(r"^[A-Z]{2}[0-9]{6}[A-Z]$")
_NI_BAD_FIRST_LETTERS = set("DFIQUV")
_NI_INVALID_PREFIXES = {"BG", "GB", "NK", "KN", "TN", "NT", "ZZ"}

_SPECIAL_TAX_CODES = {"BR", "D0", "D1", "NT", "0T"}
_EMERGENCY_TAX_RE = re.compile(r"^(1257|1250)[LPT]X?$")
_STANDARD_TAX_RE = re.compile(r"^K?[0-9]{1,4}[A-Z]$")
_K_TAX_RE = re.compile(r"^K[0-9]{1,4}$")
# Escócia (S) e País de Gales (C)
_REGIONAL_TAX_RE = re.compile(r"^[SC][0-9]{1,4}[A-Z]$")

_POSTCODE_RE = re.compile(r"^[A-Z]{1,2}[0-9][A-Z0-9]?[0-9][A-Z]{2}$")


def _clean(value: Optional[str]) -> str:
    if value is None:
        return ""
    return re.sub(r"\s", "", str(value)).upper()


def validate_ni_number(ni_number: Optional[str]) -> bool:
    """National Insurance: 2 letras, 6 dígitos, 1 letra (ex.: AB123456C)."""
    clean = _clean(ni_number)
    if not _NI_RE.match(clean):
        return False

    prefix = clean[:2]
    if prefix[0] in _NI_BAD_FIRST_LETTERS:
        return False
    if prefix[1] == "O":
        return False
    if prefix in _NI_INVALID_PREFIXES:
        return False
    return True


def validate_tax_code(tax_code: Optional[str]) -> bool:
    """Tax code: 1257L, K497, BR, 0T, S1257L, C1257L, 1257LX etc."""
    clean = _clean(tax_code)
    if not clean:
        return False
    if clean in _SPECIAL_TAX_CODES:
        return True
    return bool(
        _EMERGENCY_TAX_RE.match(clean)
        or _STANDARD_TAX_RE.match(clean)
        or _K_TAX_RE.match(clean)
        or _REGIONAL_TAX_RE.match(clean)
    )


def validate_postcode(postcode: Optional[str]) -> bool:
    """Postcode: outward + inward code (ex.: SW1A 1AA)."""
    return bool(_POSTCODE_RE.match(_clean(postcode)))
