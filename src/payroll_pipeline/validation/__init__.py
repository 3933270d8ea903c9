"""Flaggers e regras de qualidade de dados da folha."""

from .flagger import CallableFlagger, NullFlagger, RuleBasedFlagger, StaticFlagger, ValidationFlagger
from .rules import validate_ni_number, validate_postcode, validate_tax_code

__all__ = [
    "CallableFlagger",
    "NullFlagger",
    "RuleBasedFlagger",
    "StaticFlagger",
    "ValidationFlagger",
    "validate_ni_number",
    "validate_postcode",
    "validate_tax_code",
]
