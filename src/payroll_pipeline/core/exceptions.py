"""
Payroll Pipeline — Canonical Exceptions (v1)

Este módulo define exceções tipadas internas do pipeline de folha.

Objetivo:
- Rejeitar ações inválidas sem mutar estado (InvalidTransition)
- Facilitar o mapeamento determinístico para PayrollErrorPayload
- Evitar ValueError/RuntimeError genéricos nos guardrails do Gate

Regras:
- Exceções carregam apenas dados estruturados (serializáveis).
- Problemas de qualidade de dados NÃO são exceções: viram flags.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import (
    CATALOGUE_CONFIGURATION_ERROR,
    INVALID_TRANSITION,
    REPORT_NOT_AVAILABLE,
    RUN_DISCARDED,
    STEP_WORK_IN_FLIGHT,
    PayrollErrorPayload,
)


@dataclass(frozen=True)
class PayrollException(Exception):
    """Base class para exceções internas do pipeline.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None
    decision_required: bool = False

    error_type = "PAYROLL_ERROR"

    def __str__(self) -> str:  # pragma: no cover
        return self.message

    @classmethod
    def from_payload(cls, payload: PayrollErrorPayload) -> "PayrollException":
        return cls(
            message=payload.message,
            details=dict(payload.details),
            hint=payload.hint,
            decision_required=payload.decision_required,
        )

    def to_payload(self) -> PayrollErrorPayload:
        return PayrollErrorPayload(
            type=self.error_type,
            message=self.message,
            details=dict(self.details),
            hint=self.hint,
            decision_required=self.decision_required,
        )


# ---------------------------------------------------------------------------
# Transições
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InvalidTransition(PayrollException):
    """Ação de resolução invocada fora de suas pré-condições."""

    error_type = INVALID_TRANSITION


@dataclass(frozen=True)
class StepWorkInFlight(InvalidTransition):
    """Ação recebida enquanto o trabalho assíncrono do Step está em voo."""

    error_type = STEP_WORK_IN_FLIGHT


@dataclass(frozen=True)
class RunDiscarded(InvalidTransition):
    """Ação recebida depois que a run foi descartada (view fechada)."""

    error_type = RUN_DISCARDED


# ---------------------------------------------------------------------------
# Artefatos / Catálogo
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReportNotAvailable(PayrollException):
    """Relatório pedido para Step não baixável ou ainda não concluído."""

    error_type = REPORT_NOT_AVAILABLE


@dataclass(frozen=True)
class CatalogueConfigurationError(PayrollException):
    """Catálogo de Steps inválido ou inconsistente."""

    error_type = CATALOGUE_CONFIGURATION_ERROR
