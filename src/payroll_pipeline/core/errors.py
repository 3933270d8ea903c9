"""
Payroll Pipeline — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do pipeline de folha.
Erros são artefatos de domínio e fazem parte do contrato operacional,
devendo ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Nenhuma categoria derruba o processo hospedeiro: tudo é recuperável
devolvendo o controle ao usuário.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PayrollErrorPayload:
    """
    Payload canônico de erro do pipeline de folha.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador
    - decision_required: indica se a run está parada aguardando decisão humana
      (override, remediação ou confirmação).
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    decision_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Qualidade de dados
VALIDATION_ISSUE = "VALIDATION_ISSUE"

# Transições
INVALID_TRANSITION = "INVALID_TRANSITION"
STEP_WORK_IN_FLIGHT = "STEP_WORK_IN_FLIGHT"
RUN_DISCARDED = "RUN_DISCARDED"

# Artefatos
REPORT_NOT_AVAILABLE = "REPORT_NOT_AVAILABLE"

# Execução de Steps
STEP_TIMEOUT = "STEP_TIMEOUT"
STEP_EXECUTION_ERROR = "STEP_EXECUTION_ERROR"

# Catálogo
CATALOGUE_CONFIGURATION_ERROR = "CATALOGUE_CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def validation_issue(
    *,
    step: str,
    flag_ids: List[str],
    target_page: Optional[str] = None,
    hint: str = "Revise os itens sinalizados, corrija os dados na página indicada ou aceite via override.",
) -> PayrollErrorPayload:
    return PayrollErrorPayload(
        type=VALIDATION_ISSUE,
        message=f"{len(flag_ids)} item(s) exigem revisão antes de continuar",
        details={
            "step": step,
            "flag_ids": flag_ids,
            "target_page": target_page,
        },
        hint=hint,
        decision_required=True,
    )


def invalid_transition(
    *,
    action: str,
    reason: str,
    step: Optional[str] = None,
    status: Optional[str] = None,
    is_paused: Optional[bool] = None,
    hint: str = "A ação não é válida no estado atual da run; nenhuma alteração foi aplicada.",
) -> PayrollErrorPayload:
    return PayrollErrorPayload(
        type=INVALID_TRANSITION,
        message=reason,
        details={
            "action": action,
            "step": step,
            "status": status,
            "is_paused": is_paused,
        },
        hint=hint,
        decision_required=False,
    )


def step_work_in_flight(
    *,
    action: str,
    step: Optional[str] = None,
    hint: str = "Aguarde a conclusão do Step em andamento antes de agir.",
) -> PayrollErrorPayload:
    return PayrollErrorPayload(
        type=STEP_WORK_IN_FLIGHT,
        message="Trabalho assíncrono do Step ainda em andamento",
        details={"action": action, "step": step},
        hint=hint,
        decision_required=False,
    )


def run_discarded(
    *,
    action: str,
    run_id: str,
    hint: str = "A run foi descartada ao fechar o pipeline. Inicie uma nova run.",
) -> PayrollErrorPayload:
    return PayrollErrorPayload(
        type=RUN_DISCARDED,
        message="Run descartada não aceita novas ações",
        details={"action": action, "run_id": run_id},
        hint=hint,
        decision_required=False,
    )


def report_not_available(
    *,
    step: str,
    status: Optional[str] = None,
    downloadable: Optional[bool] = None,
    hint: str = "Relatórios só ficam disponíveis para Steps baixáveis já concluídos.",
) -> PayrollErrorPayload:
    return PayrollErrorPayload(
        type=REPORT_NOT_AVAILABLE,
        message="Relatório indisponível para este Step",
        details={"step": step, "status": status, "downloadable": downloadable},
        hint=hint,
        decision_required=False,
    )


def step_timeout(
    *,
    step: str,
    timeout_seconds: float,
    hint: str = "O Step excedeu o tempo limite. Verifique os serviços externos e faça override ou remediação.",
) -> PayrollErrorPayload:
    return PayrollErrorPayload(
        type=STEP_TIMEOUT,
        message="Tempo limite excedido durante o processamento do Step",
        details={"step": step, "timeout_seconds": timeout_seconds},
        hint=hint,
        decision_required=True,
    )


def step_execution_error(
    *,
    step: str,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "O serviço externo do Step falhou. Nenhum retry é aplicado automaticamente.",
) -> PayrollErrorPayload:
    return PayrollErrorPayload(
        type=STEP_EXECUTION_ERROR,
        message="Falha inesperada durante o processamento do Step",
        details={"step": step, "exc_type": exc_type, "exc_message": exc_message},
        hint=hint,
        decision_required=True,
    )


def catalogue_configuration_error(
    *,
    message: str = "Catálogo de Steps inválido",
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Revise a seção pipeline.steps da configuração.",
) -> PayrollErrorPayload:
    return PayrollErrorPayload(
        type=CATALOGUE_CONFIGURATION_ERROR,
        message=message,
        details=details or {},
        hint=hint,
        decision_required=False,
    )
