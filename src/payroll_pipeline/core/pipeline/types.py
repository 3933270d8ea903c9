# src/payroll_pipeline/core/pipeline/types.py
"""
Tipos canônicos do pipeline de folha de pagamento.

Este módulo define as estruturas e enums fundamentais que padronizam
a comunicação entre Registry, Engine, Gate e camadas de apresentação.

Os tipos aqui definidos representam:
    - estados de um Step dentro de uma run (pending → in_progress → done | flagged)
    - definição estática e imutável de cada Step do catálogo
    - estado mutável de cada Step durante uma run
    - flags de validação (problemas de qualidade de dados)
    - a run completa e sua projeção somente-leitura (snapshot)

Princípios fundamentais:
    - Tipos são estáveis e serializáveis
    - Definições e flags são imutáveis (frozen)
    - O progresso geral nunca é armazenado: é sempre derivado dos status

Invariantes:
    - No máximo um StepState está `in_progress` ou `flagged`
    - Todo Step anterior ao índice corrente está `done`
    - Um StepState com flags está `flagged` (ou `done` com override explícito)

Limites explícitos:
    - Não executa Steps
    - Não decide transições (responsabilidade do Engine e do Gate)
    - Não contém cálculo monetário
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .progress import compute_progress


class StepStatus(str, Enum):
    """
    Estados possíveis de um Step dentro de uma run.

    Diferente de um status final, aqui os estados intermediários fazem
    parte do contrato: a UI renderiza `in_progress` enquanto o trabalho
    assíncrono do Step está em voo.

    Estados definidos:
        - PENDING: ainda não iniciado
        - IN_PROGRESS: trabalho assíncrono em andamento
        - DONE: concluído (limpo ou por override)
        - FLAGGED: concluído com problemas que exigem decisão humana
    """
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    FLAGGED = "flagged"


class Severity(str, Enum):
    """Severidade de uma flag de validação."""
    WARNING = "warning"
    INFO = "info"


class TargetPage(str, Enum):
    """Páginas do dashboard para onde uma remediação pode navegar."""
    EMPLOYEES = "employees"
    TIMESHEETS = "timesheets"
    PAYROLL = "payroll"
    SETTINGS = "settings"
    DASHBOARD = "dashboard"


@dataclass(frozen=True)
class ValidationFlag:
    """
    Problema de qualidade de dados atribuível a um colaborador.

    Flags são anexadas pelo ValidationFlagger e nunca são alteradas
    depois disso. Um override reclassifica o Step dono da flag, não
    o conteúdo da flag.

    Campos:
        - id: identificador estável da flag
        - employee_id / employee_name: colaborador afetado
        - flag_type: código curto (ex.: "missing-data", "unusual-amount")
        - description: mensagem humana
        - severity: warning | info
        - target_page: página de remediação sugerida (opcional)
    """
    id: str
    employee_id: str
    employee_name: str
    flag_type: str
    description: str
    severity: Severity = Severity.WARNING
    target_page: Optional[TargetPage] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        data["target_page"] = self.target_page.value if self.target_page else None
        return data


@dataclass(frozen=True)
class StepDefinition:
    """
    Metadados estáticos de um Step do catálogo.

    Uma definição fixa se o Step é checkpoint, se gera relatório
    baixável, se exige hand-off de confirmação externa e para qual
    página a remediação deve navegar.
    """
    id: str
    number: int
    name: str
    description: str
    is_checkpoint: bool = False
    downloadable: bool = False
    report_title: Optional[str] = None
    requires_confirmation: bool = False
    target_page: TargetPage = TargetPage.PAYROLL
    may_flag: bool = False


@dataclass
class StepState:
    """
    Estado mutável de um Step dentro de uma run.

    Só deve ser mutado pelo PipelineEngine e pelo CheckpointGate.
    `overridden` marca, para auditoria, que um Step `flagged` foi
    aceito manualmente; `remediated`, que ficou limpo ao ser reavaliado
    após remediação. Nos dois casos as flags continuam anexadas.
    """
    definition: StepDefinition
    status: StepStatus = StepStatus.PENDING
    flags: Tuple[ValidationFlag, ...] = ()
    overridden: bool = False
    remediated: bool = False

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def is_checkpoint(self) -> bool:
        return self.definition.is_checkpoint

    @property
    def requires_confirmation(self) -> bool:
        return self.definition.requires_confirmation

    def to_dict(self) -> Dict[str, Any]:
        d = self.definition
        return {
            "id": d.id,
            "number": d.number,
            "name": d.name,
            "description": d.description,
            "status": self.status.value,
            "is_checkpoint": d.is_checkpoint,
            "downloadable": d.downloadable,
            "report_title": d.report_title,
            "requires_confirmation": d.requires_confirmation,
            "target_page": d.target_page.value,
            "overridden": self.overridden,
            "remediated": self.remediated,
            "flags": [f.to_dict() for f in self.flags],
        }


@dataclass
class PipelineRun:
    """
    Estado explícito e único de uma run de processamento de folha.

    Este objeto substitui estado de view espalhado: toda a UI é uma
    projeção pura dele (ver `snapshot()`).

    Campos:
        - run_id: identificador da run (vive apenas na sessão)
        - steps: lista ordenada de StepState
        - current_step_index: índice do Step corrente
        - is_started / is_paused / is_complete: flags de ciclo de vida
        - is_discarded: a view foi fechada; a run não aceita mais ações
        - confirmation_requested: hand-off de aprovação já enviado

    `overall_progress` é uma propriedade derivada, nunca armazenada.
    """
    run_id: str
    steps: List[StepState]
    current_step_index: int = 0
    is_started: bool = False
    is_paused: bool = False
    is_complete: bool = False
    is_discarded: bool = False
    confirmation_requested: bool = False

    @property
    def overall_progress(self) -> int:
        return compute_progress([s.status for s in self.steps])

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def current_step(self) -> StepState:
        return self.steps[self.current_step_index]

    @property
    def is_last_step(self) -> bool:
        return self.current_step_index == len(self.steps) - 1

    def snapshot(self) -> "RunSnapshot":
        return RunSnapshot(
            run_id=self.run_id,
            steps=tuple(s.to_dict() for s in self.steps),
            current_step_index=self.current_step_index,
            overall_progress=self.overall_progress,
            is_started=self.is_started,
            is_paused=self.is_paused,
            is_complete=self.is_complete,
            is_discarded=self.is_discarded,
            confirmation_requested=self.confirmation_requested,
        )


@dataclass(frozen=True)
class RunSnapshot:
    """Projeção somente-leitura de uma PipelineRun para renderização."""
    run_id: str
    steps: Tuple[Dict[str, Any], ...]
    current_step_index: int
    overall_progress: int
    is_started: bool
    is_paused: bool
    is_complete: bool
    is_discarded: bool = False
    confirmation_requested: bool = False

    @property
    def current_step(self) -> Dict[str, Any]:
        return self.steps[self.current_step_index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "steps": [dict(s) for s in self.steps],
            "current_step_index": self.current_step_index,
            "overall_progress": self.overall_progress,
            "is_started": self.is_started,
            "is_paused": self.is_paused,
            "is_complete": self.is_complete,
            "is_discarded": self.is_discarded,
            "confirmation_requested": self.confirmation_requested,
        }


def check_invariants(run: PipelineRun) -> List[str]:
    """
    Retorna a lista de invariantes violadas pela run (vazia se consistente).

    Verificações:
        - no máximo um Step `in_progress` ou `flagged`
        - todo Step antes do índice corrente está `done`
        - Step com flags está `flagged` ou `done` por override/remediação
        - índice corrente dentro do intervalo do catálogo
        - `is_complete` só com todos os Steps `done`
    """
    violations: List[str] = []

    active = [s.id for s in run.steps if s.status in (StepStatus.IN_PROGRESS, StepStatus.FLAGGED)]
    if len(active) > 1:
        violations.append(f"more than one active step: {active}")

    if not 0 <= run.current_step_index < len(run.steps):
        violations.append(f"current_step_index out of range: {run.current_step_index}")

    for i, s in enumerate(run.steps[: run.current_step_index]):
        if s.status is not StepStatus.DONE:
            violations.append(f"step {i} ({s.id}) before current index is {s.status.value}")

    for s in run.steps:
        if s.flags and not (
            s.status is StepStatus.FLAGGED or (s.status is StepStatus.DONE and (s.overridden or s.remediated))
        ):
            violations.append(f"step {s.id} has flags but status {s.status.value}")

    if run.is_complete and any(s.status is not StepStatus.DONE for s in run.steps):
        violations.append("run complete with steps not done")

    return violations
