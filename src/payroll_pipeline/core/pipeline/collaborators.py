# src/payroll_pipeline/core/pipeline/collaborators.py
"""
Contratos dos colaboradores externos do pipeline de folha.

O núcleo do pipeline não calcula impostos, não gera PDFs, não transmite
arquivos BACS e não navega telas. Tudo isso é delegado a colaboradores
injetados, definidos aqui como Protocols (duck typing, sem herança
obrigatória), cada um com uma implementação padrão simples:

    - StepWorker             → trabalho assíncrono (cálculo/validação) de um Step
    - Navigator              → navegação para uma TargetPage de remediação
    - NotificationSink       → notificações fire-and-forget (toasts)
    - ApprovalHub            → hand-off para o fluxo externo de aprovação
    - ReportArtifactProvider → conteúdo de relatório por Step concluído

As implementações padrão apenas registram as chamadas, o que as torna
úteis tanto em testes quanto em demos.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

from .types import PipelineRun, RunSnapshot, StepState, TargetPage


@dataclass(frozen=True)
class ReportArtifact:
    """Conteúdo baixável/visualizável produzido por um Step concluído."""
    step_id: str
    title: str
    filename: str
    content: Union[str, bytes]
    media_type: str = "text/markdown"


@runtime_checkable
class StepWorker(Protocol):
    """Executa o trabalho externo (temporizado) de um Step."""

    async def run(self, step: StepState, run: PipelineRun) -> None:
        ...


@runtime_checkable
class Navigator(Protocol):
    def navigate(self, target_page: TargetPage) -> None:
        ...


@runtime_checkable
class NotificationSink(Protocol):
    def notify(self, title: str, description: str) -> None:
        ...


@runtime_checkable
class ApprovalHub(Protocol):
    def request_approval(self, snapshot: RunSnapshot) -> None:
        ...


@runtime_checkable
class ReportArtifactProvider(Protocol):
    def render(self, step: StepState, run: PipelineRun) -> ReportArtifact:
        ...


# ---------------------------------------------------------------------------
# Implementações padrão
# ---------------------------------------------------------------------------

class SimulatedStepWorker:
    """
    Worker padrão: aguarda um atraso dentro da faixa configurada.

    Simula o "processing delay" do dashboard como uma única
    corrotina por Step, cancelável pelo Engine.
    """

    def __init__(self, delay_range: Sequence[float] = (1.0, 2.0), *, seed: Optional[int] = None):
        low, high = (float(delay_range[0]), float(delay_range[-1])) if delay_range else (0.0, 0.0)
        if low < 0 or high < low:
            raise ValueError(f"invalid delay range: {delay_range!r}")
        self.delay_range: Tuple[float, float] = (low, high)
        self._rng = random.Random(seed)

    async def run(self, step: StepState, run: PipelineRun) -> None:
        low, high = self.delay_range
        delay = low if high == low else self._rng.uniform(low, high)
        await asyncio.sleep(delay)


class RecordingNavigator:
    def __init__(self) -> None:
        self.history: List[TargetPage] = []

    def navigate(self, target_page: TargetPage) -> None:
        self.history.append(target_page)


@dataclass
class InMemoryNotificationSink:
    notifications: List[Dict[str, str]] = field(default_factory=list)

    def notify(self, title: str, description: str) -> None:
        self.notifications.append({"title": title, "description": description})

    def titles(self) -> List[str]:
        return [n["title"] for n in self.notifications]


class RecordingApprovalHub:
    def __init__(self) -> None:
        self.requests: List[RunSnapshot] = []

    def request_approval(self, snapshot: RunSnapshot) -> None:
        self.requests.append(snapshot)


def notify_safely(sink: Optional[NotificationSink], title: str, description: str, *, log: Any = None) -> None:
    """Entrega fire-and-forget: falhas do sink nunca afetam a run."""
    if sink is None:
        return
    try:
        sink.notify(title, description)
    except Exception as exc:  # noqa: BLE001
        if log is not None:
            log.warning("notification sink failed: %s", exc)
