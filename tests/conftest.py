# tests/conftest.py
"""
Fixtures compartilhadas para testes do pipeline de folha.

Fornecem:
- configuração resolvida determinística (sem atraso simulado)
- RunContext com identidade fixa
- fábricas de flags e de sessões com colaboradores de gravação
- workers controláveis para exercitar trabalho em voo, falhas e timeout

Invariantes:
    - Nenhuma fixture faz I/O de rede ou filesystem
    - Nenhuma fixture depende de relógio real além de `asyncio.sleep(0)`
    - Imports do core são lazy para mensagens de erro mais claras
"""

import asyncio
from datetime import datetime, timezone

import pytest


# =====================================================
# Config
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """YAML de defaults de projeto (override parcial do embarcado)."""
    return """\
engine:
  step_delay_seconds: [0.0, 0.0]
validation:
  overtime_hours_threshold: 45
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """YAML local: liga o timeout e desliga a revalidação."""
    return """\
engine:
  step_timeout_seconds: 30
gate:
  revalidate_on_return: false
"""


@pytest.fixture
def payroll_config() -> dict:
    """
    Configuração efetiva padrão com o worker simulado sem atraso.

    Mantém o catálogo padrão de 9 Steps (checkpoints nos Steps 6 e 9).
    """
    from payroll_pipeline.core.config import default_config

    cfg = default_config()
    cfg["engine"]["step_delay_seconds"] = [0.0, 0.0]
    return cfg


@pytest.fixture
def payroll_ctx(payroll_config):
    from payroll_pipeline.core.pipeline.context import RunContext

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=payroll_config,
        meta={"source": "pytest"},
    )


# =====================================================
# Flags
# =====================================================

@pytest.fixture
def make_flag():
    """Fábrica de ValidationFlag com defaults legíveis."""
    from payroll_pipeline.core.pipeline.types import TargetPage, ValidationFlag

    def _make(flag_id: str = "flag-1-emp-1", *, employee_id: str = "emp-1", target_page=TargetPage.EMPLOYEES):
        return ValidationFlag(
            id=flag_id,
            employee_id=employee_id,
            employee_name="Sarah Johnson",
            flag_type="missing-data",
            description="Tax code missing for current tax year",
            target_page=target_page,
        )

    return _make


# =====================================================
# Workers controláveis
# =====================================================

class GatedWorker:
    """Worker que só conclui o Step quando `release()` é chamado."""

    def __init__(self):
        self.started = []
        self._gate = None
        self._open = False

    async def run(self, step, run):
        self.started.append(step.id)
        if self._open:
            return
        self._gate = asyncio.Event()
        await self._gate.wait()

    def release(self, *, forever: bool = False):
        """Libera o Step em voo; `forever=True` libera também os seguintes."""
        self._open = self._open or forever
        if self._gate is not None:
            self._gate.set()


class FailingWorker:
    """Falha nos Steps listados; conclui instantaneamente nos demais."""

    def __init__(self, fail_on, exc=None):
        self.fail_on = set(fail_on)
        self.exc = exc or RuntimeError("calculation service unavailable")
        self.calls = []

    async def run(self, step, run):
        self.calls.append(step.id)
        await asyncio.sleep(0)
        if step.id in self.fail_on:
            raise self.exc


@pytest.fixture
def gated_worker():
    return GatedWorker()


@pytest.fixture
def failing_worker_cls():
    return FailingWorker


async def wait_until(predicate, turns: int = 100) -> None:
    """Cede o loop até `predicate()` ser verdadeiro (falha após `turns`)."""
    for _ in range(turns):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached while yielding to the event loop")


@pytest.fixture
def until():
    return wait_until


# =====================================================
# Sessões
# =====================================================

@pytest.fixture
def make_session(payroll_config):
    """
    Fábrica de PayrollPipelineSession com colaboradores de gravação.

    A sessão devolvida expõe os colaboradores como atributos de teste:
    `notifications`, `navigation` e `approvals`.
    """
    from payroll_pipeline.core.engine.session import PayrollPipelineSession
    from payroll_pipeline.core.pipeline.collaborators import (
        InMemoryNotificationSink,
        RecordingApprovalHub,
        RecordingNavigator,
    )

    def _make(*, config=None, **kwargs):
        sink = kwargs.pop("notifier", None) or InMemoryNotificationSink()
        navigator = kwargs.pop("navigator", None) or RecordingNavigator()
        hub = kwargs.pop("approval_hub", None) or RecordingApprovalHub()
        session = PayrollPipelineSession(
            config=config or payroll_config,
            notifier=sink,
            navigator=navigator,
            approval_hub=hub,
            **kwargs,
        )
        session.notifications = sink
        session.navigation = navigator
        session.approvals = hub
        return session

    return _make
