# src/payroll_pipeline/core/engine/engine.py
"""
Engine de execução sequencial da run de folha.

O Engine conduz a run Step a Step, um Step ativo por vez:

    pending → in_progress → { done | flagged }

Para cada Step:
    1. marca `in_progress`
    2. aguarda o trabalho externo do Step (StepWorker) como uma única
       tarefa assíncrona, cancelável e com timeout opcional
    3. consulta o ValidationFlagger
    4. flags → `flagged` + pausa (nunca avança sozinho)
       sem flags → `done`; checkpoint → pausa; senão avança e continua

Guardrails:
- Enquanto o trabalho assíncrono está em voo, `busy` é verdadeiro e o
  Gate rejeita qualquer ação de resolução (StepWorkInFlight).
- Falha ou timeout do worker não derrubam o processo: viram uma flag
  `step-error`/`step-timeout`, e a run pausa aguardando decisão humana.
- `close()` cancela o trabalho em voo e descarta a run (AbandonedRun é
  um descarte limpo, não um erro).
- Não existe retry automático: o trabalho só é reexecutado quando o
  usuário retorna da remediação de um Step com flag de falha.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, List, Optional, Sequence

from payroll_pipeline.core.errors import (
    invalid_transition,
    run_discarded,
    step_execution_error,
    step_timeout,
    validation_issue,
)
from payroll_pipeline.core.exceptions import InvalidTransition, RunDiscarded
from payroll_pipeline.core.pipeline.collaborators import (
    NotificationSink,
    SimulatedStepWorker,
    StepWorker,
    notify_safely,
)
from payroll_pipeline.core.pipeline.context import RunContext
from payroll_pipeline.core.pipeline.types import (
    PipelineRun,
    RunSnapshot,
    Severity,
    StepState,
    StepStatus,
    ValidationFlag,
    check_invariants,
)
from payroll_pipeline.core.traceability.manifest import RunManifest, add_event, record_step
from payroll_pipeline.validation.flagger import NullFlagger, ValidationFlagger

logger = logging.getLogger(__name__)

ENGINE_STEP_ID = "engine"

# flags produzidas pelo próprio Engine quando o trabalho do Step falha
FAILURE_FLAG_TYPES = frozenset({"step-error", "step-timeout"})


class PipelineEngine:
    """Engine canônico da run de folha (execução sequencial + transições)."""

    def __init__(
        self,
        *,
        run: PipelineRun,
        ctx: RunContext,
        flagger: Optional[ValidationFlagger] = None,
        worker: Optional[StepWorker] = None,
        notifier: Optional[NotificationSink] = None,
        manifest: Optional[RunManifest] = None,
    ):
        self.run = run
        self.ctx = ctx
        self.flagger: ValidationFlagger = flagger or NullFlagger()
        self.notifier = notifier
        self.manifest = manifest

        engine_cfg = ctx.section("engine")
        self.worker: StepWorker = worker or SimulatedStepWorker(engine_cfg.get("step_delay_seconds") or (0.0, 0.0))
        timeout = engine_cfg.get("step_timeout_seconds")
        self.step_timeout: Optional[float] = float(timeout) if timeout is not None else None
        self._check_invariants = bool(engine_cfg.get("check_invariants", True))

        self._task: Optional[asyncio.Future] = None

    # ------------------------------------------------------------------
    # Estado observável
    # ------------------------------------------------------------------
    @property
    def busy(self) -> bool:
        """Há trabalho assíncrono de Step em voo."""
        return self._task is not None and not self._task.done()

    def snapshot(self) -> RunSnapshot:
        return self.run.snapshot()

    # ------------------------------------------------------------------
    # Operações
    # ------------------------------------------------------------------
    async def start(self) -> RunSnapshot:
        """Inicia no índice 0. No-op se a run já foi iniciada."""
        self._ensure_not_discarded("start")
        if self.run.is_started:
            return self.snapshot()

        self.run.is_started = True
        self.ctx.log(step_id=ENGINE_STEP_ID, level="info", message="run started", total_steps=self.run.total_steps)
        self._event("run.started", payload={"total_steps": self.run.total_steps})

        return await self.process_current_step()

    async def process_current_step(self) -> RunSnapshot:
        """
        Processa o Step corrente e segue avançando enquanto não houver pausa.

        No-op quando a run está pausada, concluída, descartada, não
        iniciada, com trabalho em voo, ou quando o Step corrente já não
        está `pending` (idempotência).
        """
        while self._can_process():
            step = self.run.current_step
            if step.status is not StepStatus.PENDING:
                break

            resolved = await self._execute(step)
            if not resolved or self.run.is_paused:
                break

            self.advance()

        return self.snapshot()

    def advance(self) -> None:
        """
        Avança linearmente para o próximo Step, ou conclui a run no último.

        Só é permitido quando o Step corrente está `done`.
        """
        self._ensure_not_discarded("advance")
        step = self.run.current_step
        if self.run.is_complete:
            raise InvalidTransition.from_payload(
                invalid_transition(action="advance", reason="Run já concluída", step=step.id)
            )
        if step.status is not StepStatus.DONE:
            raise InvalidTransition.from_payload(
                invalid_transition(
                    action="advance",
                    reason="Só é possível avançar a partir de um Step concluído",
                    step=step.id,
                    status=step.status.value,
                    is_paused=self.run.is_paused,
                )
            )

        if self.run.is_last_step:
            self.run.is_complete = True
            self.run.is_paused = False
            self.ctx.log(step_id=ENGINE_STEP_ID, level="info", message="run completed")
            self._event("run.completed", payload={"overall_progress": self.run.overall_progress})
            notify_safely(
                self.notifier,
                "Payroll Processing Complete",
                "All steps have been successfully completed.",
                log=logger,
            )
        else:
            self.run.current_step_index += 1

        self._verify()

    def close(self) -> None:
        """
        Descarta a run: cancela o trabalho em voo e bloqueia novas ações.

        Artefatos já produzidos por Steps concluídos continuam válidos
        fora da run. Chamadas repetidas são no-op.
        """
        if self.run.is_discarded:
            return

        self.run.is_discarded = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

        for step in self.run.steps:
            if step.status is StepStatus.IN_PROGRESS:
                step.status = StepStatus.PENDING

        self.ctx.log(
            step_id=ENGINE_STEP_ID,
            level="info",
            message="run abandoned",
            current_step_index=self.run.current_step_index,
        )
        self._event("run.abandoned", payload={"current_step_index": self.run.current_step_index})

    # ------------------------------------------------------------------
    # Transições usadas pelo Gate
    # ------------------------------------------------------------------
    def resolve_done(self, step: StepState) -> None:
        """Aplica o pós-`done`: pausa em checkpoint/confirmação, senão segue."""
        if step.is_checkpoint or step.requires_confirmation:
            self.run.is_paused = True
            self._event("run.paused", step_id=step.id, payload={"reason": "checkpoint"})
            if step.definition.downloadable:
                notify_safely(
                    self.notifier,
                    "Checkpoint Reached",
                    f"{step.definition.report_title} is now available for review.",
                    log=logger,
                )
            if step.requires_confirmation:
                notify_safely(
                    self.notifier,
                    "Confirmation Required",
                    "Please review and send approval request.",
                    log=logger,
                )

    def resolve_flagged(self, step: StepState, flags: Sequence[ValidationFlag]) -> None:
        step.flags = tuple(flags)
        step.status = StepStatus.FLAGGED
        step.overridden = False
        step.remediated = False
        self.run.is_paused = True

        issue = validation_issue(
            step=step.id,
            flag_ids=[f.id for f in step.flags],
            target_page=step.definition.target_page.value,
        )
        for f in step.flags:
            self.ctx.add_warning(step_id=step.id, message=f"{f.employee_name}: {f.description}")
        self.ctx.log(step_id=step.id, level="warning", message="step flagged", flags=len(step.flags))
        if self.manifest is not None:
            record_step(self.manifest, step, event_type="step.flagged", payload=issue.to_dict())
        self._event("run.paused", step_id=step.id, payload={"reason": "flagged"})
        notify_safely(
            self.notifier,
            "Data Flags Detected",
            f"{len(step.flags)} items require your review before continuing.",
            log=logger,
        )

    async def evaluate_flags(self, step: StepState) -> List[ValidationFlag]:
        """Consulta o flagger para o Step (aguarda resultados assíncronos)."""
        index = next(i for i, s in enumerate(self.run.steps) if s is step)
        result = self.flagger.flag(index, step.definition)
        if inspect.isawaitable(result):
            result = await result
        return list(result or [])

    async def revalidate_current(self) -> bool:
        """
        Reavalia o Step `flagged` corrente (retorno de remediação).

        Se o Step foi sinalizado por falha do próprio trabalho
        (`step-error`/`step-timeout`), o worker roda de novo antes do
        flagger, sob o mesmo timeout; senão só o flagger é reexecutado.

        Sem problemas → `done` e pós-`done` normal (pausa em checkpoint);
        as flags anteriores ficam anexadas e o Step é marcado `remediated`.
        Com problemas → continua `flagged` com a lista nova de flags.
        Retorna False se a run foi descartada durante a reavaliação.
        """
        step = self.run.current_step
        rerun = any(f.flag_type in FAILURE_FLAG_TYPES for f in step.flags)
        if rerun:
            self.ctx.log(step_id=step.id, level="info", message="step work re-run after remediation")
            work = self._step_work(step)
        else:
            work = self.evaluate_flags(step)

        flags = await self._await_work(step, work)
        if flags is None or self.run.is_discarded:
            return False

        if flags:
            step.flags = tuple(flags)
            self.ctx.log(step_id=step.id, level="warning", message="step still flagged", flags=len(step.flags))
            if self.manifest is not None:
                record_step(self.manifest, step, event_type="step.revalidated", payload={"clean": False})
            notify_safely(
                self.notifier,
                "Data Flags Detected",
                f"{len(step.flags)} items still require your review.",
                log=logger,
            )
        else:
            step.status = StepStatus.DONE
            step.remediated = True
            self.run.is_paused = False
            self.ctx.log(step_id=step.id, level="info", message="step clean after remediation", rerun=rerun)
            if self.manifest is not None:
                record_step(
                    self.manifest,
                    step,
                    event_type="step.revalidated",
                    payload={"clean": True, "rerun": rerun},
                )
            self.resolve_done(step)

        self._verify()
        return True

    def verify(self) -> None:
        self._verify()

    # ------------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------------
    def _can_process(self) -> bool:
        r = self.run
        return r.is_started and not (r.is_paused or r.is_complete or r.is_discarded or self.busy)

    async def _execute(self, step: StepState) -> bool:
        """Executa um Step. Retorna False se a run foi descartada no meio."""
        step.status = StepStatus.IN_PROGRESS
        self.ctx.log(step_id=step.id, level="info", message="step started")
        if self.manifest is not None:
            record_step(self.manifest, step, event_type="step.started")
        self._verify()

        try:
            flags = await self._await_work(step, self._step_work(step))
        except asyncio.CancelledError:
            step.status = StepStatus.PENDING
            raise

        if flags is None or self.run.is_discarded:
            return False

        if flags:
            self.resolve_flagged(step, flags)
        else:
            step.status = StepStatus.DONE
            self.ctx.log(step_id=step.id, level="info", message="step done")
            if self.manifest is not None:
                record_step(self.manifest, step, event_type="step.done")
            self.resolve_done(step)

        self._verify()
        return True

    async def _step_work(self, step: StepState) -> List[ValidationFlag]:
        await self.worker.run(step, self.run)
        return await self.evaluate_flags(step)

    async def _await_work(self, step: StepState, work: Awaitable[List[ValidationFlag]]) -> Optional[List[ValidationFlag]]:
        """
        Aguarda o trabalho do Step como task única (cancelável por `close()`).

        Timeout e exceções viram flags de falha; retorna None se a run
        foi descartada durante a espera.
        """
        self._task = asyncio.ensure_future(work)
        try:
            if self.step_timeout is not None:
                return await asyncio.wait_for(self._task, timeout=self.step_timeout)
            return await self._task
        except asyncio.CancelledError:
            if self.run.is_discarded:
                return None
            raise
        except asyncio.TimeoutError as exc:
            if self.step_timeout is None:
                return self._on_worker_error(step, exc)
            payload = step_timeout(step=step.id, timeout_seconds=self.step_timeout)
            self.ctx.log(step_id=step.id, level="error", message="step timed out", error=payload.to_dict())
            return [self._failure_flag(step, "step-timeout", f"Step exceeded {self.step_timeout:g}s")]
        except Exception as exc:
            return self._on_worker_error(step, exc)
        finally:
            self._task = None

    def _on_worker_error(self, step: StepState, exc: BaseException) -> List[ValidationFlag]:
        payload = step_execution_error(step=step.id, exc_type=exc.__class__.__name__, exc_message=str(exc))
        self.ctx.log(step_id=step.id, level="error", message="step failed", error=payload.to_dict())
        logger.warning("step %s failed: %s", step.id, exc)
        return [self._failure_flag(step, "step-error", str(exc) or exc.__class__.__name__)]

    def _failure_flag(self, step: StepState, flag_type: str, description: str) -> ValidationFlag:
        return ValidationFlag(
            id=f"flag-{step.definition.number}-{flag_type}",
            employee_id="",
            employee_name="",
            flag_type=flag_type,
            description=description,
            severity=Severity.WARNING,
            target_page=step.definition.target_page,
        )

    def _ensure_not_discarded(self, action: str) -> None:
        if self.run.is_discarded:
            raise RunDiscarded.from_payload(run_discarded(action=action, run_id=self.run.run_id))

    def _event(self, event_type: str, *, step_id: Optional[str] = None, payload: Optional[dict] = None) -> None:
        if self.manifest is not None:
            add_event(self.manifest, event_type=event_type, step_id=step_id, payload=payload)

    def _verify(self) -> None:
        if not self._check_invariants:
            return
        violations = check_invariants(self.run)
        if violations:
            self.ctx.log(step_id=ENGINE_STEP_ID, level="error", message="invariant violation", violations=violations)
            logger.error("run %s violates invariants: %s", self.run.run_id, violations)
