# src/payroll_pipeline/core/engine/gate.py
"""
CheckpointGate — ações humanas que destravam o Engine.

O Gate é o único componente autorizado a retomar uma run pausada.
Cada ação valida as pré-condições contra o estado atual ANTES de
mutar qualquer coisa; se não forem atendidas, levanta InvalidTransition
(com payload estruturado) e a run permanece intacta.

Ações:
    - continue_processing      → pausa de checkpoint (Step `done`)
    - override_and_continue    → Step `flagged`; aceita as flags
    - request_remediation      → sinaliza navegação; não muta a run
    - return_from_remediation  → reavalia o Step `flagged` (política configurável)
    - request_confirmation     → hand-off terminal para o hub de aprovação
    - resume_after_approval    → reentrada do fluxo externo de aprovação

Regras globais:
    - run descartada → RunDiscarded
    - trabalho assíncrono em voo → StepWorkInFlight (nunca enfileirado)
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Union

from payroll_pipeline.core.errors import invalid_transition, step_work_in_flight
from payroll_pipeline.core.exceptions import InvalidTransition, StepWorkInFlight
from payroll_pipeline.core.pipeline.collaborators import ApprovalHub, Navigator, notify_safely
from payroll_pipeline.core.pipeline.types import RunSnapshot, StepStatus, TargetPage
from payroll_pipeline.core.traceability.manifest import add_event, record_step

from .engine import PipelineEngine

logger = logging.getLogger(__name__)


class CheckpointGate:
    """Ações de resolução validadas sobre uma PipelineEngine."""

    def __init__(
        self,
        engine: PipelineEngine,
        *,
        navigator: Optional[Navigator] = None,
        approval_hub: Optional[ApprovalHub] = None,
        revalidate_on_return: Optional[bool] = None,
    ):
        self.engine = engine
        self.navigator = navigator
        self.approval_hub = approval_hub
        if revalidate_on_return is None:
            revalidate_on_return = bool(engine.ctx.section("gate").get("revalidate_on_return", True))
        self.revalidate_on_return = revalidate_on_return
        self.remediation_pending = False

    @property
    def run(self):
        return self.engine.run

    # ------------------------------------------------------------------
    # Pré-condições
    # ------------------------------------------------------------------
    def _guard(self, action: str) -> None:
        self.engine._ensure_not_discarded(action)
        if self.engine.busy:
            raise StepWorkInFlight.from_payload(
                step_work_in_flight(action=action, step=self.run.current_step.id)
            )

    def _reject(self, action: str, reason: str) -> InvalidTransition:
        step = self.run.current_step
        payload = invalid_transition(
            action=action,
            reason=reason,
            step=step.id,
            status=step.status.value,
            is_paused=self.run.is_paused,
        )
        self.engine.ctx.log(step_id=step.id, level="warning", message="action rejected", action=action, reason=reason)
        return InvalidTransition.from_payload(payload)

    def allowed_actions(self) -> Dict[str, bool]:
        """Mapa ação → habilitada, para desabilitar controles na UI."""
        r = self.run
        step = r.current_step
        idle = not (r.is_discarded or self.engine.busy)
        done_pause = idle and r.is_paused and step.status is StepStatus.DONE and not r.is_complete
        return {
            "start": idle and not r.is_started,
            "continue_processing": done_pause and not step.requires_confirmation,
            "override_and_continue": idle and step.status is StepStatus.FLAGGED,
            "request_remediation": idle and r.is_started and not r.is_complete and step.definition.target_page is not None,
            "return_from_remediation": idle and step.status is StepStatus.FLAGGED and self.remediation_pending,
            "request_confirmation": done_pause and step.requires_confirmation and not r.confirmation_requested,
            "resume_after_approval": done_pause and r.confirmation_requested,
        }

    # ------------------------------------------------------------------
    # Ações
    # ------------------------------------------------------------------
    async def continue_processing(self) -> RunSnapshot:
        action = "continue_processing"
        self._guard(action)
        step = self.run.current_step
        if not self.run.is_paused:
            raise self._reject(action, "A run não está pausada")
        if self.run.is_complete:
            raise self._reject(action, "Run já concluída")
        if step.status is not StepStatus.DONE:
            raise self._reject(action, "Pausa atual não é de checkpoint (Step não concluído)")
        if step.requires_confirmation:
            raise self._reject(action, "Este Step exige confirmação externa, não continuação")

        self.run.is_paused = False
        self._event("run.resumed", step.id, {"action": action})
        self.engine.advance()
        return await self.engine.process_current_step()

    async def override_and_continue(self) -> RunSnapshot:
        action = "override_and_continue"
        self._guard(action)
        step = self.run.current_step
        if step.status is not StepStatus.FLAGGED:
            raise self._reject(action, "Override só é válido para Step sinalizado")

        # flags permanecem anexadas para auditoria
        step.status = StepStatus.DONE
        step.overridden = True
        self.remediation_pending = False
        self.run.is_paused = False
        self.engine.ctx.log(step_id=step.id, level="info", message="flags overridden", flags=len(step.flags))
        if self.engine.manifest is not None:
            record_step(
                self.engine.manifest,
                step,
                event_type="step.overridden",
                payload={"flag_ids": [f.id for f in step.flags]},
            )
        notify_safely(
            self.engine.notifier,
            "Flags Confirmed",
            "Processing will continue with your confirmation.",
            log=logger,
        )

        if step.requires_confirmation:
            # Step de hand-off: aceitar as flags não dispensa a confirmação
            self.engine.resolve_done(step)
            self.engine.verify()
            return self.engine.snapshot()

        self._event("run.resumed", step.id, {"action": action})
        self.engine.advance()
        return await self.engine.process_current_step()

    def request_remediation(self, target_page: Union[TargetPage, str, None] = None) -> TargetPage:
        """
        Sinaliza ao navegador a página de remediação. Não muta a run.

        Sem `target_page` explícito, usa a página da primeira flag do
        Step corrente ou, na falta dela, a página do próprio Step.
        """
        action = "request_remediation"
        self._guard(action)
        step = self.run.current_step
        if not self.run.is_started or self.run.is_complete:
            raise self._reject(action, "Remediação só é válida durante uma run em andamento")

        if target_page is None:
            flagged_pages = [f.target_page for f in step.flags if f.target_page is not None]
            page = flagged_pages[0] if flagged_pages else step.definition.target_page
        else:
            try:
                page = TargetPage(target_page)
            except ValueError:
                raise self._reject(action, f"Página de remediação desconhecida: {target_page}") from None

        if page is None:
            raise self._reject(action, "Step corrente não possui página de remediação")

        if step.status is StepStatus.FLAGGED:
            self.remediation_pending = True
        self._event("remediation.requested", step.id, {"target_page": page.value})
        self.engine.ctx.log(step_id=step.id, level="info", message="remediation requested", target_page=page.value)
        if self.navigator is not None:
            self.navigator.navigate(page)
        return page

    async def return_from_remediation(self) -> RunSnapshot:
        """
        Retorno do usuário após remediação.

        Com `revalidate_on_return`, o flagger é reexecutado: sem problemas
        o Step segue como `done` (pausando se for checkpoint); com
        problemas continua `flagged` e o override segue disponível.
        Sem a política, nada muda e o usuário decide via override.
        """
        action = "return_from_remediation"
        self._guard(action)
        step = self.run.current_step
        if step.status is not StepStatus.FLAGGED:
            raise self._reject(action, "Não há Step sinalizado aguardando remediação")

        self.remediation_pending = False
        if not self.revalidate_on_return:
            return self.engine.snapshot()

        resolved = await self.engine.revalidate_current()
        if not resolved or self.run.is_paused:
            return self.engine.snapshot()

        self._event("run.resumed", step.id, {"action": action})
        self.engine.advance()
        return await self.engine.process_current_step()

    def request_confirmation(self) -> RunSnapshot:
        """
        Hand-off terminal para o hub de aprovação externo.

        A run não retoma sozinha; a retomada (se houver) vem do fluxo de
        aprovação via `resume_after_approval`.
        """
        action = "request_confirmation"
        self._guard(action)
        step = self.run.current_step
        if not step.requires_confirmation:
            raise self._reject(action, "Step corrente não exige confirmação")
        if step.status is not StepStatus.DONE or not self.run.is_paused:
            raise self._reject(action, "Confirmação só após o Step concluído e pausado")
        if self.run.confirmation_requested:
            raise self._reject(action, "Confirmação já solicitada")

        snapshot = self.engine.snapshot()
        if self.approval_hub is not None:
            self.approval_hub.request_approval(snapshot)
        self.run.confirmation_requested = True
        self._event("confirmation.requested", step.id, None)
        self.engine.ctx.log(step_id=step.id, level="info", message="approval requested")
        return self.engine.snapshot()

    async def resume_after_approval(self) -> RunSnapshot:
        action = "resume_after_approval"
        self._guard(action)
        step = self.run.current_step
        if not self.run.confirmation_requested:
            raise self._reject(action, "Nenhuma confirmação pendente")
        if step.status is not StepStatus.DONE or not self.run.is_paused:
            raise self._reject(action, "Run não está aguardando aprovação")

        self.run.confirmation_requested = False
        self.run.is_paused = False
        self._event("approval.resumed", step.id, None)
        self.engine.advance()
        return await self.engine.process_current_step()

    # ------------------------------------------------------------------
    def _event(self, event_type: str, step_id: str, payload: Optional[dict]) -> None:
        if self.engine.manifest is not None:
            add_event(self.engine.manifest, event_type=event_type, step_id=step_id, payload=payload)
