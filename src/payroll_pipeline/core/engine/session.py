# src/payroll_pipeline/core/engine/session.py
"""
PayrollPipelineSession — superfície de ações de uma run de folha.

A sessão é o que a UI do dashboard enxerga: ela monta a run a partir
do catálogo, liga Engine, Gate e colaboradores, e expõe:

    - snapshot() / available_actions()   → projeção pura para renderização
    - start()                            → inicia o processamento
    - ações do Gate                      → continue, override, remediação,
                                           confirmação, retomada pós-aprovação
    - download_report() / view_report()  → artefatos de Steps concluídos
    - close()                            → descarta a run (sem persistência)

Uma sessão == uma run. Fechar e reabrir o pipeline cria uma sessão
nova, sempre a partir do Step 0 `pending`.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from payroll_pipeline import __version__
from payroll_pipeline.core.config import compute_config_hash, default_config
from payroll_pipeline.core.errors import report_not_available
from payroll_pipeline.core.exceptions import ReportNotAvailable
from payroll_pipeline.core.pipeline.collaborators import (
    ApprovalHub,
    Navigator,
    NotificationSink,
    ReportArtifact,
    ReportArtifactProvider,
    StepWorker,
    notify_safely,
)
from payroll_pipeline.core.pipeline.context import RunContext
from payroll_pipeline.core.pipeline.registry import StepRegistry
from payroll_pipeline.core.pipeline.types import PipelineRun, RunSnapshot, StepStatus, TargetPage
from payroll_pipeline.core.traceability.manifest import RunManifest, add_event, create_manifest
from payroll_pipeline.validation.flagger import ValidationFlagger

from .engine import PipelineEngine
from .gate import CheckpointGate

logger = logging.getLogger(__name__)


class PayrollPipelineSession:
    """Liga catálogo, Engine, Gate e colaboradores numa run isolada."""

    def __init__(
        self,
        *,
        config: Optional[Mapping[str, Any]] = None,
        registry: Optional[StepRegistry] = None,
        flagger: Optional[ValidationFlagger] = None,
        worker: Optional[StepWorker] = None,
        navigator: Optional[Navigator] = None,
        notifier: Optional[NotificationSink] = None,
        approval_hub: Optional[ApprovalHub] = None,
        report_provider: Optional[ReportArtifactProvider] = None,
        run_id: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ):
        cfg: Dict[str, Any] = dict(config) if config is not None else default_config()
        self.registry = registry or StepRegistry.from_config(cfg)

        run_id = run_id or uuid.uuid4().hex
        created_at = datetime.now(timezone.utc)
        config_hash = compute_config_hash(cfg)

        self.ctx = RunContext(run_id=run_id, created_at=created_at, config=cfg, config_hash=config_hash, meta=dict(meta or {}))
        self.manifest: RunManifest = create_manifest(
            run_id=run_id,
            started_at=created_at,
            version=__version__,
            config_hash=config_hash,
        )
        self.run = PipelineRun(run_id=run_id, steps=self.registry.new_states())

        self.notifier = notifier
        if report_provider is None:
            from payroll_pipeline.report import provider_from_config

            report_provider = provider_from_config(cfg)
        self.report_provider = report_provider

        self.engine = PipelineEngine(
            run=self.run,
            ctx=self.ctx,
            flagger=flagger,
            worker=worker,
            notifier=notifier,
            manifest=self.manifest,
        )
        self.gate = CheckpointGate(self.engine, navigator=navigator, approval_hub=approval_hub)

    # ------------------------------------------------------------------
    # Projeção
    # ------------------------------------------------------------------
    @property
    def run_id(self) -> str:
        return self.run.run_id

    def snapshot(self) -> RunSnapshot:
        return self.engine.snapshot()

    def available_actions(self) -> Dict[str, bool]:
        """Ações habilitadas agora (controles desabilitados na UI são `False`)."""
        actions = self.gate.allowed_actions()
        idle = not (self.run.is_discarded or self.engine.busy)
        actions["download_report"] = idle and self._report_ready(self.run.current_step.id)
        actions["close"] = not self.run.is_discarded
        return actions

    def downloadable_steps(self) -> List[str]:
        """Ids dos Steps com relatório disponível agora."""
        return [s.id for s in self.run.steps if self._report_ready(s.id)]

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------
    async def start(self) -> RunSnapshot:
        return await self.engine.start()

    def close(self) -> None:
        self.engine.close()

    # ------------------------------------------------------------------
    # Ações do Gate
    # ------------------------------------------------------------------
    async def continue_processing(self) -> RunSnapshot:
        return await self.gate.continue_processing()

    async def override_and_continue(self) -> RunSnapshot:
        return await self.gate.override_and_continue()

    def request_remediation(self, target_page: Union[TargetPage, str, None] = None) -> TargetPage:
        return self.gate.request_remediation(target_page)

    async def return_from_remediation(self) -> RunSnapshot:
        return await self.gate.return_from_remediation()

    def request_confirmation(self) -> RunSnapshot:
        return self.gate.request_confirmation()

    async def resume_after_approval(self) -> RunSnapshot:
        return await self.gate.resume_after_approval()

    # ------------------------------------------------------------------
    # Relatórios
    # ------------------------------------------------------------------
    def download_report(self, step_id: Optional[str] = None) -> ReportArtifact:
        """Artefato do Step (padrão: corrente) para download."""
        artifact = self._artifact(step_id)
        notify_safely(
            self.notifier,
            "Downloading Report",
            f"{artifact.title} is being downloaded.",
            log=logger,
        )
        add_event(self.manifest, event_type="report.downloaded", step_id=artifact.step_id, payload={"filename": artifact.filename})
        return artifact

    def view_report(self, step_id: Optional[str] = None) -> ReportArtifact:
        """Artefato do Step (padrão: corrente) para visualização."""
        artifact = self._artifact(step_id)
        notify_safely(
            self.notifier,
            "Opening Report",
            f"Opening {artifact.title} in a new window.",
            log=logger,
        )
        add_event(self.manifest, event_type="report.viewed", step_id=artifact.step_id)
        return artifact

    def _report_ready(self, step_id: str) -> bool:
        step = self.run.steps[self.registry.index_of(step_id)]
        return step.definition.downloadable and step.status is StepStatus.DONE

    def _artifact(self, step_id: Optional[str]) -> ReportArtifact:
        # relatórios de Steps concluídos continuam válidos após close()
        if step_id is None:
            step = self.run.current_step
        else:
            try:
                step = self.run.steps[self.registry.index_of(step_id)]
            except KeyError:
                raise ReportNotAvailable.from_payload(report_not_available(step=step_id)) from None

        if not self._report_ready(step.id):
            raise ReportNotAvailable.from_payload(
                report_not_available(
                    step=step.id,
                    status=step.status.value,
                    downloadable=step.definition.downloadable,
                )
            )
        return self.report_provider.render(step, self.run)
