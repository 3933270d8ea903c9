# src/payroll_pipeline/core/pipeline/__init__.py
"""
# Pipeline Core — Payroll Pipeline

Contratos canônicos e estruturas fundamentais de uma run de folha.

## Componentes

- **types**: `StepStatus`, `TargetPage`, `ValidationFlag`, `StepDefinition`,
  `StepState`, `PipelineRun`, `RunSnapshot`, `check_invariants`
- **progress**: `compute_progress` (progresso derivado, nunca armazenado)
- **registry**: `StepRegistry`, catálogo imutável e ordenado
- **context**: `RunContext`, log estruturado e warnings por Step
- **collaborators**: Protocols de worker, navegação, notificação,
  aprovação e relatórios, com implementações padrão

## Invariantes

- No máximo um Step `in_progress` ou `flagged`
- Todo Step antes do índice corrente está `done`
- Step com flags está `flagged` ou `done` por override
"""

from .collaborators import (
    ApprovalHub,
    InMemoryNotificationSink,
    Navigator,
    NotificationSink,
    RecordingApprovalHub,
    RecordingNavigator,
    ReportArtifact,
    ReportArtifactProvider,
    SimulatedStepWorker,
    StepWorker,
)
from .context import RunContext
from .progress import compute_progress
from .registry import DuplicateStepIdError, StepRegistry, default_registry
from .types import (
    PipelineRun,
    RunSnapshot,
    Severity,
    StepDefinition,
    StepState,
    StepStatus,
    TargetPage,
    ValidationFlag,
    check_invariants,
)

__all__ = [
    "ApprovalHub",
    "InMemoryNotificationSink",
    "Navigator",
    "NotificationSink",
    "RecordingApprovalHub",
    "RecordingNavigator",
    "ReportArtifact",
    "ReportArtifactProvider",
    "SimulatedStepWorker",
    "StepWorker",
    "RunContext",
    "compute_progress",
    "DuplicateStepIdError",
    "StepRegistry",
    "default_registry",
    "PipelineRun",
    "RunSnapshot",
    "Severity",
    "StepDefinition",
    "StepState",
    "StepStatus",
    "TargetPage",
    "ValidationFlag",
    "check_invariants",
]
