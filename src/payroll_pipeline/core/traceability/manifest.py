# src/payroll_pipeline/core/traceability/manifest.py
"""
Run Manifest v1 — trilha de auditoria de uma run de folha.

O Manifest consolida, de forma determinística e auditável:
    - metadados da run (run_id, started_at, versão)
    - hash da configuração efetiva
    - estado incremental de cada Step (status, flags, override)
    - Event Log ordenado de transições explícitas

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - A ordem do Event Log reflete a ordem real das transições
    - O Manifest é serializável (to_dict / from_dict)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - O Manifest vive apenas em memória, junto com a sessão; não existe
      persistência entre sessões
    - Flags sobrescritas por override permanecem registradas

Tipos de evento usados pelo Engine e pelo Gate:
    run.started, step.started, step.done, step.flagged, step.overridden,
    step.revalidated, run.paused, run.resumed, run.completed, run.abandoned,
    remediation.requested, confirmation.requested, approval.resumed,
    report.downloaded, report.viewed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from payroll_pipeline.core.pipeline.types import StepState


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Normaliza um timestamp para timezone-aware em UTC (naive é assumido UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunManifest:
    """
    Registro de auditoria de uma run do pipeline.

    Campos principais:
        - run: metadados da run (run_id, started_at, version)
        - inputs: hash da configuração efetiva
        - steps: estado incremental de cada Step, indexado por step_id
        - events: Event Log ordenado
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    steps: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Cópia serializável e independente do estado interno."""
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "steps": {k: dict(v) for k, v in self.steps.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            steps={k: dict(v) for k, v in (data.get("steps", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )

    def event_types(self) -> List[str]:
        return [e["event_type"] for e in self.events]


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    version: str,
    config_hash: Optional[str],
) -> RunManifest:
    """
    Cria o Manifest inicial de uma run.

    Esta função não emite eventos: o Event Log inicia vazio e só é
    preenchido por chamadas explícitas a `add_event` e `record_step`.
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "version": version,
        },
        inputs={"config_hash": config_hash},
        steps={},
        events=[],
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: Optional[datetime] = None,
    step_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Adiciona exatamente um evento ao Event Log, na ordem de chamada."""
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts or _now())}
    if step_id is not None:
        ev["step_id"] = step_id
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def record_step(
    manifest: RunManifest,
    step: StepState,
    *,
    event_type: str,
    ts: Optional[datetime] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Atualiza o estado do Step no Manifest e registra o evento correspondente.

    `started_at` é gravado na primeira vez que o Step entra em
    `in_progress`; `finished_at` sempre que ele atinge `done` ou `flagged`.
    """
    ts = _ensure_tzaware_utc(ts or _now())
    entry = manifest.steps.setdefault(step.id, {"number": step.definition.number, "name": step.name})

    entry["status"] = step.status.value
    entry["overridden"] = step.overridden
    entry["remediated"] = step.remediated
    entry["flags"] = [f.to_dict() for f in step.flags]

    if event_type == "step.started":
        entry.setdefault("started_at", _iso(ts))
    elif event_type in {"step.done", "step.flagged", "step.overridden", "step.revalidated"}:
        entry["finished_at"] = _iso(ts)

    add_event(manifest, event_type=event_type, ts=ts, step_id=step.id, payload=payload)
