# src/payroll_pipeline/core/pipeline/context.py
"""
Contexto de execução de uma run do pipeline de folha.

O `RunContext` concentra o que é da sessão e não é estado de Steps:
    - identidade da run (run_id, created_at)
    - configuração efetiva e seu hash
    - log estruturado de eventos
    - warnings não fatais por Step

Princípios fundamentais:
    - Isolamento por run (cada run possui seu próprio contexto)
    - Ausência de estado global compartilhado
    - Nada é persistido: o contexto morre com a sessão

Invariantes:
    - Logs sempre incluem `run_id` e `step_id`
    - Warnings são agrupados por `step_id`
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass
class RunContext:
    """
    Contexto de execução compartilhado por Engine, Gate e Session.

    Campos canônicos:
    - run_id: identificador único da run
    - created_at: timestamp UTC de criação
    - config: configuração efetiva (defaults + local deep-merge)
    - config_hash: identidade estrutural da config (opcional)
    - meta: metadados livres (ex.: usuário, período de folha)
    - events: log estruturado de eventos
    - warnings: warnings por step_id
    """
    run_id: str
    created_at: datetime
    config: Dict[str, Any]
    config_hash: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    # -----------------------------
    # Config helpers
    # -----------------------------
    def section(self, name: str) -> Dict[str, Any]:
        return (self.config or {}).get(name, {}) or {}

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, step_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "step_id": step_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)
        logger.log(_LEVELS.get(level, logging.INFO), "[%s] %s: %s", self.run_id, step_id, message)

    def add_warning(self, *, step_id: str, message: str) -> None:
        if step_id not in self.warnings:
            self.warnings[step_id] = []
        self.warnings[step_id].append(message)
