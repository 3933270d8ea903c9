# src/payroll_pipeline/core/engine/__init__.py
"""
Engine do pipeline de folha.

Componentes principais:
    - engine  → execução sequencial de Steps (uma tarefa assíncrona por Step)
    - gate    → ações humanas validadas que retomam uma run pausada
    - session → superfície de ações de uma run (o que a UI enxerga)

Invariantes:
    - Um Step ativo por vez
    - A run nunca avança sozinha a partir de um Step `flagged`
    - Nenhuma ação é aceita com trabalho em voo ou após o descarte
"""

from .engine import PipelineEngine
from .gate import CheckpointGate
from .session import PayrollPipelineSession

__all__ = ["PipelineEngine", "CheckpointGate", "PayrollPipelineSession"]
