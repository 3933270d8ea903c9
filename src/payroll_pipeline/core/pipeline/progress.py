# src/payroll_pipeline/core/pipeline/progress.py
"""
Agregador de progresso da run.

O progresso geral é derivado exclusivamente dos status dos Steps:

    overall_progress = round(100 × done / total)

Não existe valor armazenado que possa divergir dos status. O
arredondamento é half-up (2.5 → 3), como no dashboard,
e não o arredondamento bancário do `round` do Python.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable


def compute_progress(statuses: Iterable[object]) -> int:
    """Percentual inteiro (0–100) de Steps concluídos."""
    # import local: types importa este módulo
    from .types import StepStatus

    items = list(statuses)
    total = len(items)
    if total == 0:
        return 0

    done = sum(1 for s in items if s == StepStatus.DONE)
    pct = (Decimal(100) * done / Decimal(total)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return max(0, min(100, int(pct)))
