# tests/core/pipeline/test_progress.py
"""Testes do agregador de progresso (derivado, arredondamento half-up)."""

import pytest

from payroll_pipeline.core.pipeline.progress import compute_progress
from payroll_pipeline.core.pipeline.registry import default_registry
from payroll_pipeline.core.pipeline.types import PipelineRun, StepStatus

D, P, F, I = StepStatus.DONE, StepStatus.PENDING, StepStatus.FLAGGED, StepStatus.IN_PROGRESS


@pytest.mark.parametrize(
    "statuses, expected",
    [
        ([], 0),
        ([P] * 9, 0),
        ([D] + [P] * 8, 11),
        ([D] * 5 + [P] * 4, 56),
        ([D] * 6 + [P] * 3, 67),
        ([D] * 9, 100),
        ([D, P, P, P, P, P, P, P], 13),  # 12.5 → 13 (half-up)
        ([D, D, D, P, P, P, P, P], 38),  # 37.5 → 38
        ([F] + [P] * 8, 0),
        ([D, I, P], 33),
    ],
)
def test_compute_progress(statuses, expected):
    assert compute_progress(statuses) == expected


def test_flagged_and_in_progress_do_not_count():
    assert compute_progress([D, F, I, P]) == 25


def test_run_progress_is_recomputed_on_every_read():
    run = PipelineRun(run_id="r", steps=default_registry().new_states())
    assert run.overall_progress == 0
    run.steps[0].status = StepStatus.DONE
    assert run.overall_progress == 11
    run.steps[1].status = StepStatus.DONE
    assert run.overall_progress == 22
    assert run.snapshot().overall_progress == 22
