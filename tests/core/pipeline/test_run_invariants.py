# tests/core/pipeline/test_run_invariants.py
"""
Testes de `check_invariants` e do snapshot somente-leitura.

`check_invariants` é a verificação mecânica usada pelo Engine (modo
debug) e pelos testes: uma run consistente produz lista vazia.
"""

import dataclasses

import pytest

from payroll_pipeline.core.pipeline.registry import default_registry
from payroll_pipeline.core.pipeline.types import (
    PipelineRun,
    RunSnapshot,
    StepStatus,
    TargetPage,
    ValidationFlag,
    check_invariants,
)


def _run() -> PipelineRun:
    return PipelineRun(run_id="run-x", steps=default_registry().new_states())


def _flag() -> ValidationFlag:
    return ValidationFlag(
        id="f1",
        employee_id="e1",
        employee_name="James Smith",
        flag_type="unusual-amount",
        description="Bonus amount exceeds typical range",
        target_page=TargetPage.PAYROLL,
    )


def test_fresh_run_is_consistent():
    assert check_invariants(_run()) == []


def test_two_active_steps_violate():
    run = _run()
    run.steps[0].status = StepStatus.IN_PROGRESS
    run.steps[3].status = StepStatus.FLAGGED
    assert any("more than one active step" in v for v in check_invariants(run))


def test_steps_before_current_must_be_done():
    run = _run()
    run.current_step_index = 2
    run.steps[0].status = StepStatus.DONE
    violations = check_invariants(run)
    assert len(violations) == 1
    assert "timesheet_verification" in violations[0]


def test_flags_require_flagged_or_overridden():
    run = _run()
    step = run.steps[0]
    step.flags = (_flag(),)

    step.status = StepStatus.FLAGGED
    assert check_invariants(run) == []

    step.status = StepStatus.DONE
    assert check_invariants(run) != []

    step.overridden = True
    assert check_invariants(run) == []


def test_complete_requires_every_step_done():
    run = _run()
    run.is_complete = True
    assert "run complete with steps not done" in check_invariants(run)


def test_index_out_of_range_detected():
    run = _run()
    run.current_step_index = 9
    assert any("out of range" in v for v in check_invariants(run))


def test_snapshot_is_frozen_and_detached():
    run = _run()
    run.steps[0].flags = (_flag(),)
    run.steps[0].status = StepStatus.FLAGGED
    snap = run.snapshot()

    assert isinstance(snap, RunSnapshot)
    with pytest.raises(dataclasses.FrozenInstanceError):
        snap.is_paused = True

    run.steps[0].status = StepStatus.DONE
    assert snap.current_step["status"] == "flagged"
    assert snap.current_step["flags"][0]["target_page"] == "payroll"

    data = snap.to_dict()
    data["steps"][0]["status"] = "pending"
    assert snap.steps[0]["status"] == "flagged"
