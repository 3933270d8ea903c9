# tests/core/traceability/test_manifest_event_log.py
"""Testes do Event Log e das atualizações incrementais de Step no Manifest."""

from datetime import datetime, timezone

from payroll_pipeline.core.pipeline.registry import default_registry
from payroll_pipeline.core.pipeline.types import StepStatus
from payroll_pipeline.core.traceability.manifest import add_event, create_manifest, record_step

T0 = datetime(2026, 4, 5, 9, 0, tzinfo=timezone.utc)
T1 = datetime(2026, 4, 5, 9, 0, 2, tzinfo=timezone.utc)


def _manifest():
    return create_manifest(run_id="run-001", started_at=T0, version="0.1.0", config_hash=None)


def test_add_event_preserves_call_order_and_optional_fields():
    m = _manifest()
    add_event(m, event_type="run.started", ts=T0)
    add_event(m, event_type="run.paused", ts=T1, step_id="voluntary_deductions", payload={"reason": "checkpoint"})

    assert m.event_types() == ["run.started", "run.paused"]
    assert m.events[0] == {"event_type": "run.started", "timestamp": "2026-04-05T09:00:00+00:00"}
    assert m.events[1]["step_id"] == "voluntary_deductions"
    assert m.events[1]["payload"] == {"reason": "checkpoint"}


def test_record_step_tracks_lifecycle(make_flag):
    m = _manifest()
    step = default_registry().new_states()[0]

    step.status = StepStatus.IN_PROGRESS
    record_step(m, step, event_type="step.started", ts=T0)
    step.status = StepStatus.FLAGGED
    step.flags = (make_flag(),)
    record_step(m, step, event_type="step.flagged", ts=T1)

    entry = m.steps["pre_processing_validation"]
    assert entry["number"] == 1
    assert entry["name"] == "Pre-Processing Data Validation"
    assert entry["status"] == "flagged"
    assert entry["started_at"] == "2026-04-05T09:00:00+00:00"
    assert entry["finished_at"] == "2026-04-05T09:00:02+00:00"
    assert entry["flags"][0]["id"] == "flag-1-emp-1"
    assert entry["overridden"] is False
    assert m.event_types() == ["step.started", "step.flagged"]


def test_started_at_is_written_once():
    m = _manifest()
    step = default_registry().new_states()[0]
    record_step(m, step, event_type="step.started", ts=T0)
    record_step(m, step, event_type="step.started", ts=T1)
    assert m.steps[step.id]["started_at"] == "2026-04-05T09:00:00+00:00"
