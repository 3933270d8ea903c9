# tests/core/engine/test_gate_actions.py
"""
Testes das ações do CheckpointGate (via PayrollPipelineSession).

Cobre o caminho feliz de cada ação:
    continue_processing, override_and_continue, request_remediation,
    return_from_remediation, request_confirmation, resume_after_approval
"""

import pytest

from payroll_pipeline.core.exceptions import InvalidTransition
from payroll_pipeline.core.pipeline.registry import StepRegistry
from payroll_pipeline.core.pipeline.types import StepDefinition, StepStatus, TargetPage, check_invariants
from payroll_pipeline.validation.flagger import StaticFlagger


@pytest.mark.asyncio
async def test_continue_from_checkpoint_runs_to_confirmation_step(make_session):
    session = make_session()
    await session.start()

    snap = await session.continue_processing()

    assert snap.current_step_index == 8
    assert snap.is_paused is True
    assert snap.is_complete is False
    assert snap.current_step["status"] == "done"
    # todos os Steps `done`, mas a run só conclui após a aprovação externa
    assert snap.overall_progress == 100
    assert session.notifications.titles() == ["Checkpoint Reached", "Confirmation Required"]
    assert "run.resumed" in session.manifest.event_types()


@pytest.mark.asyncio
async def test_confirmation_hand_off_then_resume_completes(make_session):
    session = make_session()
    await session.start()
    await session.continue_processing()

    snap = session.request_confirmation()

    assert snap.confirmation_requested is True
    assert snap.is_complete is False
    assert len(session.approvals.requests) == 1
    handed_off = session.approvals.requests[0]
    assert handed_off.current_step_index == 8
    assert handed_off.is_paused is True

    final = await session.resume_after_approval()

    assert final.is_complete is True
    assert final.is_paused is False
    assert final.confirmation_requested is False
    assert final.overall_progress == 100
    assert session.notifications.titles()[-1] == "Payroll Processing Complete"
    assert session.manifest.event_types()[-2:] == ["approval.resumed", "run.completed"]


@pytest.mark.asyncio
async def test_override_accepts_flags_and_continues(make_session, make_flag):
    session = make_session(flagger=StaticFlagger({0: [make_flag("a"), make_flag("b")]}))
    await session.start()

    snap = await session.override_and_continue()

    first = session.run.steps[0]
    assert first.status is StepStatus.DONE
    assert first.overridden is True
    assert [f.id for f in first.flags] == ["a", "b"]
    assert snap.current_step_index == 5
    assert snap.steps[0]["overridden"] is True
    assert "Flags Confirmed" in session.notifications.titles()
    assert session.manifest.steps["pre_processing_validation"]["overridden"] is True
    assert "step.overridden" in session.manifest.event_types()
    assert check_invariants(session.run) == []


@pytest.mark.asyncio
async def test_request_remediation_navigates_without_mutation(make_session, make_flag):
    session = make_session(flagger=StaticFlagger({0: [make_flag(target_page=TargetPage.TIMESHEETS)]}))
    await session.start()
    before = session.snapshot()

    page = session.request_remediation()

    assert page is TargetPage.TIMESHEETS
    assert session.navigation.history == [TargetPage.TIMESHEETS]
    assert session.snapshot() == before
    assert session.available_actions()["return_from_remediation"] is True


@pytest.mark.asyncio
async def test_request_remediation_explicit_and_fallback_pages(make_session, make_flag):
    session = make_session(flagger=StaticFlagger({0: [make_flag(target_page=None)]}))
    await session.start()

    assert session.request_remediation() is TargetPage.EMPLOYEES  # página do próprio Step
    assert session.request_remediation("settings") is TargetPage.SETTINGS
    with pytest.raises(InvalidTransition):
        session.request_remediation("approvals")
    assert session.navigation.history == [TargetPage.EMPLOYEES, TargetPage.SETTINGS]


@pytest.mark.asyncio
async def test_return_from_remediation_clean_data_resumes(make_session, make_flag):
    flagger = StaticFlagger({0: [make_flag()]}, consume=True)
    session = make_session(flagger=flagger)
    await session.start()
    session.request_remediation()

    snap = await session.return_from_remediation()

    first = session.run.steps[0]
    assert first.status is StepStatus.DONE
    assert first.overridden is False
    assert first.remediated is True
    # a lista remediada continua anexada para histórico
    assert [f.id for f in first.flags] == ["flag-1-emp-1"]
    assert snap.current_step_index == 5
    assert snap.steps[0]["remediated"] is True
    assert flagger.calls[:2] == [0, 0]
    entry = session.manifest.steps["pre_processing_validation"]
    assert entry["remediated"] is True
    assert [f["id"] for f in entry["flags"]] == ["flag-1-emp-1"]
    assert check_invariants(session.run) == []


@pytest.mark.asyncio
async def test_return_from_remediation_still_flagged_keeps_override_open(make_session, make_flag):
    session = make_session(flagger=StaticFlagger({0: [make_flag("fresh")]}))
    await session.start()
    session.request_remediation()

    snap = await session.return_from_remediation()

    assert snap.current_step["status"] == "flagged"
    assert snap.is_paused is True
    assert session.notifications.titles() == ["Data Flags Detected", "Data Flags Detected"]
    assert session.available_actions()["override_and_continue"] is True

    await session.override_and_continue()
    assert session.run.steps[0].overridden is True


@pytest.mark.asyncio
async def test_return_from_remediation_without_revalidation_policy(make_session, payroll_config, make_flag):
    payroll_config["gate"]["revalidate_on_return"] = False
    flagger = StaticFlagger({0: [make_flag()]}, consume=True)
    session = make_session(config=payroll_config, flagger=flagger)
    await session.start()
    before = session.snapshot()

    after = await session.return_from_remediation()

    assert after == before
    assert flagger.calls == [0]


@pytest.mark.asyncio
async def test_override_on_confirmation_step_still_requires_hand_off(make_session, make_flag):
    registry = StepRegistry(
        [
            StepDefinition(id="net_pay", number=1, name="Net Pay", description=""),
            StepDefinition(
                id="banking",
                number=2,
                name="Banking",
                description="",
                is_checkpoint=True,
                requires_confirmation=True,
                target_page=TargetPage.SETTINGS,
            ),
        ]
    )
    session = make_session(registry=registry, flagger=StaticFlagger({"banking": [make_flag()]}))
    await session.start()

    snap = await session.override_and_continue()

    assert snap.current_step["status"] == "done"
    assert snap.is_paused is True
    assert snap.is_complete is False
    assert session.available_actions()["request_confirmation"] is True

    session.request_confirmation()
    final = await session.resume_after_approval()
    assert final.is_complete is True
