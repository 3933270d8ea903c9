# tests/core/engine/test_gate_rejections.py
"""
Testes de rejeição das ações do Gate.

Invariante central: uma ação fora de suas pré-condições levanta
InvalidTransition (ou subclasse) e NÃO altera a run nem o Manifest.
"""

import asyncio
import inspect

import pytest

from payroll_pipeline.core.exceptions import InvalidTransition, RunDiscarded, StepWorkInFlight
from payroll_pipeline.validation.flagger import StaticFlagger

GATE_ACTIONS = [
    "continue_processing",
    "override_and_continue",
    "request_remediation",
    "return_from_remediation",
    "request_confirmation",
    "resume_after_approval",
]


async def _invoke(session, action):
    result = getattr(session, action)()
    if inspect.isawaitable(result):
        result = await result
    return result


async def _assert_rejected(session, action, exc_type=InvalidTransition):
    before = session.snapshot()
    events = len(session.manifest.events)
    with pytest.raises(exc_type) as exc:
        await _invoke(session, action)
    assert session.snapshot() == before
    assert len(session.manifest.events) == events
    return exc.value


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "action",
    ["continue_processing", "override_and_continue", "request_remediation",
     "return_from_remediation", "request_confirmation", "resume_after_approval"],
)
async def test_actions_rejected_before_start(make_session, action):
    session = make_session()
    await _assert_rejected(session, action)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "action",
    ["continue_processing", "request_confirmation", "resume_after_approval"],
)
async def test_actions_rejected_on_flagged_step(make_session, make_flag, action):
    session = make_session(flagger=StaticFlagger({0: [make_flag()]}))
    await session.start()
    err = await _assert_rejected(session, action)
    assert err.to_payload().details["status"] == "flagged"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "action",
    ["override_and_continue", "return_from_remediation", "request_confirmation", "resume_after_approval"],
)
async def test_actions_rejected_at_plain_checkpoint(make_session, action):
    session = make_session()
    await session.start()
    await _assert_rejected(session, action)


@pytest.mark.asyncio
async def test_continue_rejected_at_confirmation_step(make_session):
    session = make_session()
    await session.start()
    await session.continue_processing()

    err = await _assert_rejected(session, "continue_processing")
    payload = err.to_payload()
    assert payload.type == "INVALID_TRANSITION"
    assert payload.details["action"] == "continue_processing"
    assert payload.hint


@pytest.mark.asyncio
async def test_confirmation_cannot_be_requested_twice(make_session):
    session = make_session()
    await session.start()
    await session.continue_processing()
    session.request_confirmation()

    await _assert_rejected(session, "request_confirmation")
    await _assert_rejected(session, "continue_processing")
    assert len(session.approvals.requests) == 1


@pytest.mark.asyncio
async def test_actions_rejected_after_completion(make_session):
    session = make_session()
    await session.start()
    await session.continue_processing()
    session.request_confirmation()
    await session.resume_after_approval()

    for action in GATE_ACTIONS:
        await _assert_rejected(session, action)


@pytest.mark.asyncio
@pytest.mark.parametrize("action", GATE_ACTIONS)
async def test_actions_rejected_while_work_in_flight(make_session, gated_worker, until, action):
    session = make_session(worker=gated_worker)
    task = asyncio.ensure_future(session.start())
    await until(lambda: gated_worker.started)

    err = await _assert_rejected(session, action, StepWorkInFlight)
    assert err.to_payload().type == "STEP_WORK_IN_FLIGHT"
    assert session.available_actions()[action] is False

    gated_worker.release(forever=True)
    await task


@pytest.mark.asyncio
@pytest.mark.parametrize("action", GATE_ACTIONS + ["start"])
async def test_actions_rejected_after_close(make_session, make_flag, action):
    session = make_session(flagger=StaticFlagger({0: [make_flag()]}))
    await session.start()
    session.close()

    err = await _assert_rejected(session, action, RunDiscarded)
    assert err.to_payload().type == "RUN_DISCARDED"
    assert not any(session.available_actions().values())
