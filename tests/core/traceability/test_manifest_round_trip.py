# tests/core/traceability/test_manifest_round_trip.py
"""Testes de serialização do Manifest (to_dict / from_dict)."""

import json

import pytest

from payroll_pipeline.core.traceability.manifest import RunManifest
from payroll_pipeline.validation.flagger import StaticFlagger


@pytest.mark.asyncio
async def test_session_manifest_is_json_serializable_and_round_trips(make_session, make_flag):
    session = make_session(flagger=StaticFlagger({0: [make_flag()]}))
    await session.start()
    await session.override_and_continue()

    data = session.manifest.to_dict()
    restored = RunManifest.from_dict(json.loads(json.dumps(data)))

    assert restored.to_dict() == data
    assert restored.event_types() == session.manifest.event_types()


def test_to_dict_is_detached():
    m = RunManifest(run={"run_id": "r"}, inputs={}, steps={"a": {"status": "done"}}, events=[{"event_type": "x"}])
    d = m.to_dict()
    d["steps"]["a"]["status"] = "pending"
    d["events"].clear()
    assert m.steps["a"]["status"] == "done"
    assert len(m.events) == 1
