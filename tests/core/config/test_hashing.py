# tests/core/config/test_hashing.py
"""Testes do hash canônico da configuração efetiva (SHA-256 sobre JSON canônico)."""

import pytest

from payroll_pipeline.core.config import compute_config_hash, default_config


def test_hash_is_stable_and_hex():
    h1 = compute_config_hash(default_config())
    h2 = compute_config_hash(default_config())
    assert h1 == h2
    assert len(h1) == 64
    int(h1, 16)


def test_hash_ignores_key_order():
    a = {"engine": {"check_invariants": True, "step_timeout_seconds": None}, "gate": {}}
    b = {"gate": {}, "engine": {"step_timeout_seconds": None, "check_invariants": True}}
    assert compute_config_hash(a) == compute_config_hash(b)


def test_hash_changes_with_values():
    cfg = default_config()
    changed = default_config()
    changed["gate"]["revalidate_on_return"] = False
    assert compute_config_hash(cfg) != compute_config_hash(changed)


def test_hash_requires_dict():
    with pytest.raises(TypeError):
        compute_config_hash([("engine", {})])
