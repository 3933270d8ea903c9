# tests/core/config/test_merge.py
"""
Testes do deep-merge de configuração.

Política verificada:
    - dict → merge recursivo
    - list → sobrescrita total
    - None em qualquer lado → override vence
    - int/float intercambiáveis; bool estrito
    - conflito de tipos → ConfigTypeConflictError
"""

import pytest

try:
    from payroll_pipeline.core.config.errors import ConfigTypeConflictError
    from payroll_pipeline.core.config.merge import deep_merge
except Exception as e:  # noqa: BLE001
    deep_merge = None
    ConfigTypeConflictError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing config merge modules. Implement:\n"
            "- src/payroll_pipeline/core/config/merge.py (deep_merge)\n"
            "- src/payroll_pipeline/core/config/errors.py (ConfigTypeConflictError)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_merge_does_not_mutate_inputs():
    _require_imports()
    base = {"gate": {"revalidate_on_return": True}, "x": 1}
    override = {"gate": {"revalidate_on_return": False}}
    out = deep_merge(base, override)
    assert out == {"gate": {"revalidate_on_return": False}, "x": 1}
    assert base == {"gate": {"revalidate_on_return": True}, "x": 1}
    assert override == {"gate": {"revalidate_on_return": False}}


def test_merge_nested_dict_preserves_untouched_keys():
    _require_imports()
    base = {"engine": {"check_invariants": True, "step_delay_seconds": [1.0, 2.0]}}
    out = deep_merge(base, {"engine": {"check_invariants": False}})
    assert out == {"engine": {"check_invariants": False, "step_delay_seconds": [1.0, 2.0]}}


def test_merge_list_override_total():
    """Listas (ex.: o catálogo `pipeline.steps`) nunca são mescladas elemento a elemento."""
    _require_imports()
    base = {"pipeline": {"steps": [{"id": "a"}, {"id": "b"}]}}
    out = deep_merge(base, {"pipeline": {"steps": [{"id": "c"}]}})
    assert out == {"pipeline": {"steps": [{"id": "c"}]}}


def test_merge_none_default_accepts_number():
    _require_imports()
    out = deep_merge({"engine": {"step_timeout_seconds": None}}, {"engine": {"step_timeout_seconds": 5}})
    assert out["engine"]["step_timeout_seconds"] == 5


def test_merge_none_override_disables_value():
    _require_imports()
    out = deep_merge({"engine": {"step_timeout_seconds": 5}}, {"engine": {"step_timeout_seconds": None}})
    assert out["engine"]["step_timeout_seconds"] is None


def test_merge_int_and_float_are_compatible():
    _require_imports()
    out = deep_merge({"validation": {"bonus_typical_max": 5000}}, {"validation": {"bonus_typical_max": 7500.5}})
    assert out["validation"]["bonus_typical_max"] == 7500.5


def test_merge_bool_vs_int_conflict_raises():
    _require_imports()
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"gate": {"revalidate_on_return": True}}, {"gate": {"revalidate_on_return": 1}})


def test_merge_type_conflict_raises():
    _require_imports()
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"gate": {"revalidate_on_return": True}}, {"gate": "off"})
