# tests/test_smoke.py
"""
Teste de sanidade estrutural do pacote.

Garante apenas que o pacote importa e expõe sua versão; não valida
comportamento de domínio.
"""

import payroll_pipeline


def test_smoke():
    assert isinstance(payroll_pipeline.__version__, str)
    assert payroll_pipeline.__version__
