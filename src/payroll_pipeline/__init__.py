# src/payroll_pipeline/__init__.py
"""
Payroll Pipeline — execução guiada e auditável de runs de folha de pagamento.

Este pacote raiz define o namespace público do pipeline de folha: uma
run é uma sequência fixa de Steps executados um por vez, com pausas
explícitas em checkpoints e em problemas de qualidade de dados que
exigem decisão humana.

Arquitetura em alto nível:
    - core.config       → configuração padrão, merge e hashing
    - core.pipeline     → tipos, catálogo de Steps, contexto e colaboradores
    - core.engine       → Engine (execução), Gate (ações humanas) e Session
    - core.traceability → Manifest e Event Log da run
    - validation        → flaggers e regras de dados (tax code, NI)
    - report            → relatórios Markdown por Step e da run
    - notebook_ui       → projeção visual do estado da run

Limites explícitos:
    - Não calcula impostos nem valores monetários
    - Não gera arquivos HMRC nem transmite BACS
    - Não persiste runs entre sessões
"""

__version__ = "0.1.0"
