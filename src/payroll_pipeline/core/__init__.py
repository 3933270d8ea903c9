# src/payroll_pipeline/core/__init__.py
"""
Core do pipeline de folha.

Componentes principais:
    - config       → configuração padrão embarcada, deep-merge e hashing
    - pipeline     → tipos, catálogo, contexto de run, colaboradores
    - engine       → execução sequencial, Gate de ações e sessão
    - traceability → Manifest e Event Log para auditoria

Princípios fundamentais:
    - Um único objeto de estado (PipelineRun), mutado apenas por Engine e Gate
    - Nenhuma transição silenciosa: toda pausa e retomada é registrada
    - Sem dependência de UI; a apresentação é uma projeção do snapshot
"""
