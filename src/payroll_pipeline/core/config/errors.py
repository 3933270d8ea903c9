# src/payroll_pipeline/core/config/errors.py
"""
Exceções canônicas da camada de configuração do pipeline de folha.

As exceções aqui definidas representam violações estruturais explícitas
de configuração (arquivo ausente, formato desconhecido, raiz inválida,
conflito de tipos no merge), e não erros de execução de Steps.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa problema de qualidade de dados
"""


class ConfigError(Exception):
    """Exceção base para erros de configuração."""


class DefaultsNotFoundError(ConfigError):
    """
    Arquivo de configuração base (defaults) não encontrado.

    Sem defaults não existe configuração efetiva válida; o loader
    não tenta inferir ou criar defaults automaticamente.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo de configuração não suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """Conteúdo raiz da configuração não é um dicionário."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"gate": {"revalidate_on_return": true}}
        - override: {"gate": "off"}

    Nenhum merge parcial é produzido em caso de conflito.
    """


class UnsupportedReportFormatError(ConfigError):
    """`report.format` não corresponde a nenhum provedor de relatório conhecido."""
