# src/payroll_pipeline/core/config/__init__.py
"""
Camada de configuração do pipeline de folha.

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (defaults + overrides locais)
    - Resolução de configuração final via deep-merge determinístico
    - Geração de hash canônico para rastreabilidade
    - Configuração padrão embarcada (catálogo de Steps incluído)
"""

from .defaults import DEFAULT_CONFIG, default_config
from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
    UnsupportedReportFormatError,
)
from .hashing import compute_config_hash
from .loader import load_config
from .merge import deep_merge

__all__ = [
    "DEFAULT_CONFIG",
    "default_config",
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "UnsupportedConfigFormatError",
    "UnsupportedReportFormatError",
    "compute_config_hash",
    "load_config",
    "deep_merge",
]
