"""
Pacote de rastreabilidade (traceability) do pipeline de folha — Run Manifest v1.

API pública exposta:
    - RunManifest      → estrutura canônica do Manifest
    - create_manifest  → criação explícita do Manifest
    - add_event        → registro explícito de eventos no Event Log
    - record_step      → atualização do estado de um Step + evento

Nenhum evento é emitido implicitamente e nada é persistido em disco.
"""

from .manifest import RunManifest, add_event, create_manifest, record_step

__all__ = ["RunManifest", "add_event", "create_manifest", "record_step"]
