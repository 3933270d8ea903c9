# src/payroll_pipeline/core/pipeline/registry.py
"""
Catálogo imutável e ordenado de Steps do pipeline de folha.

Este módulo define o `StepRegistry`, responsável por validar e expor
a sequência fixa de `StepDefinition` que toda run percorre.

O registry atua como uma camada de proteção antecipada, garantindo que:
    - cada Step possua um identificador válido e único
    - Steps baixáveis declarem título de relatório
    - a ordem de declaração seja preservada explicitamente
    - nenhuma mutação ocorra depois da construção

Decisões arquiteturais:
    - A validação ocorre na construção, antes de qualquer run
    - Erros estruturais são tratados como falhas fatais de configuração
    - O número exibido de cada Step (1-based) é derivado da posição

Limites explícitos:
    - Não executa Steps
    - Não conhece o estado de nenhuma run
    - Não contém lógica de validação de dados
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from payroll_pipeline.core.errors import catalogue_configuration_error
from payroll_pipeline.core.exceptions import CatalogueConfigurationError

from .types import StepDefinition, StepState, TargetPage


class DuplicateStepIdError(ValueError):
    """
    Exceção levantada quando dois Steps do catálogo compartilham o mesmo id.

    A duplicidade invalida o catálogo inteiro; nenhum registro parcial
    é aceito.
    """


class StepRegistry:
    """
    Catálogo canônico, ordenado e de tamanho fixo de Steps.

    Operações:
        - get_step(index) → StepDefinition
        - length() / len(registry)
        - index_of(step_id)
        - new_states() → lista nova de StepState `pending` para uma run

    Invariantes:
        - Cada `id` é único no catálogo
        - O catálogo nunca é vazio
        - A ordem reflete exatamente a ordem de declaração
    """

    __slots__ = ("_steps", "_index")

    def __init__(self, steps: Iterable[StepDefinition]):
        items: Tuple[StepDefinition, ...] = tuple(steps)
        index: Dict[str, int] = {}

        for pos, step in enumerate(items):
            step_id = getattr(step, "id", None)
            if not isinstance(step_id, str) or not step_id.strip():
                raise ValueError("step.id must be a non-empty string")
            if step_id in index:
                raise DuplicateStepIdError(f"Duplicate step id: {step_id}")
            if step.downloadable and not step.report_title:
                raise CatalogueConfigurationError.from_payload(
                    catalogue_configuration_error(
                        message="Step baixável sem título de relatório",
                        details={"step": step_id},
                    )
                )
            index[step_id] = pos

        if not items:
            raise CatalogueConfigurationError.from_payload(
                catalogue_configuration_error(message="Catálogo de Steps vazio")
            )

        object.__setattr__(self, "_steps", items)
        object.__setattr__(self, "_index", index)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("StepRegistry is immutable")

    # -----------------------------
    # Consulta
    # -----------------------------
    def get_step(self, index: int) -> StepDefinition:
        if not 0 <= index < len(self._steps):
            raise IndexError(f"step index out of range: {index}")
        return self._steps[index]

    def length(self) -> int:
        return len(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[StepDefinition]:
        return iter(self._steps)

    def index_of(self, step_id: str) -> int:
        if step_id not in self._index:
            raise KeyError(step_id)
        return self._index[step_id]

    def list(self) -> List[StepDefinition]:
        return list(self._steps)

    def new_states(self) -> List[StepState]:
        """Estados iniciais (`pending`, sem flags) para uma nova run."""
        return [StepState(definition=d) for d in self._steps]

    # -----------------------------
    # Construção a partir de config
    # -----------------------------
    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "StepRegistry":
        """
        Constrói o catálogo a partir de `pipeline.steps` da config resolvida.

        Cada item aceita as chaves de `StepDefinition` exceto `number`,
        que é derivado da posição. `target_page` é validado contra o
        enum `TargetPage`.
        """
        pipeline_cfg = (config or {}).get("pipeline", {}) or {}
        raw_steps = pipeline_cfg.get("steps")
        if not isinstance(raw_steps, list):
            raise CatalogueConfigurationError.from_payload(
                catalogue_configuration_error(
                    message="pipeline.steps deve ser uma lista",
                    details={"received": type(raw_steps).__name__},
                )
            )

        return cls(_definition_from_mapping(pos, raw) for pos, raw in enumerate(raw_steps))


_DEFINITION_KEYS = {
    "id",
    "name",
    "description",
    "is_checkpoint",
    "downloadable",
    "report_title",
    "requires_confirmation",
    "target_page",
    "may_flag",
}


def _definition_from_mapping(pos: int, raw: Any) -> StepDefinition:
    if not isinstance(raw, Mapping):
        raise CatalogueConfigurationError.from_payload(
            catalogue_configuration_error(
                message="Cada Step do catálogo deve ser um mapa",
                details={"position": pos, "received": type(raw).__name__},
            )
        )

    unknown = sorted(set(raw) - _DEFINITION_KEYS)
    if unknown:
        raise CatalogueConfigurationError.from_payload(
            catalogue_configuration_error(
                message="Chaves desconhecidas na definição do Step",
                details={"position": pos, "unknown_keys": unknown},
            )
        )

    page_raw: Optional[str] = raw.get("target_page", TargetPage.PAYROLL.value)
    try:
        target_page = TargetPage(page_raw)
    except ValueError:
        raise CatalogueConfigurationError.from_payload(
            catalogue_configuration_error(
                message="target_page inválido",
                details={
                    "position": pos,
                    "target_page": page_raw,
                    "allowed": [p.value for p in TargetPage],
                },
            )
        ) from None

    return StepDefinition(
        id=raw.get("id", ""),
        number=pos + 1,
        name=raw.get("name", raw.get("id", "")),
        description=raw.get("description", ""),
        is_checkpoint=bool(raw.get("is_checkpoint", False)),
        downloadable=bool(raw.get("downloadable", False)),
        report_title=raw.get("report_title"),
        requires_confirmation=bool(raw.get("requires_confirmation", False)),
        target_page=target_page,
        may_flag=bool(raw.get("may_flag", False)),
    )


def default_registry() -> StepRegistry:
    """Catálogo padrão de 9 Steps da folha de pagamento."""
    from payroll_pipeline.core.config.defaults import DEFAULT_CONFIG

    return StepRegistry.from_config(DEFAULT_CONFIG)
