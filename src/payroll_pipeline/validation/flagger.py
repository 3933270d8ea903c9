# src/payroll_pipeline/validation/flagger.py
"""
Políticas de sinalização (flagging) de qualidade de dados por Step.

Um ValidationFlagger responde, para um Step, a lista de problemas que
exigem atenção humana. O contrato é comportamental, não consultivo:
qualquer resultado não vazio força o Step para `flagged` e pausa a run.
O Engine nunca descarta flags.

Implementações:
    - NullFlagger       → nunca sinaliza
    - StaticFlagger     → conjuntos fixos e determinísticos por Step (testes)
    - RuleBasedFlagger  → regras sobre registros de colaboradores, timesheets
                          e pagamento variável (pandas)

Limites explícitos:
    - Não muta a run nem os Steps
    - Não calcula valores monetários
    - Só Steps com `may_flag=True` podem produzir flags no RuleBasedFlagger
"""

from __future__ import annotations

from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Union,
    runtime_checkable,
)

import pandas as pd

from payroll_pipeline.core.pipeline.types import (
    Severity,
    StepDefinition,
    TargetPage,
    ValidationFlag,
)

from .rules import validate_ni_number, validate_postcode, validate_tax_code

FlagResult = Union[Sequence[ValidationFlag], Awaitable[Sequence[ValidationFlag]]]


@runtime_checkable
class ValidationFlagger(Protocol):
    """
    Contrato de um flagger.

    `flag` pode retornar a lista diretamente ou um awaitable; o Engine
    aguarda awaitables antes de decidir a transição.
    """

    def flag(self, step_index: int, step: StepDefinition) -> FlagResult:
        ...


class NullFlagger:
    """Nenhum Step produz flags."""

    def flag(self, step_index: int, step: StepDefinition) -> List[ValidationFlag]:
        return []


class StaticFlagger:
    """
    Flags fixas por Step, indexadas por índice (int) ou id (str).

    Substitui a geração probabilística de flags por conjuntos
    determinísticos. Cada chamada devolve uma cópia nova da lista.
    `consume=True` entrega as flags apenas na primeira consulta, o
    que simula dados corrigidos após remediação.
    """

    def __init__(
        self,
        flags: Mapping[Union[int, str], Iterable[ValidationFlag]],
        *,
        consume: bool = False,
    ):
        self._flags: Dict[Union[int, str], List[ValidationFlag]] = {k: list(v) for k, v in flags.items()}
        self._consume = consume
        self.calls: List[int] = []

    def flag(self, step_index: int, step: StepDefinition) -> List[ValidationFlag]:
        self.calls.append(step_index)
        for key in (step_index, step.id):
            if key in self._flags:
                found = list(self._flags[key])
                if self._consume:
                    self._flags[key] = []
                return found
        return []


class CallableFlagger:
    """Adapta uma função `(step_index, step) -> flags` ao contrato."""

    def __init__(self, fn: Callable[[int, StepDefinition], FlagResult]):
        self._fn = fn

    def flag(self, step_index: int, step: StepDefinition) -> FlagResult:
        return self._fn(step_index, step)


# ---------------------------------------------------------------------------
# Regras sobre registros (pandas)
# ---------------------------------------------------------------------------

Records = Union[pd.DataFrame, Sequence[Mapping[str, Any]], None]


def _frame(records: Records) -> pd.DataFrame:
    # OBS: não muta os registros de origem; DataFrame é derivado
    if records is None:
        return pd.DataFrame()
    if isinstance(records, pd.DataFrame):
        return records.reset_index(drop=True)
    return pd.DataFrame(list(records))


def _blank(series: pd.Series) -> pd.Series:
    text = series.astype("string").fillna("").str.strip()
    return (series.isna() | (text == "")).fillna(True).astype(bool)


def _text(value: Any) -> str:
    return "" if value is None or pd.isna(value) else str(value)


class RuleBasedFlagger:
    """
    Flagger de produção baseado em regras sobre os dados da folha.

    Dados consumidos (somente leitura):
        - employees: employee_id, name, tax_code, national_insurance,
          postcode, pension_enrolled
        - timesheets: employee_id, overtime_hours
        - variable_pay: employee_id, bonus

    Regras por Step:
        - pre_processing_validation: tax code ausente/inválido, NI inválido,
          postcode inválido, horas extras acima do limite configurado
        - variable_pay_import: bônus acima da faixa típica (uma flag por
          colaborador, com os valores somados)
        - voluntary_deductions: adesão a pensão não informada
    """

    def __init__(
        self,
        *,
        employees: Records = None,
        timesheets: Records = None,
        variable_pay: Records = None,
        config: Optional[Mapping[str, Any]] = None,
    ):
        self.employees = _frame(employees)
        self.timesheets = _frame(timesheets)
        self.variable_pay = _frame(variable_pay)

        validation_cfg = ((config or {}).get("validation", {}) or {})
        self.overtime_hours_threshold = float(validation_cfg.get("overtime_hours_threshold", 40))
        self.bonus_typical_max = float(validation_cfg.get("bonus_typical_max", 5000))

        self._policies: Dict[str, Callable[[StepDefinition], List[ValidationFlag]]] = {
            "pre_processing_validation": self._pre_processing,
            "variable_pay_import": self._variable_pay,
            "voluntary_deductions": self._voluntary_deductions,
        }

    def flag(self, step_index: int, step: StepDefinition) -> List[ValidationFlag]:
        if not step.may_flag:
            return []
        policy = self._policies.get(step.id)
        if policy is None:
            return []
        return policy(step)

    # -----------------------------
    # Helpers
    # -----------------------------
    def _names(self) -> Dict[str, str]:
        if self.employees.empty or "employee_id" not in self.employees:
            return {}
        names = self.employees.get("name", pd.Series(dtype="object"))
        return {
            str(eid): ("" if pd.isna(n) else str(n))
            for eid, n in zip(self.employees["employee_id"], names.reindex(self.employees.index))
        }

    @staticmethod
    def _mk(
        step: StepDefinition,
        check: str,
        employee_id: Any,
        employee_name: str,
        flag_type: str,
        description: str,
        target_page: Optional[TargetPage] = None,
        severity: Severity = Severity.WARNING,
    ) -> ValidationFlag:
        return ValidationFlag(
            id=f"flag-{step.number}-{employee_id}-{check}",
            employee_id=str(employee_id),
            employee_name=employee_name,
            flag_type=flag_type,
            description=description,
            severity=severity,
            target_page=target_page or step.target_page,
        )

    # -----------------------------
    # Políticas
    # -----------------------------
    def _pre_processing(self, step: StepDefinition) -> List[ValidationFlag]:
        out: List[ValidationFlag] = []
        df = self.employees

        if not df.empty and "employee_id" in df:
            names = df["name"] if "name" in df else pd.Series([""] * len(df), index=df.index)

            if "tax_code" in df:
                missing = _blank(df["tax_code"])
                for idx in df.index[missing]:
                    out.append(self._mk(
                        step, "tax-code-missing", df.at[idx, "employee_id"], _text(names[idx]),
                        "missing-data", "Tax code missing for current tax year",
                    ))
                for idx in df.index[~missing]:
                    code = df.at[idx, "tax_code"]
                    if not validate_tax_code(code):
                        out.append(self._mk(
                            step, "tax-code-invalid", df.at[idx, "employee_id"], _text(names[idx]),
                            "validation-warning", f"Invalid tax code format: {code}",
                        ))

            if "national_insurance" in df:
                ni_blank = _blank(df["national_insurance"])
                for idx in df.index:
                    ni = df.at[idx, "national_insurance"]
                    if ni_blank[idx]:
                        out.append(self._mk(
                            step, "ni-missing", df.at[idx, "employee_id"], _text(names[idx]),
                            "missing-data", "National Insurance number missing",
                        ))
                    elif not validate_ni_number(ni):
                        out.append(self._mk(
                            step, "ni-invalid", df.at[idx, "employee_id"], _text(names[idx]),
                            "validation-warning", f"Invalid National Insurance number: {ni}",
                        ))

            if "postcode" in df:
                present = ~_blank(df["postcode"])
                for idx in df.index[present]:
                    postcode = df.at[idx, "postcode"]
                    if not validate_postcode(postcode):
                        out.append(self._mk(
                            step, "postcode-invalid", df.at[idx, "employee_id"], _text(names[idx]),
                            "validation-warning", f"Invalid postcode format: {postcode}",
                        ))

        ts = self.timesheets
        if not ts.empty and {"employee_id", "overtime_hours"} <= set(ts.columns):
            hours = pd.to_numeric(ts["overtime_hours"], errors="coerce")
            totals = hours.groupby(ts["employee_id"].astype(str), sort=False).sum()
            lookup = self._names()
            threshold = self.overtime_hours_threshold
            for eid, total in totals.items():
                if total > threshold:
                    out.append(self._mk(
                        step, "overtime-high", eid, lookup.get(eid, ""),
                        "validation-warning", f"Unusually high overtime hours (>{threshold:g})",
                        target_page=TargetPage.TIMESHEETS,
                    ))

        return out

    def _variable_pay(self, step: StepDefinition) -> List[ValidationFlag]:
        vp = self.variable_pay
        if vp.empty or not {"employee_id", "bonus"} <= set(vp.columns):
            return []

        bonus = pd.to_numeric(vp["bonus"], errors="coerce")
        totals = bonus.groupby(vp["employee_id"].astype(str), sort=False).sum()
        lookup = self._names()
        out: List[ValidationFlag] = []
        for eid, total in totals.items():
            if total > self.bonus_typical_max:
                out.append(self._mk(
                    step, "bonus-high", eid, lookup.get(eid, ""),
                    "unusual-amount", f"Bonus amount exceeds typical range ({total:g})",
                ))
        return out

    def _voluntary_deductions(self, step: StepDefinition) -> List[ValidationFlag]:
        df = self.employees
        if df.empty or not {"employee_id", "pension_enrolled"} <= set(df.columns):
            return []

        names = df["name"] if "name" in df else pd.Series([""] * len(df), index=df.index)
        out: List[ValidationFlag] = []
        for idx in df.index[df["pension_enrolled"].isna()]:
            out.append(self._mk(
                step, "pension-missing", df.at[idx, "employee_id"], _text(names[idx]),
                "missing-data", "Missing pension enrollment information",
            ))
        return out
