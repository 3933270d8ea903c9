# src/payroll_pipeline/core/config/defaults.py
"""
Configuração padrão embarcada do pipeline de folha.

Equivale ao `config.defaults.yaml` de um projeto: é a base completa
sobre a qual overrides locais são aplicados via deep-merge. O catálogo
de Steps vive em `pipeline.steps` e é lido por `StepRegistry.from_config`.
"""

from copy import deepcopy
from typing import Any, Dict

DEFAULT_CONFIG: Dict[str, Any] = {
    "engine": {
        # None = sem timeout
        "step_timeout_seconds": None,
        # faixa de atraso simulado do worker padrão, em segundos
        "step_delay_seconds": [1.0, 2.0],
        "check_invariants": True,
    },
    "gate": {
        "revalidate_on_return": True,
    },
    "report": {
        # formato dos artefatos por Step: "markdown" ou "pdf"
        "format": "markdown",
    },
    "validation": {
        "overtime_hours_threshold": 40,
        "bonus_typical_max": 5000,
    },
    "pipeline": {
        "steps": [
            {
                "id": "pre_processing_validation",
                "name": "Pre-Processing Data Validation",
                "description": "Checking employee data for completeness and accuracy",
                "downloadable": True,
                "report_title": "Validation Report",
                "target_page": "employees",
                "may_flag": True,
            },
            {
                "id": "timesheet_verification",
                "name": "Timesheet & Absence Verification",
                "description": "Verifying timesheets and absence records",
                "target_page": "timesheets",
            },
            {
                "id": "variable_pay_import",
                "name": "Variable Pay Inputs Import",
                "description": "Importing bonus, commission, and other variable pay data",
                "target_page": "payroll",
                "may_flag": True,
            },
            {
                "id": "gross_pay_calculation",
                "name": "Gross Pay Calculation",
                "description": "Calculating salary, hourly pay, overtime, bonuses, and expenses",
                "downloadable": True,
                "report_title": "Gross Pay Breakdown",
                "target_page": "payroll",
            },
            {
                "id": "statutory_deductions",
                "name": "Statutory Deductions",
                "description": "Calculating PAYE, NI, student loans, and court orders",
                "target_page": "payroll",
            },
            {
                "id": "voluntary_deductions",
                "name": "Voluntary Deductions",
                "description": "Processing pension contributions, benefits, and union fees",
                "is_checkpoint": True,
                "downloadable": True,
                "report_title": "Payslips & HMRC Documentation",
                "target_page": "employees",
                "may_flag": True,
            },
            {
                "id": "net_pay_calculation",
                "name": "Net Pay Calculation",
                "description": "Finalizing pay after all deductions",
                "target_page": "payroll",
            },
            {
                "id": "reporting_compliance",
                "name": "Reporting & Compliance Outputs",
                "description": "Generating payslips, RTI submissions, and compliance documents",
                "downloadable": True,
                "report_title": "Payment Summary",
                "target_page": "dashboard",
            },
            {
                "id": "banking_integration",
                "name": "Banking & Accounting Integration",
                "description": "Preparing BACS files and accounting entries",
                "is_checkpoint": True,
                "requires_confirmation": True,
                "target_page": "settings",
            },
        ],
    },
}


def default_config() -> Dict[str, Any]:
    """Cópia profunda da configuração padrão (seguro para mutação)."""
    return deepcopy(DEFAULT_CONFIG)
