"""
src/payroll_pipeline/report/report_md.py

Relatórios em Markdown da run de folha.

Dois produtos:
- `MarkdownReportProvider`: artefato por Step baixável concluído
  (Validation Report, Gross Pay Breakdown, Payslips & HMRC Documentation,
  Payment Summary). É o ReportArtifactProvider padrão da sessão.
- `generate_run_report_md`: relatório consolidado derivado EXCLUSIVAMENTE
  do Manifest (dict).

Regras:
- Não infere, não recalcula valores monetários.
- Mesma entrada => mesmo Markdown (ordenação estável, sem timestamps novos).
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

from payroll_pipeline.core.errors import report_not_available
from payroll_pipeline.core.exceptions import ReportNotAvailable
from payroll_pipeline.core.pipeline.collaborators import ReportArtifact
from payroll_pipeline.core.pipeline.types import PipelineRun, StepState, StepStatus


REQUIRED_SECTIONS: List[str] = [
    "# Payroll Run Report",
    "## Summary",
    "## Steps",
    "## Flags & Overrides",
    "## Traceability",
    "## Limitations",
    "## Run Metadata",
]


def _sorted_items(d: Any) -> List[Tuple[str, Any]]:
    if not isinstance(d, dict):
        return []
    return sorted(d.items(), key=lambda kv: kv[0])


def _as_pretty_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True, indent=2)


def _cell(value: Any) -> str:
    return ("" if value is None else str(value)).replace("|", "\\|").replace("\n", " ")


def _flags_table(flags: List[Dict[str, Any]]) -> List[str]:
    lines = [
        "| Flag | Employee | Type | Severity | Description | Remediation |",
        "|------|----------|------|----------|-------------|-------------|",
    ]
    for f in flags:
        lines.append(
            "| {id} | {emp} | {type} | {sev} | {desc} | {page} |".format(
                id=_cell(f.get("id")),
                emp=_cell(f.get("employee_name") or f.get("employee_id")),
                type=_cell(f.get("flag_type")),
                sev=_cell(f.get("severity")),
                desc=_cell(f.get("description")),
                page=_cell(f.get("target_page")),
            )
        )
    return lines


def _slug(title: str) -> str:
    out = "".join(ch.lower() if ch.isalnum() else "-" for ch in title)
    while "--" in out:
        out = out.replace("--", "-")
    return out.strip("-")


class MarkdownReportProvider:
    """Relatório Markdown por Step concluído e baixável."""

    def render(self, step: StepState, run: PipelineRun) -> ReportArtifact:
        d = step.definition
        if not d.downloadable or step.status is not StepStatus.DONE:
            raise ReportNotAvailable.from_payload(
                report_not_available(step=d.id, status=step.status.value, downloadable=d.downloadable)
            )

        title = d.report_title or d.name
        lines: List[str] = [
            f"# {title}",
            "",
            f"- **Run ID**: `{run.run_id}`",
            f"- **Step**: {d.number}. {d.name} (`{d.id}`)",
            f"- **Status**: `{step.status.value}`",
        ]
        if step.overridden:
            lines.append("- **Overridden**: flags were accepted manually")
        elif step.remediated:
            lines.append("- **Remediated**: flags were resolved at source and revalidated")
        lines.append("")

        lines.append("## Flags")
        if step.flags:
            lines.extend(_flags_table([f.to_dict() for f in step.flags]))
        else:
            lines.append("No data flags were raised for this step.")
        lines.append("")

        return ReportArtifact(
            step_id=d.id,
            title=title,
            filename=f"{run.run_id}-{_slug(title)}.md",
            content="\n".join(lines),
        )


def generate_run_report_md(manifest: Dict[str, Any]) -> str:
    """Gera o relatório consolidado da run a partir do Manifest (dict)."""
    if not isinstance(manifest, dict) or not manifest:
        raise ValueError("Manifest is required to generate the run report")

    run = manifest.get("run") if isinstance(manifest.get("run"), dict) else {}
    inputs = manifest.get("inputs") if isinstance(manifest.get("inputs"), dict) else {}
    steps = manifest.get("steps") if isinstance(manifest.get("steps"), dict) else {}
    events = manifest.get("events") if isinstance(manifest.get("events"), list) else []

    lines: List[str] = []

    lines.append("# Payroll Run Report\n")

    lines.append("## Summary")
    lines.append(f"- **Run ID**: `{run.get('run_id', '<unknown>')}`")
    lines.append(f"- **Started At (UTC)**: `{run.get('started_at', '<unknown>')}`")
    lines.append(f"- **Version**: `{run.get('version', '<unknown>')}`")
    event_types = [e.get("event_type") for e in events if isinstance(e, dict)]
    if "run.completed" in event_types:
        outcome = "completed"
    elif "run.abandoned" in event_types:
        outcome = "abandoned"
    else:
        outcome = "in progress"
    lines.append(f"- **Outcome**: `{outcome}`\n")

    lines.append("## Steps")
    ordered = sorted(
        ((sid, s) for sid, s in steps.items() if isinstance(s, dict)),
        key=lambda kv: (kv[1].get("number", 0), kv[0]),
    )
    if ordered:
        for step_id, step in ordered:
            marker = " (overridden)" if step.get("overridden") else (" (remediated)" if step.get("remediated") else "")
            lines.append(
                f"- **{step.get('number', '?')}. {step.get('name', step_id)}** "
                f"(status: `{step.get('status', 'unknown')}`){marker}"
            )
    else:
        lines.append("No steps recorded in the Manifest.")
    lines.append("")

    lines.append("## Flags & Overrides")
    any_flags = False
    for step_id, step in ordered:
        flags = step.get("flags") or []
        if not flags:
            continue
        any_flags = True
        lines.append(f"### {step_id}")
        lines.extend(_flags_table(flags))
        lines.append("")
    if not any_flags:
        lines.append("No data flags recorded.\n")

    lines.append("## Traceability")
    lines.append("- Source of truth: `Manifest` only.")
    lines.append(f"- Config hash: `{inputs.get('config_hash')}`")
    lines.append(f"- Events recorded: `{len(events)}`\n")

    lines.append("## Limitations")
    lines.append("- No monetary figures (calculations are delegated to external services).")
    lines.append("- No HMRC/BACS file content.\n")

    lines.append("## Run Metadata")
    lines.append("```json")
    lines.append(_as_pretty_json({k: v for k, v in _sorted_items(run)}))
    lines.append("```")

    content = "\n".join(lines)

    for sec in REQUIRED_SECTIONS:
        if sec not in content:
            raise RuntimeError(f"Report generation failed: missing required section: {sec}")

    return content
