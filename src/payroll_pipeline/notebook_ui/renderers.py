# src/payroll_pipeline/notebook_ui/renderers.py
"""
Notebook UI Adapter — projeção visual da run de folha.

Objetivo:
- Renderizar um RunSnapshot (ou seu dict) como HTML legível em notebooks
  e como texto simples para terminais/logs.
- A renderização é uma função pura do snapshot: NÃO muta a entrada,
  NÃO consulta Engine/Gate e NÃO decide transições.

Saídas:
- HTML (string) quando possível
- fallback textual sempre preenchido
"""

from __future__ import annotations

import copy
import html
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from payroll_pipeline.core.pipeline.types import RunSnapshot

_STATUS_ICONS = {
    "pending": "○",
    "in_progress": "◐",
    "done": "●",
    "flagged": "⚠",
}


@dataclass(frozen=True)
class RenderResult:
    """Resultado de renderização (apenas apresentação)."""
    html: Optional[str]
    text: str


def _escape(s: Any) -> str:
    return html.escape("" if s is None else str(s))


def _as_pretty_json(payload: Any) -> str:
    try:
        return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True)
    except TypeError:
        return repr(payload)


def render_payload(payload: Any) -> RenderResult:
    """
    Renderizador genérico para payloads auxiliares (erros, notificações):
    - mapping → tabela key/value
    - sequência (não string) → tabela
    - demais → somente texto (JSON)
    """
    before = copy.deepcopy(payload) if isinstance(payload, (dict, list)) else None

    if isinstance(payload, Mapping):
        html_out: Optional[str] = render_kv_table_html(payload)
    elif isinstance(payload, Sequence) and not isinstance(payload, (str, bytes, bytearray)):
        html_out = render_table_html(payload)
    else:
        html_out = None
    text_out = _as_pretty_json(payload)

    if before is not None and before != payload:
        raise AssertionError("Notebook UI renderer mutated the input payload")

    return RenderResult(html=html_out, text=text_out)


def render_kv_table_html(payload: Mapping[str, Any], title: Optional[str] = None) -> str:
    """Tabela HTML de duas colunas (campo, valor)."""
    heading = f"<h4>{_escape(title)}</h4>" if title else ""
    rows = "".join(
        f"<tr><td><code>{_escape(k)}</code></td><td>{_escape(v)}</td></tr>" for k, v in payload.items()
    )
    return f"{heading}<table><thead><tr><th>field</th><th>value</th></tr></thead><tbody>{rows}</tbody></table>"


def render_table_html(
    payload: Sequence[Any],
    title: Optional[str] = None,
    columns: Optional[Sequence[str]] = None,
    max_rows: int = 50,
) -> str:
    """
    Tabela HTML de uma lista:
    - list[dict] → colunas explícitas ou união das chaves na ordem de aparição
    - demais → uma coluna `value`
    """
    items = list(payload)[:max_rows]
    heading = f"<h4>{_escape(title)}</h4>" if title else ""
    if not items:
        return f"{heading}<div><em>(empty)</em></div>"

    if all(isinstance(x, Mapping) for x in items):
        cols: List[str] = list(columns or [])
        if not cols:
            for row in items:
                cols.extend(k for k in row.keys() if k not in cols)
        th = "".join(f"<th>{_escape(c)}</th>" for c in cols)
        body = "".join(
            "<tr>" + "".join(f"<td>{_escape(row.get(c))}</td>" for c in cols) + "</tr>" for row in items
        )
        return f"{heading}<table><thead><tr>{th}</tr></thead><tbody>{body}</tbody></table>"

    body = "".join(f"<tr><td>{_escape(x)}</td></tr>" for x in items)
    return f"{heading}<table><thead><tr><th>value</th></tr></thead><tbody>{body}</tbody></table>"


def _status_line(snap: Dict[str, Any]) -> str:
    if snap.get("is_discarded"):
        return "Run discarded"
    if snap.get("is_complete"):
        return "Payroll processing complete"
    if not snap.get("is_started"):
        return "Ready to start"
    current = snap["steps"][snap["current_step_index"]]
    if current["status"] == "flagged":
        return f"Review required: {len(current.get('flags') or [])} data flags"
    if snap.get("confirmation_requested"):
        return "Awaiting external approval"
    if snap.get("is_paused"):
        if current.get("requires_confirmation"):
            return "Confirmation required"
        return "Checkpoint reached"
    return "Processing"


def render_run_snapshot(snapshot: Union[RunSnapshot, Mapping[str, Any]]) -> RenderResult:
    """
    Projeção pura do estado da run: barra de progresso, lista de Steps,
    situação atual e flags do Step corrente.
    """
    snap = snapshot.to_dict() if isinstance(snapshot, RunSnapshot) else copy.deepcopy(dict(snapshot))
    progress = int(snap.get("overall_progress", 0))
    steps = snap.get("steps") or []
    index = snap.get("current_step_index", 0)
    status = _status_line(snap)

    text_lines = [f"Payroll run {snap.get('run_id')}: {progress}% ({status})"]
    rows = []
    for i, s in enumerate(steps):
        pointer = ">" if i == index and not snap.get("is_complete") else " "
        tags = [
            t
            for t, on in (
                ("checkpoint", s.get("is_checkpoint")),
                ("overridden", s.get("overridden")),
                ("remediated", s.get("remediated")),
            )
            if on
        ]
        suffix = f" [{', '.join(tags)}]" if tags else ""
        text_lines.append(f"{pointer} {_STATUS_ICONS.get(s['status'], '?')} {s['number']}. {s['name']}{suffix}")
        rows.append({"#": s["number"], "step": s["name"], "status": s["status"], "notes": ", ".join(tags)})

    flags = (steps[index].get("flags") or []) if steps else []
    if flags:
        text_lines.append("Flags:")
        text_lines.extend(f"  - {f.get('employee_name') or '-'}: {f.get('description')}" for f in flags)

    html_out = (
        "<div style='border:1px solid #ddd; border-radius:12px; padding:12px; margin:8px 0;'>"
        f"<h3 style='margin:0 0 6px 0;'>Payroll run <code>{_escape(snap.get('run_id'))}</code></h3>"
        f"<div style='opacity:0.75'>{_escape(status)}</div>"
        f"<progress value='{progress}' max='100'></progress> <strong>{progress}%</strong>"
        + render_table_html(rows, columns=["#", "step", "status", "notes"])
        + (
            render_table_html(
                flags,
                title="Flags",
                columns=["employee_name", "flag_type", "description", "target_page"],
            )
            if flags
            else ""
        )
        + "</div>"
    )

    return RenderResult(html=html_out, text="\n".join(text_lines))
