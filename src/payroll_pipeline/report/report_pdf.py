"""
src/payroll_pipeline/report/report_pdf.py

Camada de conversão MD → PDF dos relatórios de Step.

Regras:
- Não faz parte do core semântico: apenas apresenta o Markdown já gerado.
- Sem inferência, sem recálculo, sem acesso ao Manifest.
- Conversão em memória (bytes); a sessão nunca escreve em disco.
"""

from __future__ import annotations

import io
import re
from typing import Any, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import ListFlowable, ListItem, Paragraph, SimpleDocTemplate, Spacer

from payroll_pipeline.core.pipeline.collaborators import ReportArtifact
from payroll_pipeline.core.pipeline.types import PipelineRun, StepState

from .report_md import MarkdownReportProvider

_BOLD = re.compile(r"\*\*(.+?)\*\*")
_CODE = re.compile(r"`([^`]+)`")


def _inline(text: str) -> str:
    """Escapa para o mini-XML do reportlab e traduz **negrito** e `código`."""
    out = escape(text)
    out = _BOLD.sub(r"<b>\1</b>", out)
    return _CODE.sub(r"<font face='Courier'>\1</font>", out)


def markdown_to_pdf(md: str, *, title: Optional[str] = None, **opts: Any) -> bytes:
    """
    Converte Markdown simples (títulos, listas, parágrafos) em PDF A4.

    Linhas de tabela são mantidas como texto corrido.
    """
    styles = getSampleStyleSheet()
    story: List[Any] = []

    for raw in md.splitlines():
        line = raw.rstrip()

        if not line:
            story.append(Spacer(1, 8))
            continue

        if line.startswith("# "):
            story.append(Paragraph(_inline(line[2:]), styles["Heading1"]))
        elif line.startswith("## "):
            story.append(Paragraph(_inline(line[3:]), styles["Heading2"]))
        elif line.startswith("### "):
            story.append(Paragraph(_inline(line[4:]), styles["Heading3"]))
        elif line.startswith("- ") or line.startswith("* "):
            story.append(ListFlowable([ListItem(Paragraph(_inline(line[2:]), styles["Normal"]))], bulletType="bullet"))
        elif line.startswith("|--"):
            continue
        else:
            story.append(Paragraph(_inline(line), styles["Normal"]))

    buf = io.BytesIO()
    margin = int(opts.get("margin", 36))
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        rightMargin=margin,
        leftMargin=margin,
        topMargin=margin,
        bottomMargin=margin,
        title=title or "",
    )
    doc.build(story)
    return buf.getvalue()


class PdfReportProvider:
    """Mesmo conteúdo do MarkdownReportProvider, entregue como PDF."""

    def __init__(self, markdown: Optional[MarkdownReportProvider] = None):
        self._markdown = markdown or MarkdownReportProvider()

    def render(self, step: StepState, run: PipelineRun) -> ReportArtifact:
        md = self._markdown.render(step, run)
        stem = md.filename[:-3] if md.filename.endswith(".md") else md.filename
        return ReportArtifact(
            step_id=md.step_id,
            title=md.title,
            filename=f"{stem}.pdf",
            content=markdown_to_pdf(str(md.content), title=md.title),
            media_type="application/pdf",
        )
