from typing import Any, Mapping

from payroll_pipeline.core.config.errors import UnsupportedReportFormatError

from .report_md import MarkdownReportProvider, generate_run_report_md
from .report_pdf import PdfReportProvider, markdown_to_pdf


def provider_from_config(config: Mapping[str, Any]):
    """Provedor de artefatos conforme `report.format` (padrão: markdown)."""
    fmt = str(((config or {}).get("report") or {}).get("format", "markdown")).lower()
    if fmt in ("markdown", "md"):
        return MarkdownReportProvider()
    if fmt == "pdf":
        return PdfReportProvider()
    raise UnsupportedReportFormatError(f"Formato de relatório não suportado: {fmt}")


__all__ = [
    "MarkdownReportProvider",
    "PdfReportProvider",
    "generate_run_report_md",
    "markdown_to_pdf",
    "provider_from_config",
]
