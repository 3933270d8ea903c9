from .renderers import (
    RenderResult,
    render_kv_table_html,
    render_payload,
    render_run_snapshot,
    render_table_html,
)

__all__ = [
    "RenderResult",
    "render_payload",
    "render_run_snapshot",
    "render_kv_table_html",
    "render_table_html",
]
