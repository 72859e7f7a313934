"""Markdown → HTML for on-screen display (markdown-it-py)."""

from __future__ import annotations

from markdown_it import MarkdownIt


def _create_renderer() -> MarkdownIt:
    # Raw HTML in generated content is escaped rather than passed through.
    md = MarkdownIt("commonmark", {"html": False})
    md.enable("table")
    md.enable("strikethrough")
    return md


_md = _create_renderer()


def render_html(markdown: str) -> str:
    if not markdown or not markdown.strip():
        return '<p class="empty">No content to display.</p>'
    return _md.render(markdown)
