"""Export entry points: markdown → downloadable PDF / DOCX / JSON / Markdown.

The PDF, DOCX and structured JSON exporters parse the markdown first, so a
formatting error surfaces as ``MarkdownFormatError`` before any bytes are
produced. None of the exporters modifies the markdown it is given.
"""

from __future__ import annotations

import json
import logging
import re
import unicodedata
from dataclasses import dataclass
from urllib.parse import quote

from .block_converter import build_json_nodes
from .docx_renderer import render_docx
from .markdown_parser import parse_markdown
from .pdf_renderer import render_pdf

logger = logging.getLogger(__name__)

FILENAME_PREFIX = "content-finder"
PROMPT_SLUG_LENGTH = 30

MEDIA_TYPES = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "json": "application/json",
    "md": "text/markdown; charset=utf-8",
}


@dataclass(frozen=True)
class ExportedFile:
    filename: str
    media_type: str
    data: bytes


def _slug(text: str) -> str:
    text = re.sub(r"[^\w\s]", "", text.strip())
    return re.sub(r"\s+", "-", text).lower()


def default_filename(prompt: str, audience: str, ext: str) -> str:
    """``content-finder-<prompt>-<audience>.<ext>``, prompt part capped at 30 chars."""
    prompt_part = _slug(prompt)[:PROMPT_SLUG_LENGTH]
    return f"{FILENAME_PREFIX}-{prompt_part}-{_slug(audience)}.{ext}"


def clean_filename(name: str) -> str:
    """Drop path separators, quotes and control characters from a client-chosen name."""
    return re.sub(r'[\x00-\x1f\x7f"\\/]', "", name).strip()


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback plus the RFC 5987 UTF-8 name."""
    ascii_name = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    ascii_name = clean_filename(ascii_name)
    if not ascii_name or ascii_name.startswith("."):
        ascii_name = f"{FILENAME_PREFIX}{ascii_name}"
    return f'attachment; filename="{ascii_name}"; filename*=UTF-8\'\'{quote(filename, safe="")}'


def _file(data: bytes, ext: str, prompt: str, audience: str, filename: str | None) -> ExportedFile:
    name = clean_filename(filename or "") or default_filename(prompt, audience, ext)
    logger.info("Exported %s (%d bytes)", name, len(data))
    return ExportedFile(filename=name, media_type=MEDIA_TYPES[ext], data=data)


def export_pdf(markdown: str, prompt: str, audience: str, filename: str | None = None) -> ExportedFile:
    blocks = parse_markdown(markdown)
    return _file(render_pdf(blocks, prompt, audience), "pdf", prompt, audience, filename)


def export_docx(markdown: str, prompt: str, audience: str, filename: str | None = None) -> ExportedFile:
    blocks = parse_markdown(markdown)
    return _file(render_docx(blocks, prompt, audience), "docx", prompt, audience, filename)


def export_json(markdown: str, prompt: str, audience: str, filename: str | None = None) -> ExportedFile:
    """Flat variant: ``content`` is the markdown string itself."""
    payload = {"prompt": prompt, "audience": audience, "content": markdown}
    data = json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8")
    return _file(data, "json", prompt, audience, filename)


def export_json_structured(
    markdown: str, prompt: str, audience: str, filename: str | None = None
) -> ExportedFile:
    """Structured variant: ``content`` is the block node array."""
    nodes = build_json_nodes(parse_markdown(markdown))
    payload = {"prompt": prompt, "audience": audience, "content": nodes}
    data = json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8")
    return _file(data, "json", prompt, audience, filename)


def export_markdown(markdown: str, prompt: str, audience: str, filename: str | None = None) -> ExportedFile:
    return _file(markdown.encode("utf-8"), "md", prompt, audience, filename)


EXPORTERS = {
    "pdf": export_pdf,
    "docx": export_docx,
    "json": export_json,
    "json-structured": export_json_structured,
    "markdown": export_markdown,
}
