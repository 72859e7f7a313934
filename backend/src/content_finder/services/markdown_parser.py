"""Markdown parsing to typed blocks for export.

This is a small, line-based block parser shared by the PDF, DOCX and JSON
exporters. It understands headings, paragraphs, flat lists, fenced code,
blockquotes and horizontal rules. For on-screen display use the full
renderer in ``html_renderer`` instead.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

MAX_HEADING_LEVEL = 3

_HEADING_RE = re.compile(r"^(#{1,6})(?:\s+(.*))?$")
_UNORDERED_RE = re.compile(r"^[-*]\s+(.*)$")
_ORDERED_RE = re.compile(r"^(\d+)[.)]\s+(.*)$")
_HR_LINES = ("---", "***", "___")


class MarkdownFormatError(ValueError):
    """Raised when markdown cannot be segmented without losing content."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        if line_number is not None:
            message = f"{message} (line {line_number})"
        super().__init__(message)
        self.line_number = line_number


class LineKind(str, Enum):
    BLANK = "blank"
    HEADING = "heading"
    LIST_ITEM = "list_item"
    BLOCKQUOTE = "blockquote"
    FENCE = "fence"
    HR = "hr"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class ClassifiedLine:
    kind: LineKind
    text: str = ""
    level: int = 0
    ordered: bool = False
    index: int | None = None
    language: str | None = None


def classify_line(line: str) -> ClassifiedLine:
    """Tag one raw line and strip its marker syntax."""
    stripped = line.strip()
    if not stripped:
        return ClassifiedLine(LineKind.BLANK)
    if stripped.startswith("```"):
        return ClassifiedLine(LineKind.FENCE, text=line, language=stripped[3:].strip() or None)
    # Exactly three characters; "----" stays a paragraph.
    if stripped in _HR_LINES:
        return ClassifiedLine(LineKind.HR)
    m = _HEADING_RE.match(stripped)
    if m:
        level = min(len(m.group(1)), MAX_HEADING_LEVEL)
        return ClassifiedLine(LineKind.HEADING, text=(m.group(2) or "").strip(), level=level)
    if stripped.startswith(">"):
        return ClassifiedLine(LineKind.BLOCKQUOTE, text=stripped[1:].strip())
    m = _UNORDERED_RE.match(stripped)
    if m:
        return ClassifiedLine(LineKind.LIST_ITEM, text=m.group(1).strip())
    m = _ORDERED_RE.match(stripped)
    if m:
        return ClassifiedLine(LineKind.LIST_ITEM, text=m.group(2).strip(), ordered=True, index=int(m.group(1)))
    return ClassifiedLine(LineKind.PARAGRAPH, text=stripped)


# Blocks


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    type: str = field(default="heading", init=False)


@dataclass(frozen=True)
class Paragraph:
    lines: tuple[str, ...]
    type: str = field(default="paragraph", init=False)

    @property
    def text(self) -> str:
        """Soft line breaks collapse to spaces, as in rendered markdown."""
        return " ".join(self.lines)


@dataclass(frozen=True)
class ListItem:
    ordered: bool
    index: int | None
    text: str


@dataclass(frozen=True)
class ListBlock:
    items: tuple[ListItem, ...]
    type: str = field(default="list", init=False)

    def markers(self) -> list[str]:
        """Display markers per item. Ordered numbering starts at 1 for every block."""
        out: list[str] = []
        number = 0
        for item in self.items:
            if item.ordered:
                number += 1
                out.append(f"{number}.")
            else:
                out.append("•")
        return out


@dataclass(frozen=True)
class CodeFence:
    language: str | None
    lines: tuple[str, ...]
    type: str = field(default="code", init=False)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class Blockquote:
    text: str
    type: str = field(default="blockquote", init=False)


@dataclass(frozen=True)
class HorizontalRule:
    type: str = field(default="hr", init=False)


Block = Union[Heading, Paragraph, ListBlock, CodeFence, Blockquote, HorizontalRule]


def parse_markdown(markdown: str) -> list[Block]:
    """Parse markdown into an ordered list of blocks.

    Raises MarkdownFormatError for an unterminated code fence.
    """
    lines = markdown.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    blocks: list[Block] = []
    para: list[str] = []
    items: list[ListItem] = []

    def flush() -> None:
        if para:
            blocks.append(Paragraph(tuple(para)))
            para.clear()
        if items:
            blocks.append(ListBlock(tuple(items)))
            items.clear()

    i = 0
    while i < len(lines):
        cl = classify_line(lines[i])
        if cl.kind == LineKind.FENCE:
            flush()
            opened_at = i + 1
            code_lines: list[str] = []
            i += 1
            while i < len(lines) and not lines[i].strip().startswith("```"):
                code_lines.append(lines[i])
                i += 1
            if i >= len(lines):
                raise MarkdownFormatError("Unterminated code fence", line_number=opened_at)
            blocks.append(CodeFence(cl.language, tuple(code_lines)))
            i += 1
            continue
        if cl.kind == LineKind.BLANK:
            flush()
        elif cl.kind == LineKind.LIST_ITEM:
            if para:
                flush()
            items.append(ListItem(cl.ordered, cl.index, cl.text))
        elif cl.kind == LineKind.PARAGRAPH:
            if items:
                flush()
            para.append(cl.text)
        else:
            flush()
            if cl.kind == LineKind.HEADING:
                blocks.append(Heading(cl.level, cl.text))
            elif cl.kind == LineKind.BLOCKQUOTE:
                blocks.append(Blockquote(cl.text))
            else:
                blocks.append(HorizontalRule())
        i += 1
    flush()
    return blocks
