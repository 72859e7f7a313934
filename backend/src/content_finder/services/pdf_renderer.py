"""Markdown blocks → paginated PDF (ReportLab canvas).

Layout is driven by a running vertical cursor measured from the top of the
page. Text blocks are ReportLab ``Paragraph`` flowables wrapped to the room
left on the page and split across pages when they do not fit. Code blocks are
drawn in per-page chunks so a background fill always sits behind its own
text, and headings move to the next page when the content that follows them
would not fit.
"""

from __future__ import annotations

import io
import math
from xml.sax.saxutils import escape

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph as RLParagraph

from .inline_parser import InlineRun, RunStyle, parse_inline
from .markdown_parser import (
    Block,
    Blockquote,
    CodeFence,
    Heading,
    HorizontalRule,
    ListBlock,
    Paragraph,
)

REPORT_TITLE = "Content Finder Report"

MARGIN = 15 * mm

SANS = "Helvetica"
SANS_BOLD = "Helvetica-Bold"
SANS_ITALIC = "Helvetica-Oblique"
MONO = "Courier"

COLOR_TEXT = HexColor("#333333")
COLOR_HEADING = HexColor("#1A1A1A")
COLOR_MUTED = HexColor("#666666")
COLOR_ACCENT = HexColor("#D35400")
COLOR_CODE_BG = HexColor("#F0F0F0")
COLOR_BORDER = HexColor("#CCCCCC")

SIZE_TITLE = 18
SIZE_SECTION = 14
HEADING_SIZES = {1: 16, 2: 14, 3: 12}
SIZE_BODY = 10
SIZE_CODE = 9
SIZE_CHROME = 8

BODY_LEADING = 1.4
HEADING_LEADING = 1.2
CODE_LEADING = 1.3

PARAGRAPH_SPACING = 3 * mm
HEADING_SPACING_TOP = 5 * mm
HEADING_SPACING_BOTTOM = 2 * mm
SECTION_SPACING = 7 * mm
CODE_PADDING = 3 * mm
QUOTE_INDENT = 5 * mm
QUOTE_BAR_WIDTH = 1
QUOTE_BAR_GAP = 2 * mm
LIST_INDENT = 5 * mm
LIST_MARKER_GAP = 1.5 * mm
HR_MARGIN = 4 * mm


def _style(name: str, font: str, size: float, leading: float, color, **kwargs) -> ParagraphStyle:
    return ParagraphStyle(name, fontName=font, fontSize=size, leading=size * leading, textColor=color, **kwargs)


BODY_STYLE = _style("Body", SANS, SIZE_BODY, BODY_LEADING, COLOR_TEXT)
QUOTE_STYLE = _style("Quote", SANS_ITALIC, SIZE_BODY, BODY_LEADING, COLOR_MUTED)
SECTION_STYLE = _style("Section", SANS_BOLD, SIZE_SECTION, HEADING_LEADING, COLOR_HEADING)
HEADING_STYLES = {
    level: _style(f"Heading{level}", SANS_BOLD, size, HEADING_LEADING, COLOR_HEADING)
    for level, size in HEADING_SIZES.items()
}


def render_pdf(blocks: list[Block], prompt: str, audience: str) -> bytes:
    """Render blocks into PDF bytes (A4, portrait)."""
    doc = _PdfDocument(prompt=prompt, audience=audience)
    doc.draw_title_section()
    for i, block in enumerate(blocks):
        nxt = blocks[i + 1] if i + 1 < len(blocks) else None
        doc.draw_block(block, nxt)
    return doc.finish()


def runs_to_markup(runs: list[InlineRun]) -> str:
    """ReportLab paragraph markup for inline runs. Run text is XML-escaped."""
    parts = []
    for run in runs:
        text = escape(run.text)
        if run.style == RunStyle.CODE:
            parts.append(f'<font face="{MONO}">{text}</font>')
        elif run.style == RunStyle.BOLD_ITALIC:
            parts.append(f"<b><i>{text}</i></b>")
        elif run.style == RunStyle.BOLD:
            parts.append(f"<b>{text}</b>")
        elif run.style == RunStyle.ITALIC:
            parts.append(f"<i>{text}</i>")
        else:
            parts.append(text)
    return "".join(parts)


def _flowable(text: str, style: ParagraphStyle, **kwargs) -> RLParagraph:
    return RLParagraph(runs_to_markup(parse_inline(text)), style, **kwargs)


class _PdfDocument:
    """Cursor-based page layout over a ReportLab canvas."""

    def __init__(self, prompt: str, audience: str) -> None:
        self._buf = io.BytesIO()
        self.page_width, self.page_height = A4
        self.usable_width = self.page_width - 2 * MARGIN
        self.prompt = prompt
        self.audience = audience
        self.c = canvas.Canvas(self._buf, pagesize=A4)
        self.c.setTitle(f"{REPORT_TITLE}: {prompt}")
        self.c.setSubject(audience)
        self.page = 1
        self.y = MARGIN
        self._draw_chrome()

    # pages

    @property
    def bottom(self) -> float:
        return self.page_height - MARGIN

    def fits(self, height: float) -> bool:
        return self.y + height <= self.bottom

    def at_top(self) -> bool:
        return self.y <= MARGIN + 0.5

    def new_page(self) -> None:
        self.c.showPage()
        self.page += 1
        self.y = MARGIN
        self._draw_chrome()

    def _draw_chrome(self) -> None:
        c = self.c
        c.setFont(SANS, SIZE_CHROME)
        c.setFillColor(COLOR_MUTED)
        header_y = self.page_height - MARGIN / 2
        c.drawString(MARGIN, header_y, REPORT_TITLE)
        label = self.prompt if len(self.prompt) <= 60 else self.prompt[:57] + "..."
        c.drawRightString(self.page_width - MARGIN, header_y, label)
        c.drawCentredString(self.page_width / 2, MARGIN / 2, f"Page {self.page}")

    def finish(self) -> bytes:
        self.c.save()
        return self._buf.getvalue()

    # primitives

    def draw_flowable(self, para: RLParagraph, x: float, width: float, *, bar_x: float | None = None) -> None:
        """Draw ``para`` at the cursor, splitting it across pages as needed."""
        while para is not None:
            room = self.bottom - self.y
            _, height = para.wrap(width, room)
            if height <= room:
                self._place(para, x, height, bar_x)
                return
            parts = para.split(width, room)
            if len(parts) < 2:
                if self.at_top():
                    # Taller than a page and unsplittable; let it overflow.
                    self._place(para, x, height, bar_x)
                    return
                self.new_page()
                continue
            head, para = parts[0], parts[1]
            _, head_height = head.wrap(width, room)
            self._place(head, x, head_height, bar_x)
            self.new_page()

    def _place(self, para: RLParagraph, x: float, height: float, bar_x: float | None) -> None:
        top = self.page_height - self.y
        para.drawOn(self.c, x, top - height)
        if bar_x is not None:
            self.c.setStrokeColor(COLOR_ACCENT)
            self.c.setLineWidth(QUOTE_BAR_WIDTH)
            self.c.line(bar_x, top, bar_x, top - height)
        self.y += height

    def draw_rule(self) -> None:
        if not self.fits(2 * HR_MARGIN):
            self.new_page()
        self.y += HR_MARGIN
        y = self.page_height - self.y
        self.c.setStrokeColor(COLOR_BORDER)
        self.c.setLineWidth(0.5 * mm)
        self.c.line(MARGIN, y, self.page_width - MARGIN, y)
        self.y += HR_MARGIN

    # sections

    def draw_title_section(self) -> None:
        self.y += HEADING_SPACING_TOP / 2
        line_height = SIZE_TITLE * HEADING_LEADING
        baseline = self.page_height - (self.y + line_height * 0.75)
        self.c.setFont(SANS_BOLD, SIZE_TITLE)
        self.c.setFillColor(COLOR_HEADING)
        self.c.drawCentredString(self.page_width / 2, baseline, REPORT_TITLE)
        self.y += line_height + SECTION_SPACING

        for label, value in (("User Prompt:", self.prompt), ("Audience:", self.audience)):
            self.draw_flowable(RLParagraph(escape(label), SECTION_STYLE), MARGIN, self.usable_width)
            self.y += PARAGRAPH_SPACING / 2
            self.draw_flowable(RLParagraph(escape(value), BODY_STYLE), MARGIN, self.usable_width)
            self.y += PARAGRAPH_SPACING
        self.y += SECTION_SPACING - PARAGRAPH_SPACING
        self.draw_rule()
        self.y += HR_MARGIN / 2
        self.draw_flowable(RLParagraph("Aggregated Content:", SECTION_STYLE), MARGIN, self.usable_width)
        self.y += PARAGRAPH_SPACING

    # blocks

    def draw_block(self, block: Block, next_block: Block | None = None) -> None:
        if isinstance(block, Heading):
            self._draw_heading(block, next_block)
        elif isinstance(block, Paragraph):
            self.draw_flowable(_flowable(block.text, BODY_STYLE), MARGIN, self.usable_width)
            self.y += PARAGRAPH_SPACING
        elif isinstance(block, ListBlock):
            self._draw_list(block)
        elif isinstance(block, CodeFence):
            self._draw_code(block)
        elif isinstance(block, Blockquote):
            self._draw_quote(block)
        elif isinstance(block, HorizontalRule):
            self.draw_rule()
            self.y += PARAGRAPH_SPACING / 2

    def _draw_heading(self, block: Heading, next_block: Block | None) -> None:
        para = _flowable(block.text, HEADING_STYLES.get(block.level, HEADING_STYLES[3]))
        _, height = para.wrap(self.usable_width, self.page_height)
        own = height + HEADING_SPACING_BOTTOM
        needed = (0 if self.at_top() else HEADING_SPACING_TOP) + own + self._lead_height(next_block)
        if not self.fits(needed) and not self.at_top():
            self.new_page()
        if not self.at_top():
            self.y += HEADING_SPACING_TOP
        self.draw_flowable(para, MARGIN, self.usable_width)
        self.y += HEADING_SPACING_BOTTOM

    def _lead_height(self, block: Block | None) -> float:
        """Height of the first unit of ``block`` that must share a page with a preceding heading."""
        if block is None:
            return 0.0
        if isinstance(block, CodeFence):
            usable = self.page_height - 2 * MARGIN
            return min(self._code_height(len(self._code_lines(block))), usable / 2)
        if isinstance(block, Heading):
            return HEADING_SIZES.get(block.level, HEADING_SIZES[3]) * HEADING_LEADING
        return SIZE_BODY * BODY_LEADING

    def _draw_list(self, block: ListBlock) -> None:
        markers = block.markers()
        marker_w = max(stringWidth(m, SANS, SIZE_BODY) for m in markers) + LIST_MARKER_GAP
        style = ParagraphStyle(
            "ListItem",
            parent=BODY_STYLE,
            leftIndent=marker_w,
            bulletIndent=0,
            bulletFontName=SANS,
            bulletFontSize=SIZE_BODY,
        )
        x = MARGIN + LIST_INDENT
        for item, marker in zip(block.items, markers):
            para = _flowable(item.text, style, bulletText=marker)
            self.draw_flowable(para, x, self.usable_width - LIST_INDENT)
        self.y += PARAGRAPH_SPACING / 2

    def _code_lines(self, block: CodeFence) -> list[str]:
        per_char = stringWidth("M", MONO, SIZE_CODE)
        max_chars = max(1, int((self.usable_width - 2 * CODE_PADDING) // per_char))
        out: list[str] = []
        for raw in block.lines or ("",):
            line = raw.expandtabs(4).rstrip()
            if not line:
                out.append("")
                continue
            for start in range(0, len(line), max_chars):
                out.append(line[start : start + max_chars])
        return out

    def _code_height(self, n_lines: int) -> float:
        return 2 * CODE_PADDING + n_lines * SIZE_CODE * CODE_LEADING

    def _draw_code(self, block: CodeFence) -> None:
        lines = self._code_lines(block)
        line_height = SIZE_CODE * CODE_LEADING
        self.y += PARAGRAPH_SPACING / 2
        if not self.fits(self._code_height(len(lines))) and not self.at_top():
            self.new_page()
        while lines:
            room = self.bottom - self.y - 2 * CODE_PADDING
            take = max(1, math.floor(room / line_height))
            if room < line_height and not self.at_top():
                self.new_page()
                continue
            chunk, lines = lines[:take], lines[take:]
            height = self._code_height(len(chunk))
            self.c.setFillColor(COLOR_CODE_BG)
            self.c.rect(MARGIN, self.page_height - self.y - height, self.usable_width, height, stroke=0, fill=1)
            self.c.setFillColor(COLOR_TEXT)
            self.c.setFont(MONO, SIZE_CODE)
            ty = self.y + CODE_PADDING
            for text in chunk:
                self.c.drawString(MARGIN + CODE_PADDING, self.page_height - (ty + line_height * 0.75), text)
                ty += line_height
            self.y += height
            if lines:
                self.new_page()
        self.y += PARAGRAPH_SPACING

    def _draw_quote(self, block: Blockquote) -> None:
        text_x = MARGIN + QUOTE_INDENT + QUOTE_BAR_WIDTH + QUOTE_BAR_GAP
        width = self.usable_width - (text_x - MARGIN)
        self.y += PARAGRAPH_SPACING / 2
        self.draw_flowable(_flowable(block.text, QUOTE_STYLE), text_x, width, bar_x=MARGIN + QUOTE_INDENT)
        self.y += PARAGRAPH_SPACING
