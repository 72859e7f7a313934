"""Markdown blocks → DOCX (python-docx).

Paragraphs are tagged with the built-in styles of the default template
(``Heading 1..3``, ``List Bullet``, ``List Number``, ``Quote``). Each ordered
list block gets its own numbering instance with a start override, so
numbering restarts at 1 for every list.
"""

from __future__ import annotations

import io

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor

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

DOCUMENT_TITLE = "Content Finder"
CODE_FONT = "Courier New"
CODE_SHADING = "F0F0F0"
QUOTE_BORDER = "D35400"
RULE_BORDER = "CCCCCC"

HEADING_SIZES = {1: 16, 2: 14, 3: 12}

# Elements that follow w:shd inside w:pPr; schema order matters to Word.
_AFTER_SHD = (
    "w:tabs", "w:suppressAutoHyphens", "w:kinsoku", "w:wordWrap", "w:overflowPunct",
    "w:topLinePunct", "w:autoSpaceDE", "w:autoSpaceDN", "w:bidi", "w:adjustRightInd",
    "w:snapToGrid", "w:spacing", "w:ind", "w:contextualSpacing", "w:mirrorIndents",
    "w:suppressOverlap", "w:jc", "w:textDirection", "w:textAlignment",
    "w:textboxTightWrap", "w:outlineLvl", "w:divId", "w:cnfStyle", "w:rPr",
    "w:sectPr", "w:pPrChange",
)


def render_docx(blocks: list[Block], prompt: str, audience: str) -> bytes:
    """Render blocks into DOCX bytes."""
    doc = Document()
    _apply_styles(doc)

    title = doc.add_paragraph(DOCUMENT_TITLE, style="Title")
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    for label, value in (("User Prompt: ", prompt), ("Audience: ", audience)):
        p = doc.add_paragraph()
        p.add_run(label).bold = True
        p.add_run(value)
    doc.add_paragraph().paragraph_format.space_after = Pt(12)

    for block in blocks:
        _add_block(doc, block)

    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def _apply_styles(doc) -> None:
    for level, size in HEADING_SIZES.items():
        style = doc.styles[f"Heading {level}"]
        style.font.size = Pt(size)
        style.font.bold = True
        style.font.color.rgb = RGBColor(0x33, 0x33, 0x33)
        style.paragraph_format.space_before = Pt(24)
        style.paragraph_format.space_after = Pt(12)


def _add_runs(paragraph, runs: list[InlineRun]) -> None:
    for run in runs:
        r = paragraph.add_run(run.text)
        if run.style == RunStyle.CODE:
            r.font.name = CODE_FONT
            continue
        if run.bold:
            r.bold = True
        if run.italic:
            r.italic = True


def _add_block(doc, block: Block) -> None:
    if isinstance(block, Heading):
        p = doc.add_paragraph(style=f"Heading {block.level}")
        _add_runs(p, parse_inline(block.text))
    elif isinstance(block, Paragraph):
        p = doc.add_paragraph()
        _add_runs(p, parse_inline(block.text))
        p.paragraph_format.space_after = Pt(6)
    elif isinstance(block, ListBlock):
        _add_list(doc, block)
    elif isinstance(block, CodeFence):
        _add_code(doc, block)
    elif isinstance(block, Blockquote):
        p = doc.add_paragraph(style="Quote")
        _add_runs(p, parse_inline(block.text))
        _set_border(p, "left", QUOTE_BORDER, size=18)
    elif isinstance(block, HorizontalRule):
        p = doc.add_paragraph()
        _set_border(p, "bottom", RULE_BORDER, size=6)


def _add_list(doc, block: ListBlock) -> None:
    num_id = None
    for item, marker in zip(block.items, block.markers()):
        if not item.ordered:
            p = doc.add_paragraph(style="List Bullet")
            _add_runs(p, parse_inline(item.text))
            continue
        p = doc.add_paragraph(style="List Number")
        if num_id is None:
            num_id = _restart_numbering(doc)
        if num_id is None:
            # Template without a numbering definition: fall back to a literal marker.
            p.add_run(marker + " ")
        else:
            num_pr = p._p.get_or_add_pPr().get_or_add_numPr()
            num_pr.get_or_add_ilvl().val = 0
            num_pr.get_or_add_numId().val = num_id
        _add_runs(p, parse_inline(item.text))


def _restart_numbering(doc) -> int | None:
    """Create a new ``w:num`` sharing the List Number definition, starting at 1."""
    style = doc.styles["List Number"]
    p_pr = style.element.pPr
    if p_pr is None or p_pr.numPr is None or p_pr.numPr.numId is None:
        return None
    numbering = doc.part.numbering_part.element
    base = numbering.num_having_numId(p_pr.numPr.numId.val)
    num = numbering.add_num(base.abstractNumId.val)
    num.add_lvlOverride(ilvl=0).add_startOverride(1)
    return num.numId


def _add_code(doc, block: CodeFence) -> None:
    p = doc.add_paragraph()
    fmt = p.paragraph_format
    fmt.space_before = Pt(6)
    fmt.space_after = Pt(6)
    lines = list(block.lines) or [""]
    for i, line in enumerate(lines):
        run = p.add_run(line)
        run.font.name = CODE_FONT
        run.font.size = Pt(9)
        if i < len(lines) - 1:
            run.add_break()
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), CODE_SHADING)
    p._p.get_or_add_pPr().insert_element_before(shd, *_AFTER_SHD)


def _set_border(paragraph, side: str, color: str, size: int) -> None:
    p_pr = paragraph._p.get_or_add_pPr()
    borders = p_pr.find(qn("w:pBdr"))
    if borders is None:
        borders = OxmlElement("w:pBdr")
        p_pr.insert_element_before(borders, "w:shd", *_AFTER_SHD)
    edge = OxmlElement(f"w:{side}")
    edge.set(qn("w:val"), "single")
    edge.set(qn("w:sz"), str(size))
    edge.set(qn("w:space"), "4")
    edge.set(qn("w:color"), color)
    borders.append(edge)
