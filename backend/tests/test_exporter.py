import io
import json

import pytest
from docx import Document
from pypdf import PdfReader

from content_finder.services.exporter import (
    EXPORTERS,
    default_filename,
    export_docx,
    export_json,
    export_json_structured,
    export_markdown,
    export_pdf,
)
from content_finder.services.inline_parser import parse_inline
from content_finder.services.markdown_parser import MarkdownFormatError
from content_finder.services.pdf_renderer import runs_to_markup

SAMPLE = """# The Roman Republic

Rome was governed by **two consuls** elected *every year*.

1. Consuls
2. Senate

Some text between lists.

1. Assemblies

> Senatus Populusque Romanus

---

```python
print("**not bold**")
```
"""


def test_default_filename_is_slugged():
    name = default_filename("Hello, World!", "High School", "pdf")
    assert name == "content-finder-hello-world-high-school.pdf"


def test_default_filename_strips_audience_punctuation():
    assert default_filename("Rome", "Ph.D. (Expert)", "md") == "content-finder-rome-phd-expert.md"


def test_default_filename_truncates_prompt():
    name = default_filename("a" * 80, "Expert", "md")
    assert name == f"content-finder-{'a' * 30}-expert.md"


def test_explicit_filename_wins():
    out = export_markdown("# x", "p", "a", filename="mine.md")
    assert out.filename == "mine.md"


def test_pdf_export_contains_title_prompt_and_content():
    out = export_pdf(SAMPLE, "Roman Republic", "High School")
    assert out.media_type == "application/pdf"
    assert out.data.startswith(b"%PDF")
    reader = PdfReader(io.BytesIO(out.data))
    text = "\n".join(page.extract_text() for page in reader.pages)
    assert "Content Finder Report" in text
    assert "Roman Republic" in text
    assert "High School" in text
    assert "two consuls" in text
    assert "Page 1" in text
    assert '"**not bold**"' in text


def test_pdf_long_document_paginates():
    md = "\n\n".join(f"Paragraph {i} " + "lorem ipsum dolor sit amet " * 12 for i in range(80))
    reader = PdfReader(io.BytesIO(export_pdf(md, "Long", "Expert").data))
    assert len(reader.pages) > 1
    assert "Page 2" in reader.pages[1].extract_text()


def test_pdf_long_code_block_spans_pages():
    md = "# Listing\n\n```\n" + "\n".join(f"line {i}" for i in range(200)) + "\n```"
    reader = PdfReader(io.BytesIO(export_pdf(md, "Code", "Expert").data))
    text = "\n".join(page.extract_text() for page in reader.pages)
    assert len(reader.pages) > 1
    assert "line 0" in text and "line 199" in text


def test_runs_to_markup_escapes_text():
    markup = runs_to_markup(parse_inline("a < b & **c** `x<y`"))
    assert markup == 'a &lt; b &amp; <b>c</b> <font face="Courier">x&lt;y</font>'


def test_pdf_keeps_markup_characters_literal():
    reader = PdfReader(io.BytesIO(export_pdf("if a < b & c > d then *go*", "p", "a").data))
    assert "if a < b & c > d then" in reader.pages[0].extract_text()


def _page_of(reader: PdfReader, needle: str) -> int:
    for i, page in enumerate(reader.pages):
        if needle in page.extract_text():
            return i
    raise AssertionError(f"{needle!r} not found")


def test_heading_is_never_orphaned_at_page_bottom():
    for count in range(30, 60):
        filler = "\n\n".join(f"Filler paragraph number {i}." for i in range(count))
        md = f"{filler}\n\n## ORPHANCHECK\n\nBODYLINE follows the heading."
        reader = PdfReader(io.BytesIO(export_pdf(md, "Orphans", "Expert").data))
        assert _page_of(reader, "ORPHANCHECK") == _page_of(reader, "BODYLINE"), count


def test_each_code_chunk_has_its_own_background():
    md = "Intro\n\n```\n" + "\n".join(f"codeline {i}" for i in range(150)) + "\n```"
    reader = PdfReader(io.BytesIO(export_pdf(md, "Code", "Expert").data))
    code_pages = 0
    for page in reader.pages:
        stream = page.get_contents().get_data()
        first_code = stream.find(b"(codeline ")
        if first_code < 0:
            continue
        code_pages += 1
        assert b" re" in stream[:first_code]
    assert code_pages > 1


def test_docx_export_structure():
    out = export_docx(SAMPLE, "Roman Republic", "High School")
    doc = Document(io.BytesIO(out.data))
    texts = [p.text for p in doc.paragraphs]
    assert texts[0] == "Content Finder"
    assert "User Prompt: Roman Republic" in texts
    assert "Audience: High School" in texts

    heading = next(p for p in doc.paragraphs if p.style.name == "Heading 1")
    assert heading.text == "The Roman Republic"

    body = next(p for p in doc.paragraphs if p.text.startswith("Rome was governed"))
    bold = [r.text for r in body.runs if r.bold]
    italic = [r.text for r in body.runs if r.italic]
    assert bold == ["two consuls"]
    assert italic == ["every year"]

    code = next(p for p in doc.paragraphs if "print(" in p.text)
    assert '"**not bold**"' in code.text


def test_docx_numbering_restarts_per_list():
    doc = Document(io.BytesIO(export_docx(SAMPLE, "p", "a").data))
    numbered = [p for p in doc.paragraphs if p.style.name == "List Number"]
    assert [p.text for p in numbered] == ["Consuls", "Senate", "Assemblies"]
    num_ids = [p._p.pPr.numPr.numId.val for p in numbered]
    assert num_ids[0] == num_ids[1]
    assert num_ids[2] != num_ids[0]


def test_json_flat_export():
    out = export_json(SAMPLE, "Roman Republic", "High School")
    payload = json.loads(out.data)
    assert payload == {"prompt": "Roman Republic", "audience": "High School", "content": SAMPLE}
    assert out.filename.endswith(".json")


def test_json_structured_export():
    payload = json.loads(export_json_structured(SAMPLE, "p", "a").data)
    types = [n["type"] for n in payload["content"]]
    assert types == ["heading", "paragraph", "list", "paragraph", "list", "blockquote", "hr", "code"]
    assert payload["content"][-1]["text"] == 'print("**not bold**")'


def test_markdown_export_is_verbatim():
    out = export_markdown(SAMPLE, "p", "a")
    assert out.data.decode("utf-8") == SAMPLE
    assert out.media_type.startswith("text/markdown")


@pytest.mark.parametrize("fmt", ["pdf", "docx", "json-structured"])
def test_unterminated_fence_fails_before_rendering(fmt):
    with pytest.raises(MarkdownFormatError):
        EXPORTERS[fmt]("# A\n\n```\nnever closed", "p", "a")
