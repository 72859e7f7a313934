"""Inline span parsing: split a line of text into styled runs.

Single pass, non-recursive. At each position the delimiters are tried in
order ``***`` (bold-italic), ``**`` (bold), ``*`` (italic), `` ` `` (code).
A delimiter only opens a run when a matching closer exists later with
non-empty text between them; otherwise it is kept as plain text. There is no
escape mechanism, so ``\\*`` is a literal backslash followed by a delimiter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RunStyle(str, Enum):
    PLAIN = "plain"
    BOLD = "bold"
    ITALIC = "italic"
    BOLD_ITALIC = "bold_italic"
    CODE = "code"


@dataclass(frozen=True)
class InlineRun:
    style: RunStyle
    text: str

    @property
    def bold(self) -> bool:
        return self.style in (RunStyle.BOLD, RunStyle.BOLD_ITALIC)

    @property
    def italic(self) -> bool:
        return self.style in (RunStyle.ITALIC, RunStyle.BOLD_ITALIC)

    def to_dict(self) -> dict[str, str]:
        return {"style": self.style.value, "text": self.text}


# Checked in this order at every position.
_DELIMITERS: tuple[tuple[str, RunStyle], ...] = (
    ("***", RunStyle.BOLD_ITALIC),
    ("**", RunStyle.BOLD),
    ("*", RunStyle.ITALIC),
    ("`", RunStyle.CODE),
)


def parse_inline(text: str) -> list[InlineRun]:
    """Parse ``text`` into an ordered list of runs. Plain text is preserved verbatim."""
    runs: list[InlineRun] = []
    plain: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        match = _match_at(text, i)
        if match is None:
            plain.append(text[i])
            i += 1
            continue
        style, content, end = match
        if plain:
            runs.append(InlineRun(RunStyle.PLAIN, "".join(plain)))
            plain = []
        runs.append(InlineRun(style, content))
        i = end
    if plain:
        runs.append(InlineRun(RunStyle.PLAIN, "".join(plain)))
    return runs


def _match_at(text: str, pos: int) -> tuple[RunStyle, str, int] | None:
    for delim, style in _DELIMITERS:
        if not text.startswith(delim, pos):
            continue
        start = pos + len(delim)
        close = text.find(delim, start)
        if close > start:
            return style, text[start:close], close + len(delim)
    return None


def plain_text(runs: list[InlineRun]) -> str:
    """Concatenate run text without any delimiters."""
    return "".join(r.text for r in runs)
