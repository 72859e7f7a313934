"""Apply grammar suggestions to text by position.

Suggestions carry the offset of their ``problematic_text`` in the checked
text. Applying one replaces that span (or the nearest matching occurrence if
the text moved), removes only that suggestion, and shifts the offsets of the
ones after it. Suggestions overlapping the replaced span are dropped since
their text no longer exists.
"""

from __future__ import annotations

from ..models import GrammarSuggestion


class SuggestionNotApplicable(ValueError):
    pass


def resolve_offsets(text: str, suggestions: list[GrammarSuggestion]) -> list[GrammarSuggestion]:
    """Fill ``offset`` for each suggestion, scanning forward through the text.

    Repeated substrings resolve to successive occurrences in suggestion order.
    """
    resolved: list[GrammarSuggestion] = []
    cursor = 0
    for s in suggestions:
        if not s.problematic_text:
            resolved.append(s.model_copy(update={"offset": None}))
            continue
        pos = text.find(s.problematic_text, cursor)
        if pos < 0:
            pos = text.find(s.problematic_text)
        if pos >= 0:
            cursor = pos + len(s.problematic_text)
        resolved.append(s.model_copy(update={"offset": pos if pos >= 0 else None}))
    return resolved


def _locate(text: str, s: GrammarSuggestion) -> int:
    needle = s.problematic_text
    if not needle:
        raise SuggestionNotApplicable("Suggestion has no problematic text")
    if s.offset is not None and text[s.offset : s.offset + len(needle)] == needle:
        return s.offset
    positions = []
    start = text.find(needle)
    while start >= 0:
        positions.append(start)
        start = text.find(needle, start + 1)
    if not positions:
        raise SuggestionNotApplicable(f"Text {needle!r} no longer appears in the content")
    if s.offset is None:
        return positions[0]
    return min(positions, key=lambda p: abs(p - s.offset))


def apply_suggestion(
    text: str, suggestions: list[GrammarSuggestion], index: int
) -> tuple[str, list[GrammarSuggestion]]:
    """Return the edited text and the remaining, re-positioned suggestions."""
    if not 0 <= index < len(suggestions):
        raise SuggestionNotApplicable(f"No suggestion at index {index}")
    target = suggestions[index]
    start = _locate(text, target)
    end = start + len(target.problematic_text)
    new_text = text[:start] + target.suggestion + text[end:]
    delta = len(target.suggestion) - (end - start)

    remaining: list[GrammarSuggestion] = []
    for i, s in enumerate(suggestions):
        if i == index:
            continue
        if s.offset is None:
            remaining.append(s)
            continue
        s_end = s.offset + len(s.problematic_text)
        if s_end <= start:
            remaining.append(s)
        elif s.offset >= end:
            remaining.append(s.model_copy(update={"offset": s.offset + delta}))
    return new_text, remaining
