"""Markdown blocks → structured JSON node tree.

Each node is a plain dict with a ``type`` key. Text-bearing nodes also carry
``runs``, the inline spans from ``inline_parser`` as ``{style, text}`` dicts.
Code nodes never carry runs; their content is verbatim.
"""

from __future__ import annotations

from typing import Any

from .inline_parser import parse_inline
from .markdown_parser import (
    Block,
    Blockquote,
    CodeFence,
    Heading,
    HorizontalRule,
    ListBlock,
    Paragraph,
)


def build_json_nodes(blocks: list[Block]) -> list[dict[str, Any]]:
    """Convert parsed blocks to a JSON-serializable node array."""
    return [_node_for_block(b) for b in blocks]


def _runs(text: str) -> list[dict[str, str]]:
    return [r.to_dict() for r in parse_inline(text)]


def _node_for_block(block: Block) -> dict[str, Any]:
    if isinstance(block, Heading):
        return {"type": "heading", "level": block.level, "text": block.text, "runs": _runs(block.text)}
    if isinstance(block, Paragraph):
        # Keep source line breaks so the node is lossless; runs use the reflowed text.
        return {"type": "paragraph", "text": "\n".join(block.lines), "runs": _runs(block.text)}
    if isinstance(block, ListBlock):
        items = []
        for item, marker in zip(block.items, block.markers()):
            items.append(
                {
                    "ordered": item.ordered,
                    "number": int(marker[:-1]) if item.ordered else None,
                    "text": item.text,
                    "runs": _runs(item.text),
                }
            )
        return {"type": "list", "ordered": all(it.ordered for it in block.items), "items": items}
    if isinstance(block, CodeFence):
        return {"type": "code", "language": block.language, "text": block.text}
    if isinstance(block, Blockquote):
        return {"type": "blockquote", "text": block.text, "runs": _runs(block.text)}
    if isinstance(block, HorizontalRule):
        return {"type": "hr"}
    raise TypeError(f"Unsupported block: {block!r}")
