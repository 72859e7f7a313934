"""Export a markdown chapter from disk.

Usage:
  poetry run python -m content_finder.scripts.export_markdown chapter.md \
      --format pdf --prompt "History of Rome" --audience "High School"

Writes the file next to the input unless --out is given.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from ..services.exporter import EXPORTERS
from ..services.markdown_parser import MarkdownFormatError


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Export a markdown chapter")
    parser.add_argument("path", type=Path)
    parser.add_argument("--format", dest="fmt", choices=sorted(EXPORTERS), default="pdf")
    parser.add_argument("--prompt", default="")
    parser.add_argument("--audience", default="")
    parser.add_argument("--out", type=Path, default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    if not args.path.exists():
        raise SystemExit(f"File not found: {args.path}")
    markdown = args.path.read_text(encoding="utf-8")
    prompt = args.prompt or args.path.stem

    try:
        exported = EXPORTERS[args.fmt](markdown, prompt, args.audience or "General Public")
    except MarkdownFormatError as e:
        raise SystemExit(f"Cannot export {args.path}: {e}")

    out = args.out or args.path.parent / exported.filename
    out.write_bytes(exported.data)
    print("written:", out)


if __name__ == "__main__":
    main()
