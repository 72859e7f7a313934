"""Load settings from environment (.env and env vars)."""

from __future__ import annotations

import os
from pathlib import Path

# Load .env from backend root if present
_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
if _env_path.exists():
    from dotenv import load_dotenv
    load_dotenv(_env_path)


def _str(key: str, default: str = "") -> str:
    return (os.environ.get(key) or "").strip() or default


def _int(key: str, default: int) -> int:
    raw = _str(key)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


# LLM (OpenAI)
OPENAI_API_KEY = _str("OPENAI_API_KEY")
LLM_MODEL = _str("LLM_MODEL") or "gpt-4o-mini"
IMAGE_MODEL = _str("IMAGE_MODEL") or "gpt-image-1"
# Content-safety threshold passed to the image API: "auto" (stricter) or "low"
IMAGE_MODERATION = _str("IMAGE_MODERATION") or "auto"

# Search: "serper" or "simulated" (test double with canned results)
SEARCH_PROVIDER = _str("SEARCH_PROVIDER") or "serper"
SEARCH_API_URL = _str("SEARCH_API_URL") or "https://google.serper.dev/search"
SEARCH_MAX_RESULTS = _int("SEARCH_MAX_RESULTS", 5)

LOG_LEVEL = _str("LOG_LEVEL") or "INFO"


def search_api_key() -> str:
    """Read at call time so a key added after startup is picked up."""
    return _str("SEARCH_API_KEY")
