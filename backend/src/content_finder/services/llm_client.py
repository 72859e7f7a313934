"""LLM collaborators: structured text generation and image generation (OpenAI)."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..config import IMAGE_MODEL, IMAGE_MODERATION, LLM_MODEL, OPENAI_API_KEY
from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# Transparent 1x1 GIF returned when image generation fails.
FAILED_IMAGE_DATA_URI = "data:image/gif;base64,R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7"


class LLMError(RuntimeError):
    """The provider failed or returned something other than the declared shape."""


class TextGenerator(Protocol):
    async def generate(self, schema: type[T], template: str, variables: dict[str, Any]) -> T: ...


@dataclass
class GeneratedImage:
    data_uri: str
    text: str | None = None


class ImageGenerator(Protocol):
    async def generate_image(self, prompt: str, moderation: str = "auto") -> GeneratedImage: ...


def _strip_code_fence(content: str) -> str:
    # Models sometimes wrap JSON in ```json ... ``` despite the response format.
    if content.startswith("```"):
        lines = content.split("\n")
        if lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        content = "\n".join(lines)
    return content


def _make_client(api_key: str | None):
    key = (api_key or "").strip() or OPENAI_API_KEY
    if not key:
        raise LLMError("OPENAI_API_KEY is not set; cannot call the LLM provider")
    from openai import AsyncOpenAI
    return AsyncOpenAI(api_key=key)


class OpenAITextGenerator:
    """generate(schema, template, vars) → validated schema instance."""

    def __init__(self, *, api_key: str | None = None, model: str | None = None, client: Any = None) -> None:
        self._api_key = api_key
        self.model = (model or "").strip() or LLM_MODEL
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = _make_client(self._api_key)
        return self._client

    async def generate(self, schema: type[T], template: str, variables: dict[str, Any]) -> T:
        prompt = template.format(**variables)
        response = await self._get_client().chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
            temperature=0.3,
        )
        content = _strip_code_fence((response.choices[0].message.content or "").strip())
        try:
            return schema.model_validate_json(content)
        except ValidationError as e:
            raise LLMError(f"Unexpected response shape for {schema.__name__}: {e}") from e


class OpenAIImageGenerator:
    def __init__(self, *, api_key: str | None = None, model: str | None = None, client: Any = None) -> None:
        self._api_key = api_key
        self.model = (model or "").strip() or IMAGE_MODEL
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = _make_client(self._api_key)
        return self._client

    async def generate_image(self, prompt: str, moderation: str = IMAGE_MODERATION) -> GeneratedImage:
        kwargs: dict[str, Any] = {"model": self.model, "prompt": prompt, "n": 1}
        if self.model.startswith("gpt-image"):
            kwargs.update(size="1536x1024", moderation=moderation)
        else:
            kwargs.update(size="1792x1024", response_format="b64_json")
        response = await self._get_client().images.generate(**kwargs)
        item = response.data[0] if response.data else None
        if item is None:
            raise LLMError("Image generation returned no data")
        text = getattr(item, "revised_prompt", None)
        if item.b64_json:
            return GeneratedImage(data_uri=f"data:image/png;base64,{item.b64_json}", text=text)
        if item.url:
            async with httpx.AsyncClient(timeout=30.0) as client:
                r = await client.get(item.url)
                r.raise_for_status()
            mime = r.headers.get("Content-Type", "image/png").split(";")[0]
            encoded = base64.b64encode(r.content).decode("ascii")
            return GeneratedImage(data_uri=f"data:{mime};base64,{encoded}", text=text)
        raise LLMError("Image generation returned neither image bytes nor a URL")
