"""LLM orchestration flows: gather, continue, generate image, grammar check.

Each flow is a plain async function over its collaborators. Collaborator
calls are awaited one at a time; nothing is retried.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from ..config import IMAGE_MODERATION
from ..models import (
    ContinueRequest,
    ContinueResponse,
    GatherRequest,
    GatherResponse,
    GrammarCheckResponse,
    GrammarSuggestion,
    ImageResponse,
    SearchResult,
    Source,
)
from .editing import resolve_offsets
from .llm_client import FAILED_IMAGE_DATA_URI, ImageGenerator, TextGenerator
from .prompts import (
    CONTINUE_TEMPLATE,
    GRAMMAR_TEMPLATE,
    IMAGE_TEMPLATE,
    RELEVANCE_TEMPLATE,
    SYNTHESIZE_TEMPLATE,
    format_sources,
)
from .search_client import SearchProvider

logger = logging.getLogger(__name__)

NO_RELEVANT_SOURCES_CONTENT = (
    "After reviewing potential sources, none were deemed sufficiently relevant or authoritative "
    "to construct a textbook-quality chapter on this specific topic for the specified audience, "
    "based on the provided snippets. Please try a different or more specific prompt, or ensure "
    "the search tool can access a wider range of academic sources."
)
NO_SYNTHESIS_CONTENT = "Could not generate content based on the provided sources."
NO_CONTINUATION_CONTENT = "Could not generate continued content."


# Shapes requested from the text generator.


class _Shape(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RelevanceVerdict(_Shape):
    is_relevant: bool = Field(default=False, alias="isRelevant")


class ChapterDraft(_Shape):
    content: str | None = None


class Continuation(_Shape):
    continued_content: str | None = Field(default=None, alias="continuedContent")


class _SuggestionShape(_Shape):
    issue: str
    problematic_text: str = Field(alias="problematicText")
    suggestion: str
    explanation: str | None = None


class GrammarFindings(_Shape):
    suggestions: list[_SuggestionShape] = Field(default_factory=list)


async def gather_relevant_content(
    request: GatherRequest,
    *,
    search: SearchProvider,
    llm: TextGenerator,
) -> GatherResponse:
    """Search → judge each result → synthesize a chapter from the relevant ones."""
    raw_results = await search.search(request.prompt)
    logger.info("Search returned %d candidate(s) for %r", len(raw_results), request.prompt)

    evaluated: list[SearchResult] = []
    relevant: list[Source] = []
    for raw in raw_results:
        verdict = await llm.generate(
            RelevanceVerdict,
            RELEVANCE_TEMPLATE,
            {
                "prompt": request.prompt,
                "audience_level": request.audience_level,
                "title": raw.title,
                "url": raw.link,
                "snippet": raw.snippet,
            },
        )
        result = SearchResult(title=raw.title, url=raw.link, snippet=raw.snippet, is_relevant=verdict.is_relevant)
        evaluated.append(result)
        logger.debug("Relevance %s: %s", verdict.is_relevant, raw.link)
        if verdict.is_relevant:
            relevant.append(Source(title=result.title, url=result.url, snippet=result.snippet))

    if not relevant:
        logger.info("No relevant sources for %r; returning placeholder", request.prompt)
        return GatherResponse(results=evaluated, content=NO_RELEVANT_SOURCES_CONTENT, sources=[])

    draft = await llm.generate(
        ChapterDraft,
        SYNTHESIZE_TEMPLATE,
        {
            "prompt": request.prompt,
            "audience_level": request.audience_level,
            "sources": format_sources(relevant),
        },
    )
    return GatherResponse(results=evaluated, content=draft.content or NO_SYNTHESIS_CONTENT, sources=relevant)


async def continue_content(request: ContinueRequest, *, llm: TextGenerator) -> ContinueResponse:
    out = await llm.generate(
        Continuation,
        CONTINUE_TEMPLATE,
        {
            "original_prompt": request.original_prompt,
            "audience_level": request.audience_level,
            "existing_content": request.existing_content,
            "sources": format_sources(request.sources),
        },
    )
    return ContinueResponse(continued_content=out.continued_content or NO_CONTINUATION_CONTENT)


async def generate_image(
    prompt: str,
    *,
    images: ImageGenerator,
    moderation: str = IMAGE_MODERATION,
) -> ImageResponse:
    """Never raises for provider failures: returns the sentinel image plus an explanation."""
    try:
        image = await images.generate_image(IMAGE_TEMPLATE.format(prompt=prompt), moderation=moderation)
    except Exception as e:
        logger.exception("Error in image generation")
        return ImageResponse(
            image_data_uri=FAILED_IMAGE_DATA_URI,
            accompanying_text=f"Error during image generation: {e}",
        )
    if not image.data_uri:
        logger.error("Image generation returned no data URI. Accompanying text: %s", image.text)
        return ImageResponse(
            image_data_uri=FAILED_IMAGE_DATA_URI,
            accompanying_text=f"Failed to generate image. Model response: {image.text or 'No additional details.'}",
        )
    return ImageResponse(image_data_uri=image.data_uri, accompanying_text=image.text)


async def grammar_check(text: str, *, llm: TextGenerator) -> GrammarCheckResponse:
    findings = await llm.generate(GrammarFindings, GRAMMAR_TEMPLATE, {"text_to_check": text})
    suggestions = [
        GrammarSuggestion(
            issue=s.issue,
            problematic_text=s.problematic_text,
            suggestion=s.suggestion,
            explanation=s.explanation,
        )
        for s in findings.suggestions
    ]
    return GrammarCheckResponse(suggestions=resolve_offsets(text, suggestions))
