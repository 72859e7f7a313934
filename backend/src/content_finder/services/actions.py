"""Action layer: validate user input, run a flow, map failures to ``ActionError``.

Validation failures return before any collaborator is called. Collaborator
failures are logged with their traceback and reported to the caller with a
generic message.
"""

from __future__ import annotations

import logging

from ..models import (
    ActionError,
    ContinueRequest,
    ContinueResponse,
    GatherRequest,
    GatherResponse,
    GrammarCheckResponse,
    ImageResponse,
)
from . import flows
from .llm_client import FAILED_IMAGE_DATA_URI, ImageGenerator, TextGenerator
from .search_client import SearchProvider

logger = logging.getLogger(__name__)

PROMPT_MIN, PROMPT_MAX = 3, 500
IMAGE_PROMPT_MIN, IMAGE_PROMPT_MAX = 3, 200


def _invalid(message: str) -> ActionError:
    return ActionError(error=message, kind="validation")


def _failed(message: str) -> ActionError:
    return ActionError(error=message, kind="collaborator")


def validate_gather(request: GatherRequest) -> ActionError | None:
    if not request.prompt or not PROMPT_MIN <= len(request.prompt) <= PROMPT_MAX:
        return _invalid(f"Prompt must be between {PROMPT_MIN} and {PROMPT_MAX} characters.")
    if not request.audience_level:
        return _invalid("Audience level must be selected.")
    return None


def validate_continue(request: ContinueRequest) -> ActionError | None:
    if not request.original_prompt or not PROMPT_MIN <= len(request.original_prompt) <= PROMPT_MAX:
        return _invalid("Original prompt is invalid.")
    if not request.audience_level:
        return _invalid("Audience level is missing.")
    if not request.existing_content:
        return _invalid("Existing content is missing.")
    return None


def validate_image(prompt: str) -> ActionError | None:
    if not prompt or not IMAGE_PROMPT_MIN <= len(prompt) <= IMAGE_PROMPT_MAX:
        return _invalid(
            f"Image generation prompt must be between {IMAGE_PROMPT_MIN} and {IMAGE_PROMPT_MAX} characters."
        )
    return None


def validate_grammar(text: str) -> ActionError | None:
    if not text or not text.strip():
        return _invalid("No text provided for grammar check.")
    return None


async def handle_gather_content(
    request: GatherRequest, *, search: SearchProvider, llm: TextGenerator
) -> GatherResponse | ActionError:
    error = validate_gather(request)
    if error:
        return error
    try:
        return await flows.gather_relevant_content(request, search=search, llm=llm)
    except Exception:
        logger.exception("Detailed error gathering content")
        return _failed("An error occurred while gathering content. Please check server logs for details.")


async def handle_continue_content(
    request: ContinueRequest, *, llm: TextGenerator
) -> ContinueResponse | ActionError:
    error = validate_continue(request)
    if error:
        return error
    try:
        return await flows.continue_content(request, llm=llm)
    except Exception:
        logger.exception("Detailed error continuing content generation")
        return _failed(
            "An error occurred while continuing content generation. Please check server logs for details."
        )


async def handle_generate_image(prompt: str, *, images: ImageGenerator) -> ImageResponse | ActionError:
    error = validate_image(prompt)
    if error:
        return error
    try:
        result = await flows.generate_image(prompt, images=images)
    except Exception:
        logger.exception("Detailed error generating image")
        return _failed("An error occurred while generating the image. Please check server logs for details.")
    if result.image_data_uri == FAILED_IMAGE_DATA_URI:
        return _failed(result.accompanying_text or "Image generation failed, but no specific error text was returned.")
    return result


async def handle_grammar_check(text: str, *, llm: TextGenerator) -> GrammarCheckResponse | ActionError:
    error = validate_grammar(text)
    if error:
        return error
    try:
        return await flows.grammar_check(text, llm=llm)
    except Exception:
        logger.exception("Detailed error during grammar check")
        return _failed("An error occurred during grammar check. Please check server logs for details.")
