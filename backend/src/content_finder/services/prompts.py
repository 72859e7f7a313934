"""Prompt templates for the text generation flows.

Templates are ``str.format`` strings. Each one ends with the JSON shape the
model must return; the shape is validated by the caller.
"""

from __future__ import annotations

SYSTEM_PROMPT = (
    "You are a distinguished professor and acclaimed textbook author. "
    "Always answer with a single JSON object and nothing else."
)

RELEVANCE_TEMPLATE = """Given the user prompt: "{prompt}" and the target audience level "{audience_level}", determine if the following search result is relevant for inclusion in educational material on this topic. Consider the source's likely authority, depth, and appropriateness for the specified audience.

Title: {title}
URL: {url}
Snippet: {snippet}

Return JSON: {{"isRelevant": true}} or {{"isRelevant": false}}."""

SYNTHESIZE_TEMPLATE = """Write a detailed and insightful textbook chapter on "{prompt}" for an audience at the "{audience_level}" level.

The chapter must:
- Draw on the provided sources for accuracy and depth, synthesizing them into an original, analytical narrative rather than rephrasing snippets.
- Use a clear, formal academic style whose complexity and terminology suit the "{audience_level}" level.
- Explain key concepts, theories, historical context and seminal works, with examples or case studies the audience can follow.
- Be structured with Markdown headings (#, ##, ###), paragraphs, lists, *italic* and **bold**.

Provided relevant search results:
{sources}

Return JSON: {{"content": "<the chapter in Markdown>"}}."""

CONTINUE_TEMPLATE = """You are continuing a textbook chapter.

Original topic: "{original_prompt}"
Target audience level: "{audience_level}"

The chapter so far reads:
--- EXISTING CONTENT START ---
{existing_content}
--- EXISTING CONTENT END ---

Sources consulted previously:
{sources}

Seamlessly continue the chapter. Do not repeat existing material and do not open with phrases such as "Continuing from the previous text". If the existing content ends mid-thought, finish it first; if it ends a major section, start a new one with a Markdown heading (## ...). Keep the same style and depth.

Return JSON: {{"continuedContent": "<only the new Markdown content>"}}."""

GRAMMAR_TEMPLATE = """You are an expert proofreader and editor. Review the text below for grammatical errors, spelling mistakes, punctuation errors, awkward phrasing, clarity, and style or tone problems.

For each issue provide:
- "issue": a concise description of the error type
- "problematicText": the exact segment of text where the issue occurs
- "suggestion": the corrected version of that segment
- "explanation": optional, the rule or reasoning behind the suggestion

Text to check:
--- TEXT START ---
{text_to_check}
--- TEXT END ---

Return JSON: {{"suggestions": [...]}}. Use an empty array if there are no issues."""

IMAGE_TEMPLATE = (
    'Generate a high-quality, visually appealing image that is highly relevant to the following topic: "{prompt}". '
    "The style should be photorealistic or a detailed illustration, suitable for a textbook or educational material. "
    "Ensure the image is safe for all audiences and does not contain any text. The image should be landscape."
)


def format_sources(sources) -> str:
    """Render sources as a plain-text list for prompt variables."""
    if not sources:
        return "(none)"
    parts = []
    for s in sources:
        parts.append(f"Source Title: {s.title}\nSource URL: {s.url}\nSource Snippet: {s.snippet}\n---")
    return "\n".join(parts)
