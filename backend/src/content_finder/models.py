"""Pydantic models for API request/response and flow payloads."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, HttpUrl, field_serializer

AUDIENCE_LEVELS: list[dict[str, str]] = [
    {"value": "Elementary School", "label": "Elementary School Student"},
    {"value": "Middle School", "label": "Middle School Student"},
    {"value": "Junior High School", "label": "Junior High School Student"},
    {"value": "High School", "label": "High School Student"},
    {"value": "Undergraduate", "label": "Undergraduate Student"},
    {"value": "Postgraduate", "label": "Postgraduate Student"},
    {"value": "Professional", "label": "Professional in the Field"},
    {"value": "General Public", "label": "General Public / Curious Learner"},
    {"value": "Expert", "label": "Expert (Academic Research)"},
]


class Source(BaseModel):
    title: str
    url: HttpUrl
    snippet: str

    @field_serializer("url")
    def _url_as_str(self, url: HttpUrl) -> str:
        return str(url)


class SearchResult(Source):
    is_relevant: bool


# Flow inputs / outputs


class GatherRequest(BaseModel):
    prompt: str = ""
    audience_level: str = ""


class GatherResponse(BaseModel):
    results: list[SearchResult] = Field(default_factory=list)
    content: str
    sources: list[Source] = Field(default_factory=list)


class ContinueRequest(BaseModel):
    original_prompt: str = ""
    audience_level: str = ""
    existing_content: str = ""
    sources: list[Source] = Field(default_factory=list)


class ContinueResponse(BaseModel):
    continued_content: str


class ImageRequest(BaseModel):
    prompt: str = ""


class ImageResponse(BaseModel):
    image_data_uri: str
    accompanying_text: str | None = None


class GrammarCheckRequest(BaseModel):
    text_to_check: str = ""


class GrammarSuggestion(BaseModel):
    issue: str
    problematic_text: str
    suggestion: str
    explanation: str | None = None
    offset: int | None = Field(default=None, ge=0)


class GrammarCheckResponse(BaseModel):
    suggestions: list[GrammarSuggestion] = Field(default_factory=list)


class ApplySuggestionRequest(BaseModel):
    text: str
    suggestions: list[GrammarSuggestion]
    index: int = Field(ge=0)


class ApplySuggestionResponse(BaseModel):
    text: str
    suggestions: list[GrammarSuggestion]


class ActionError(BaseModel):
    error: str
    kind: Literal["validation", "collaborator"] = "validation"


# Render / export


class RenderRequest(BaseModel):
    markdown: str


class RenderResponse(BaseModel):
    html: str


class ExportRequest(BaseModel):
    markdown: str
    prompt: str
    audience: str
    filename: str | None = None


# Sessions


class SessionView(BaseModel):
    session_id: str
    state: str
    prompt: str = ""
    audience_level: str = ""
    content: str = ""
    sources: list[Source] = Field(default_factory=list)
    results: list[SearchResult] = Field(default_factory=list)
    image: ImageResponse | None = None
    suggestions: list[GrammarSuggestion] = Field(default_factory=list)
    error: str | None = None


class SessionGatherRequest(BaseModel):
    prompt: str = ""
    audience_level: str = ""


class SessionImageRequest(BaseModel):
    prompt: str = ""


class SessionGrammarRequest(BaseModel):
    text_to_check: str | None = None
