"""API routes: stateless actions, render/export, and stateful content sessions."""

from __future__ import annotations

import asyncio
import json
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, Response
from sse_starlette.sse import EventSourceResponse

from ..models import (
    AUDIENCE_LEVELS,
    ActionError,
    ApplySuggestionRequest,
    ApplySuggestionResponse,
    ContinueRequest,
    ContinueResponse,
    ExportRequest,
    GatherRequest,
    GatherResponse,
    GrammarCheckRequest,
    GrammarCheckResponse,
    ImageRequest,
    ImageResponse,
    RenderRequest,
    RenderResponse,
    SessionGatherRequest,
    SessionGrammarRequest,
    SessionImageRequest,
    SessionView,
)
from ..services import actions, session_store
from ..services.editing import SuggestionNotApplicable, apply_suggestion
from ..services.exporter import EXPORTERS, content_disposition
from ..services.html_renderer import render_html
from ..services.llm_client import ImageGenerator, OpenAIImageGenerator, OpenAITextGenerator, TextGenerator
from ..services.markdown_parser import MarkdownFormatError
from ..services.search_client import SearchConfigurationError, SearchProvider, get_search_provider

router = APIRouter(prefix="/api", tags=["api"])

STREAM_POLL_SECONDS = 0.3


# Collaborators. Tests replace these through app.dependency_overrides.


def get_text_generator() -> TextGenerator:
    return OpenAITextGenerator()


def get_image_generator() -> ImageGenerator:
    return OpenAIImageGenerator()


def get_search() -> SearchProvider:
    try:
        return get_search_provider()
    except SearchConfigurationError as e:
        raise HTTPException(500, str(e))


def _error_response(error: ActionError) -> JSONResponse:
    status = 400 if error.kind == "validation" else 502
    return JSONResponse(status_code=status, content=error.model_dump())


def _session_or_404(session_id: str) -> session_store.Session:
    session = session_store.get_session(session_id)
    if not session:
        raise HTTPException(404, "Session not found")
    return session


@router.get("/audience-levels")
async def api_audience_levels():
    return AUDIENCE_LEVELS


@router.post("/gather", response_model=GatherResponse)
async def api_gather(
    body: GatherRequest,
    search: SearchProvider = Depends(get_search),
    llm: TextGenerator = Depends(get_text_generator),
):
    """Search, judge relevance, and synthesize a chapter."""
    result = await actions.handle_gather_content(body, search=search, llm=llm)
    if isinstance(result, ActionError):
        return _error_response(result)
    return result


@router.post("/continue", response_model=ContinueResponse)
async def api_continue(body: ContinueRequest, llm: TextGenerator = Depends(get_text_generator)):
    result = await actions.handle_continue_content(body, llm=llm)
    if isinstance(result, ActionError):
        return _error_response(result)
    return result


@router.post("/image", response_model=ImageResponse)
async def api_image(body: ImageRequest, images: ImageGenerator = Depends(get_image_generator)):
    result = await actions.handle_generate_image(body.prompt, images=images)
    if isinstance(result, ActionError):
        return _error_response(result)
    return result


@router.post("/grammar-check", response_model=GrammarCheckResponse)
async def api_grammar_check(body: GrammarCheckRequest, llm: TextGenerator = Depends(get_text_generator)):
    result = await actions.handle_grammar_check(body.text_to_check, llm=llm)
    if isinstance(result, ActionError):
        return _error_response(result)
    return result


@router.post("/grammar/apply", response_model=ApplySuggestionResponse)
async def api_grammar_apply(body: ApplySuggestionRequest):
    """Apply one suggestion and return the edited text with the remaining suggestions."""
    try:
        text, remaining = apply_suggestion(body.text, body.suggestions, body.index)
    except SuggestionNotApplicable as e:
        raise HTTPException(422, str(e))
    return ApplySuggestionResponse(text=text, suggestions=remaining)


@router.post("/render", response_model=RenderResponse)
async def api_render(body: RenderRequest):
    return RenderResponse(html=render_html(body.markdown))


@router.post("/export/{fmt}")
async def api_export(fmt: str, body: ExportRequest):
    """Export markdown as pdf, docx, json, json-structured or markdown."""
    exporter = EXPORTERS.get(fmt)
    if exporter is None:
        raise HTTPException(404, f"Unknown export format: {fmt}")
    if not body.markdown.strip():
        raise HTTPException(400, "No content to export")
    try:
        exported = exporter(body.markdown, body.prompt, body.audience, filename=body.filename)
    except MarkdownFormatError as e:
        raise HTTPException(422, str(e))
    return Response(
        content=exported.data,
        media_type=exported.media_type,
        headers={"Content-Disposition": content_disposition(exported.filename)},
    )


# Sessions


@router.post("/sessions", response_model=SessionView)
async def api_session_create():
    return session_store.create_session().view()


@router.get("/sessions/{session_id}", response_model=SessionView)
async def api_session_get(session_id: str):
    return _session_or_404(session_id).view()


async def _run_in_session(coro_factory, session: session_store.Session):
    try:
        result = await coro_factory()
    except session_store.InvalidTransition as e:
        raise HTTPException(409, str(e))
    if isinstance(result, ActionError):
        return _error_response(result)
    return session.view()


@router.post("/sessions/{session_id}/gather", response_model=SessionView)
async def api_session_gather(
    session_id: str,
    body: SessionGatherRequest,
    search: SearchProvider = Depends(get_search),
    llm: TextGenerator = Depends(get_text_generator),
):
    session = _session_or_404(session_id)
    request = GatherRequest(prompt=body.prompt, audience_level=body.audience_level)
    return await _run_in_session(
        lambda: session_store.run_gather(session, request, search=search, llm=llm), session
    )


@router.post("/sessions/{session_id}/continue", response_model=SessionView)
async def api_session_continue(session_id: str, llm: TextGenerator = Depends(get_text_generator)):
    session = _session_or_404(session_id)
    return await _run_in_session(lambda: session_store.run_continue(session, llm=llm), session)


@router.post("/sessions/{session_id}/image", response_model=SessionView)
async def api_session_image(
    session_id: str,
    body: SessionImageRequest,
    images: ImageGenerator = Depends(get_image_generator),
):
    session = _session_or_404(session_id)
    return await _run_in_session(lambda: session_store.run_image(session, body.prompt, images=images), session)


@router.post("/sessions/{session_id}/grammar-check", response_model=SessionView)
async def api_session_grammar(
    session_id: str,
    body: SessionGrammarRequest,
    llm: TextGenerator = Depends(get_text_generator),
):
    session = _session_or_404(session_id)
    return await _run_in_session(
        lambda: session_store.run_grammar_check(session, body.text_to_check, llm=llm), session
    )


@router.post("/sessions/{session_id}/grammar/apply/{index}", response_model=SessionView)
async def api_session_grammar_apply(session_id: str, index: int):
    session = _session_or_404(session_id)
    try:
        session_store.apply_session_suggestion(session, index)
    except session_store.InvalidTransition as e:
        raise HTTPException(409, str(e))
    except SuggestionNotApplicable as e:
        raise HTTPException(422, str(e))
    return session.view()


@router.get("/sessions/{session_id}/stream")
async def api_session_stream(session_id: str):
    """SSE stream of session events. Replays history, then follows until the session is at rest."""
    _session_or_404(session_id)

    async def event_generator() -> AsyncGenerator[dict, None]:
        last_index = 0
        while True:
            session = session_store.get_session(session_id)
            if not session:
                break
            events = session.events
            for ev in events[last_index:]:
                yield {"event": ev["kind"], "data": json.dumps(ev)}
            last_index = len(events)
            if not session.busy:
                yield {"event": "snapshot", "data": session.view().model_dump_json()}
                break
            await asyncio.sleep(STREAM_POLL_SECONDS)

    return EventSourceResponse(event_generator())
