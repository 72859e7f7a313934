"""In-memory content sessions with an explicit state machine.

A session holds the current chapter, its sources and any pending grammar
suggestions. Every flow moves the session into a busy state and back out
again; moves not listed in ``TRANSITIONS`` raise ``InvalidTransition``.
Each transition is recorded as an event for the SSE stream.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..models import (
    ActionError,
    ContinueRequest,
    GatherRequest,
    GatherResponse,
    GrammarCheckResponse,
    GrammarSuggestion,
    ImageResponse,
    SearchResult,
    SessionView,
    Source,
)
from . import actions
from .editing import apply_suggestion
from .llm_client import ImageGenerator, TextGenerator
from .search_client import SearchProvider

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    GATHERING = "gathering"
    HAS_CONTENT = "has_content"
    CONTINUING = "continuing"
    GENERATING_IMAGE = "generating_image"
    CHECKING_GRAMMAR = "checking_grammar"


BUSY_STATES = frozenset(
    {
        SessionState.GATHERING,
        SessionState.CONTINUING,
        SessionState.GENERATING_IMAGE,
        SessionState.CHECKING_GRAMMAR,
    }
)

TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.IDLE: frozenset(
        {SessionState.GATHERING, SessionState.GENERATING_IMAGE, SessionState.CHECKING_GRAMMAR}
    ),
    SessionState.GATHERING: frozenset({SessionState.HAS_CONTENT, SessionState.IDLE}),
    SessionState.HAS_CONTENT: frozenset(
        {
            SessionState.GATHERING,
            SessionState.CONTINUING,
            SessionState.GENERATING_IMAGE,
            SessionState.CHECKING_GRAMMAR,
        }
    ),
    SessionState.CONTINUING: frozenset({SessionState.HAS_CONTENT}),
    SessionState.GENERATING_IMAGE: frozenset({SessionState.HAS_CONTENT, SessionState.IDLE}),
    SessionState.CHECKING_GRAMMAR: frozenset({SessionState.HAS_CONTENT, SessionState.IDLE}),
}


class InvalidTransition(RuntimeError):
    def __init__(self, current: SessionState, target: SessionState) -> None:
        super().__init__(f"Cannot move from {current.value} to {target.value}")
        self.current = current
        self.target = target


@dataclass
class Session:
    session_id: str
    state: SessionState = SessionState.IDLE
    prompt: str = ""
    audience_level: str = ""
    content: str = ""
    sources: list[Source] = field(default_factory=list)
    results: list[SearchResult] = field(default_factory=list)
    image: ImageResponse | None = None
    suggestions: list[GrammarSuggestion] = field(default_factory=list)
    error: str | None = None
    events: list[dict[str, Any]] = field(default_factory=list)

    @property
    def busy(self) -> bool:
        return self.state in BUSY_STATES

    def emit(self, kind: str, data: dict[str, Any] | None = None) -> None:
        self.events.append({"kind": kind, "data": data or {}})

    def transition(self, target: SessionState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransition(self.state, target)
        logger.debug("Session %s: %s -> %s", self.session_id, self.state.value, target.value)
        self.emit("state", {"from": self.state.value, "to": target.value})
        self.state = target

    def settle(self) -> None:
        """Leave a busy state for the resting state the content implies."""
        self.transition(SessionState.HAS_CONTENT if self.content else SessionState.IDLE)

    def fail(self, error: ActionError) -> ActionError:
        self.error = error.error
        self.emit("error", {"message": error.error, "kind": error.kind})
        self.settle()
        return error

    def view(self) -> SessionView:
        return SessionView(
            session_id=self.session_id,
            state=self.state.value,
            prompt=self.prompt,
            audience_level=self.audience_level,
            content=self.content,
            sources=self.sources,
            results=self.results,
            image=self.image,
            suggestions=self.suggestions,
            error=self.error,
        )


_session_store: dict[str, Session] = {}


def create_session() -> Session:
    session = Session(session_id=uuid.uuid4().hex)
    _session_store[session.session_id] = session
    return session


def get_session(session_id: str) -> Session | None:
    return _session_store.get(session_id)


async def run_gather(
    session: Session, request: GatherRequest, *, search: SearchProvider, llm: TextGenerator
) -> GatherResponse | ActionError:
    error = actions.validate_gather(request)
    if error:
        return error
    session.transition(SessionState.GATHERING)
    # A new topic discards the previous chapter and everything derived from it.
    session.prompt = request.prompt
    session.audience_level = request.audience_level
    session.content = ""
    session.sources = []
    session.results = []
    session.suggestions = []
    session.error = None
    result = await actions.handle_gather_content(request, search=search, llm=llm)
    if isinstance(result, ActionError):
        return session.fail(result)
    session.content = result.content
    session.sources = list(result.sources)
    session.results = list(result.results)
    session.emit("content", {"length": len(session.content), "sources": len(session.sources)})
    session.settle()
    return result


async def run_continue(session: Session, *, llm: TextGenerator) -> str | ActionError:
    """Append a continuation. Sources are carried forward unchanged."""
    session.transition(SessionState.CONTINUING)
    session.error = None
    request = ContinueRequest(
        original_prompt=session.prompt,
        audience_level=session.audience_level,
        existing_content=session.content,
        sources=session.sources,
    )
    result = await actions.handle_continue_content(request, llm=llm)
    if isinstance(result, ActionError):
        return session.fail(result)
    session.content = (session.content or "") + "\n\n" + result.continued_content
    session.emit("content", {"length": len(session.content), "sources": len(session.sources)})
    session.settle()
    return session.content


async def run_image(session: Session, prompt: str, *, images: ImageGenerator) -> ImageResponse | ActionError:
    error = actions.validate_image(prompt)
    if error:
        return error
    session.transition(SessionState.GENERATING_IMAGE)
    session.error = None
    result = await actions.handle_generate_image(prompt, images=images)
    if isinstance(result, ActionError):
        return session.fail(result)
    session.image = result
    session.emit("image", {"has_text": bool(result.accompanying_text)})
    session.settle()
    return result


async def run_grammar_check(
    session: Session, text: str | None, *, llm: TextGenerator
) -> GrammarCheckResponse | ActionError:
    text = session.content if text is None else text
    error = actions.validate_grammar(text)
    if error:
        return error
    session.transition(SessionState.CHECKING_GRAMMAR)
    session.error = None
    result = await actions.handle_grammar_check(text, llm=llm)
    if isinstance(result, ActionError):
        return session.fail(result)
    # Offsets only index into session content when that is what was checked.
    if text == session.content:
        session.suggestions = list(result.suggestions)
        session.emit("suggestions", {"count": len(session.suggestions)})
    session.settle()
    return result


def apply_session_suggestion(session: Session, index: int) -> Session:
    if session.state != SessionState.HAS_CONTENT:
        raise InvalidTransition(session.state, SessionState.HAS_CONTENT)
    session.content, session.suggestions = apply_suggestion(session.content, session.suggestions, index)
    session.emit("content", {"length": len(session.content), "sources": len(session.sources)})
    return session
