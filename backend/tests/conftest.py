from typing import Any

import pytest
from fastapi.testclient import TestClient


class FakeTextGenerator:
    """Answers each requested shape from a canned payload and records every call."""

    def __init__(self) -> None:
        self.payloads: dict[str, Any] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.error: Exception | None = None

    async def generate(self, schema, template, variables):
        self.calls.append((schema.__name__, variables))
        if self.error:
            raise self.error
        payload = self.payloads[schema.__name__]
        if callable(payload):
            payload = payload(variables)
        return schema.model_validate(payload)

    def called(self, schema_name: str) -> int:
        return sum(1 for name, _ in self.calls if name == schema_name)


class FakeSearch:
    def __init__(self) -> None:
        from content_finder.services.search_client import RawSearchResult

        self.results = [
            RawSearchResult("Ancient Rome - Wikipedia", "https://en.wikipedia.org/wiki/Ancient_Rome", "Rome grew."),
            RawSearchResult("Rome for kids", "https://example.com/kids/rome", "Fun facts."),
        ]
        self.queries: list[str] = []

    async def search(self, query):
        self.queries.append(query)
        return list(self.results)


class FakeImageGenerator:
    def __init__(self) -> None:
        from content_finder.services.llm_client import GeneratedImage

        self.image = GeneratedImage(data_uri="data:image/png;base64,iVBORw0KGgo=", text="A forum at dusk")
        self.prompts: list[str] = []
        self.error: Exception | None = None

    async def generate_image(self, prompt, moderation="auto"):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.image


@pytest.fixture()
def llm() -> FakeTextGenerator:
    fake = FakeTextGenerator()
    fake.payloads = {
        "RelevanceVerdict": {"isRelevant": True},
        "ChapterDraft": {"content": "# Rome\n\nRome was founded in **753 BC**."},
        "Continuation": {"continuedContent": "## The Republic\n\nThe Republic followed."},
        "GrammarFindings": {"suggestions": []},
    }
    return fake


@pytest.fixture()
def search() -> FakeSearch:
    return FakeSearch()


@pytest.fixture()
def images() -> FakeImageGenerator:
    return FakeImageGenerator()


@pytest.fixture()
def client(llm, search, images) -> TestClient:
    from content_finder.api import routes
    from content_finder.main import app

    app.dependency_overrides[routes.get_text_generator] = lambda: llm
    app.dependency_overrides[routes.get_search] = lambda: search
    app.dependency_overrides[routes.get_image_generator] = lambda: images
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _clear_in_memory_stores():
    # Ensure deterministic tests across runs.
    from content_finder.services import session_store

    session_store._session_store.clear()
    yield
