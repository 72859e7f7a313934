import json

import httpx
import pytest

from content_finder.services.search_client import (
    SearchConfigurationError,
    SerperSearchClient,
    SimulatedSearchProvider,
    get_search_provider,
)


def _client(handler, **kwargs) -> SerperSearchClient:
    return SerperSearchClient(api_url="https://search.test/search", transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_serper_parses_organic_results(monkeypatch):
    monkeypatch.setenv("SEARCH_API_KEY", "k-123")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["key"] = request.headers.get("X-API-KEY")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "organic": [
                    {"title": "A", "link": "https://a.example/x", "snippet": "aa"},
                    {"title": "Bad", "link": "ftp://b.example/y", "snippet": "bb"},
                    {"title": "C", "link": "https://c.example/z"},
                ]
            },
        )

    results = await _client(handler, max_results=5).search("rome")
    assert seen == {"key": "k-123", "body": {"q": "rome", "num": 5}}
    assert [r.link for r in results] == ["https://a.example/x", "https://c.example/z"]
    assert results[1].snippet == ""


@pytest.mark.asyncio
async def test_serper_caps_results(monkeypatch):
    monkeypatch.setenv("SEARCH_API_KEY", "k")
    rows = [{"title": str(i), "link": f"https://e.example/{i}", "snippet": ""} for i in range(10)]
    results = await _client(lambda r: httpx.Response(200, json={"organic": rows}), max_results=3).search("q")
    assert len(results) == 3


@pytest.mark.asyncio
async def test_serper_http_error_degrades_to_empty(monkeypatch):
    monkeypatch.setenv("SEARCH_API_KEY", "k")
    results = await _client(lambda r: httpx.Response(500, text="down")).search("rome")
    assert results == []


@pytest.mark.asyncio
async def test_serper_invalid_json_degrades_to_empty(monkeypatch):
    monkeypatch.setenv("SEARCH_API_KEY", "k")
    results = await _client(lambda r: httpx.Response(200, text="<html>")).search("rome")
    assert results == []


@pytest.mark.asyncio
async def test_serper_without_key_is_a_configuration_error(monkeypatch):
    monkeypatch.delenv("SEARCH_API_KEY", raising=False)
    with pytest.raises(SearchConfigurationError):
        await _client(lambda r: httpx.Response(200, json={})).search("rome")


@pytest.mark.asyncio
async def test_simulated_provider_topics():
    provider = SimulatedSearchProvider()
    assert len(await provider.search("The History of Rome")) == 3
    assert len(await provider.search("quantum computing basics")) == 2
    generic = await provider.search("Plate tectonics")
    assert len(generic) == 4
    assert all(r.link.startswith("https://") for r in generic)


def test_provider_selection():
    assert isinstance(get_search_provider("simulated"), SimulatedSearchProvider)
    assert isinstance(get_search_provider("Serper"), SerperSearchClient)
    with pytest.raises(SearchConfigurationError):
        get_search_provider("bing")
