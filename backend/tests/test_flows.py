import pytest

from content_finder.models import ContinueRequest, GatherRequest, Source
from content_finder.services import flows
from content_finder.services.llm_client import FAILED_IMAGE_DATA_URI, GeneratedImage


@pytest.mark.asyncio
async def test_gather_synthesizes_from_relevant_sources(llm, search):
    llm.payloads["RelevanceVerdict"] = lambda v: {"isRelevant": "wikipedia" in v["url"]}

    result = await flows.gather_relevant_content(
        GatherRequest(prompt="History of Rome", audience_level="High School"), search=search, llm=llm
    )

    assert search.queries == ["History of Rome"]
    assert [r.is_relevant for r in result.results] == [True, False]
    assert [str(s.url) for s in result.sources] == ["https://en.wikipedia.org/wiki/Ancient_Rome"]
    assert result.content.startswith("# Rome")
    synth_vars = [v for name, v in llm.calls if name == "ChapterDraft"][0]
    assert "Ancient Rome - Wikipedia" in synth_vars["sources"]
    assert "Rome for kids" not in synth_vars["sources"]


@pytest.mark.asyncio
async def test_gather_without_relevant_sources_returns_placeholder(llm, search):
    llm.payloads["RelevanceVerdict"] = {"isRelevant": False}

    result = await flows.gather_relevant_content(
        GatherRequest(prompt="History of Rome", audience_level="High School"), search=search, llm=llm
    )

    assert result.content == flows.NO_RELEVANT_SOURCES_CONTENT
    assert result.sources == []
    assert len(result.results) == 2
    assert llm.called("ChapterDraft") == 0


@pytest.mark.asyncio
async def test_gather_with_no_search_results(llm, search):
    search.results = []
    result = await flows.gather_relevant_content(
        GatherRequest(prompt="Obscure", audience_level="Expert"), search=search, llm=llm
    )
    assert result.content == flows.NO_RELEVANT_SOURCES_CONTENT
    assert llm.calls == []


@pytest.mark.asyncio
async def test_gather_empty_synthesis_uses_fallback(llm, search):
    llm.payloads["ChapterDraft"] = {"content": None}
    result = await flows.gather_relevant_content(
        GatherRequest(prompt="History of Rome", audience_level="High School"), search=search, llm=llm
    )
    assert result.content == flows.NO_SYNTHESIS_CONTENT


@pytest.mark.asyncio
async def test_continue_content_passes_existing_chapter(llm):
    request = ContinueRequest(
        original_prompt="History of Rome",
        audience_level="High School",
        existing_content="# Rome",
        sources=[Source(title="Rome", url="https://example.com/rome", snippet="s")],
    )
    result = await flows.continue_content(request, llm=llm)
    assert result.continued_content.startswith("## The Republic")
    _, variables = llm.calls[0]
    assert variables["existing_content"] == "# Rome"
    assert "https://example.com/rome" in variables["sources"]


@pytest.mark.asyncio
async def test_generate_image_success(images):
    result = await flows.generate_image("a roman forum", images=images)
    assert result.image_data_uri.startswith("data:image/png")
    assert result.accompanying_text == "A forum at dusk"
    assert "a roman forum" in images.prompts[0]


@pytest.mark.asyncio
async def test_generate_image_failure_returns_sentinel(images):
    images.error = RuntimeError("quota exceeded")
    result = await flows.generate_image("a roman forum", images=images)
    assert result.image_data_uri == FAILED_IMAGE_DATA_URI
    assert "quota exceeded" in result.accompanying_text


@pytest.mark.asyncio
async def test_generate_image_without_data_returns_sentinel(images):
    images.image = GeneratedImage(data_uri="", text="blocked by policy")
    result = await flows.generate_image("a roman forum", images=images)
    assert result.image_data_uri == FAILED_IMAGE_DATA_URI
    assert "blocked by policy" in result.accompanying_text


@pytest.mark.asyncio
async def test_grammar_check_resolves_offsets(llm):
    llm.payloads["GrammarFindings"] = {
        "suggestions": [
            {"issue": "Spelling", "problematicText": "teh", "suggestion": "the"},
            {"issue": "Spelling", "problematicText": "teh", "suggestion": "the", "explanation": "again"},
        ]
    }
    result = await flows.grammar_check("teh cat and teh dog", llm=llm)
    assert [s.offset for s in result.suggestions] == [0, 12]
    assert result.suggestions[1].explanation == "again"
