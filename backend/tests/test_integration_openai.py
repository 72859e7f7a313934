import os

import pytest


@pytest.mark.integration
@pytest.mark.asyncio
async def test_gather_against_live_providers():
    """Integration test: runs gather-content end to end with the simulated search and a real LLM.

    Requires env:
      OPENAI_API_KEY
    """
    if not os.environ.get("OPENAI_API_KEY"):
        pytest.skip("Missing OPENAI_API_KEY")

    from content_finder.models import GatherRequest
    from content_finder.services.flows import gather_relevant_content
    from content_finder.services.llm_client import OpenAITextGenerator
    from content_finder.services.search_client import SimulatedSearchProvider

    result = await gather_relevant_content(
        GatherRequest(prompt="History of Rome", audience_level="High School"),
        search=SimulatedSearchProvider(),
        llm=OpenAITextGenerator(api_key=os.environ["OPENAI_API_KEY"]),
    )
    assert len(result.results) == 3
    assert result.content
