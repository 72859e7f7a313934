"""Search collaborators: Serper web search (httpx) and a simulated test double."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

import httpx

from ..config import SEARCH_API_URL, SEARCH_MAX_RESULTS, SEARCH_PROVIDER, search_api_key

logger = logging.getLogger(__name__)


class SearchConfigurationError(RuntimeError):
    """The search provider cannot be used as configured (e.g. no API key)."""


@dataclass(frozen=True)
class RawSearchResult:
    title: str
    link: str
    snippet: str


class SearchProvider(Protocol):
    async def search(self, query: str) -> list[RawSearchResult]: ...


class SerperSearchClient:
    """POST {SEARCH_API_URL} with the key in X-API-KEY; returns organic results.

    Network and payload failures are logged and reported as no results.
    """

    def __init__(
        self,
        *,
        api_url: str = SEARCH_API_URL,
        max_results: int = SEARCH_MAX_RESULTS,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url
        self.max_results = max_results
        self.timeout = timeout
        self._transport = transport

    async def search(self, query: str) -> list[RawSearchResult]:
        key = search_api_key()
        if not key:
            raise SearchConfigurationError("SEARCH_API_KEY is not set; cannot query the search provider")
        headers = {"X-API-KEY": key, "Content-Type": "application/json"}
        payload = {"q": query, "num": self.max_results}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.api_url, json=payload, headers=headers)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Search request failed for %r: %s", query, e)
            return []
        return _parse_organic(data, self.max_results)


def _parse_organic(data: object, limit: int) -> list[RawSearchResult]:
    if not isinstance(data, dict):
        logger.warning("Unexpected search payload type: %s", type(data).__name__)
        return []
    results: list[RawSearchResult] = []
    for row in data.get("organic") or []:
        if not isinstance(row, dict):
            continue
        link = str(row.get("link") or "").strip()
        if not link.startswith(("http://", "https://")):
            continue
        results.append(
            RawSearchResult(
                title=str(row.get("title") or link),
                link=link,
                snippet=str(row.get("snippet") or ""),
            )
        )
        if len(results) >= limit:
            break
    return results


class SimulatedSearchProvider:
    """Canned results for local development and tests. Never touches the network."""

    async def search(self, query: str) -> list[RawSearchResult]:
        logger.info("Simulating internet search for: %r", query)
        q = query.lower()
        if "history of rome" in q:
            return [
                RawSearchResult(
                    "The Roman Empire: A Brief Overview - History.com",
                    "https://www.history.com/topics/ancient-rome/roman-empire",
                    "Explore the rise and fall of the Roman Empire, from its mythical founding to its eventual decline.",
                ),
                RawSearchResult(
                    "Ancient Rome - Wikipedia",
                    "https://en.wikipedia.org/wiki/Ancient_Rome",
                    "Ancient Rome was a civilization that grew from a small agricultural community on the Italian Peninsula.",
                ),
                RawSearchResult(
                    "Daily Life in Ancient Rome - World History Encyclopedia",
                    "https://www.worldhistory.org/Rome/",
                    "Details on housing, food, entertainment, and social structure in ancient Rome.",
                ),
            ]
        if "quantum computing" in q:
            return [
                RawSearchResult(
                    "Quantum Computing: Principles and Applications - MIT Technology Review",
                    "https://www.technologyreview.com/topics/computing/quantum-computing/",
                    "The fundamental principles of quantum computing, its potential applications, and current challenges.",
                ),
                RawSearchResult(
                    "NIST Quantum Information Science Portal",
                    "https://www.nist.gov/quantum-information-science",
                    "Resources on quantum algorithms, cryptography, and metrology.",
                ),
            ]
        under = re.sub(r"\s+", "_", query.strip()).lower()
        dashed = re.sub(r"\s+", "-", query.strip()).lower()
        return [
            RawSearchResult(
                f"Exploring {query}: An Academic Perspective - ResearchGate",
                f"https://www.researchgate.net/publication/simulated-{quote(under)}",
                f"A detailed analysis of {query}, covering its historical context, current understanding, and future implications.",
            ),
            RawSearchResult(
                f"{query} in Context: A University Course Reader - OpenStax",
                f"https://openstax.org/books/introductory-{quote(dashed)}/pages/introduction",
                f"An introductory chapter on {query}, designed for undergraduate students.",
            ),
            RawSearchResult(
                f"Advanced Topics in {query} - Journal of Specialized Studies",
                f"https://www.jstor.org/stable/search?query={quote(query)}",
                f"Scholarly articles discussing advanced research and theories related to {query}.",
            ),
            RawSearchResult(
                f"Understanding {query} for Everyone - Khan Academy",
                f"https://www.khanacademy.org/science/tags/{quote(dashed)}",
                f"Accessible explanations and examples of {query} for high school students and the general public.",
            ),
        ]


def get_search_provider(name: str | None = None) -> SearchProvider:
    provider = (name or SEARCH_PROVIDER).strip().lower()
    if provider == "simulated":
        return SimulatedSearchProvider()
    if provider == "serper":
        return SerperSearchClient()
    raise SearchConfigurationError(f"Unknown SEARCH_PROVIDER: {provider!r}")
