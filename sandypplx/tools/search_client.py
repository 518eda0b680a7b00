from __future__ import annotations

import asyncio
from typing import AsyncIterator, Awaitable, Callable

from loguru import logger

from sandypplx.config import settings
from sandypplx.exceptions import SearchFailure
from sandypplx.tools import search_provider
from sandypplx.tools.tavily_search import SearchResult

GENERIC_SEARCH_ERROR = "Search request failed"

SearchFetcher = Callable[[str], Awaitable[list[SearchResult]]]


async def _fetch_from_provider(query: str) -> list[SearchResult]:
    response = await search_provider.search(query)
    return response.results


def rank_results(results: list[SearchResult]) -> list[SearchResult]:
    """Order by score, highest first. `sorted` is stable, so ties keep source order."""
    return sorted(results, key=lambda r: r.score, reverse=True)


async def paced_results(
    results: list[SearchResult],
    delay_seconds: float,
) -> AsyncIterator[SearchResult]:
    """Yield ranked results one by one with a fixed pause between them."""
    ranked = rank_results(results)
    for index, result in enumerate(ranked):
        if index and delay_seconds > 0:
            await asyncio.sleep(delay_seconds)
        yield result


class SearchClient:
    """Fetches search results and hands them out as a paced, ranked stream.

    Besides the returned stream, the client keeps `is_searching`,
    `search_results` and `search_error` current so a renderer can read the
    search status synchronously.
    """

    def __init__(
        self,
        fetch: SearchFetcher | None = None,
        *,
        delay_seconds: float | None = None,
    ):
        self._fetch = fetch or _fetch_from_provider
        if delay_seconds is None:
            delay_seconds = settings.search_result_delay_ms / 1000
        self.delay_seconds = delay_seconds
        self.is_searching = False
        self.search_results: list[SearchResult] = []
        self.search_error: str | None = None

    async def perform_search(self, query: str) -> AsyncIterator[SearchResult]:
        """Run the search and return a fresh result stream.

        Never raises: on failure `search_error` is set and the stream is empty.
        Each call issues a new request; a returned stream cannot be replayed.
        """
        self.is_searching = True
        self.search_error = None
        self.search_results = []

        try:
            results = await self._fetch(query)
            self.search_results = list(results)
            return paced_results(self.search_results, self.delay_seconds)
        except SearchFailure as e:
            logger.warning(f"Search failed for {query!r}: {e.display_message}")
            self.search_error = e.display_message or GENERIC_SEARCH_ERROR
        except Exception as e:
            logger.exception(f"Search error for {query!r}: {e}")
            self.search_error = GENERIC_SEARCH_ERROR
        finally:
            self.is_searching = False

        self.search_results = []
        return paced_results([], self.delay_seconds)
