from __future__ import annotations

import time
from dataclasses import dataclass

from sandypplx.config import settings
from sandypplx.exceptions import SearchFailure
from sandypplx.services import logger as log_service
from sandypplx.tools import http_search, tavily_search
from sandypplx.tools.tavily_search import SearchResult


@dataclass
class SearchResponse:
    results: list[SearchResult]
    provider: str


async def search(query: str) -> SearchResponse:
    """Run one search against the configured provider.

    Every provider failure is re-raised as SearchFailure so callers have a
    single error type to handle.
    """
    provider = settings.search_provider.lower().strip()
    if provider not in ("tavily", "http"):
        raise ValueError(f"Unsupported SEARCH_PROVIDER: {settings.search_provider}")
    t0 = time.monotonic()

    try:
        if provider == "tavily":
            results = await tavily_search.search(query)
        else:
            results = await http_search.search(query)
    except SearchFailure as e:
        log_service.log_search_call(
            provider=provider,
            query=query,
            duration_ms=int((time.monotonic() - t0) * 1000),
            error=e.display_message,
        )
        raise
    except Exception as e:
        log_service.log_search_call(
            provider=provider,
            query=query,
            duration_ms=int((time.monotonic() - t0) * 1000),
            error=str(e),
        )
        raise SearchFailure("Failed to perform search", details=str(e) or None) from e

    log_service.log_search_call(
        provider=provider,
        query=query,
        results_count=len(results),
        duration_ms=int((time.monotonic() - t0) * 1000),
    )
    return SearchResponse(results=results, provider=provider)
