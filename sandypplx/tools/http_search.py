from __future__ import annotations

from typing import Any

import httpx

from sandypplx.config import settings
from sandypplx.exceptions import SearchFailure
from sandypplx.tools.tavily_search import SearchResult

GENERIC_ERROR = "Search request failed"


def _error_from_response(response: httpx.Response) -> SearchFailure:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        details = payload.get("details")
        error = payload.get("error")
        return SearchFailure(
            str(error or GENERIC_ERROR),
            details=str(details) if details else None,
        )
    return SearchFailure(f"{GENERIC_ERROR} (HTTP {response.status_code})")


async def search(
    query: str,
    *,
    api_url: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[SearchResult]:
    """Query a remote `/api/search` endpoint and normalize its results.

    The endpoint answers `{"results": [...]}` on success and
    `{"error": ..., "details": ...}` with a non-2xx status on failure.
    """
    url = api_url or settings.search_api_url
    if not url:
        raise SearchFailure("SEARCH_API_URL is not configured")

    try:
        async with httpx.AsyncClient(
            timeout=settings.search_timeout_seconds,
            transport=transport,
        ) as client:
            response = await client.post(
                url,
                json={"query": query},
                headers={"Accept": "application/json"},
            )
    except httpx.HTTPError as exc:
        raise SearchFailure(GENERIC_ERROR, details=str(exc) or None) from exc

    if response.is_error:
        raise _error_from_response(response)

    try:
        payload: Any = response.json()
        raw_results = payload.get("results") or []
        return [SearchResult.from_dict(item) for item in raw_results]
    except (ValueError, TypeError, AttributeError) as exc:
        raise SearchFailure("Search returned a malformed response") from exc
