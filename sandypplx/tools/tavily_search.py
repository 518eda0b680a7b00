from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from email.utils import parsedate_to_datetime
from typing import Any

from tavily import AsyncTavilyClient

from sandypplx.config import settings
from sandypplx.exceptions import ConfigurationError


@dataclass(frozen=True)
class SearchResult:
    title: str
    url: str
    content: str
    score: float
    published_date: date | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "SearchResult":
        return cls(
            title=str(raw.get("title") or ""),
            url=str(raw.get("url") or ""),
            content=str(raw.get("content") or ""),
            score=float(raw.get("score") or 0.0),
            published_date=parse_published_date(raw.get("published_date")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": self.title,
            "url": self.url,
            "content": self.content,
            "score": self.score,
        }
        if self.published_date is not None:
            data["published_date"] = self.published_date.isoformat()
        return data


def parse_published_date(value: Any) -> date | None:
    """Accept ISO dates/datetimes and RFC 2822 strings (Tavily news results)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(text).date()
    except (TypeError, ValueError):
        return None


async def search_raw(
    query: str,
    *,
    search_depth: str | None = None,
    max_results: int | None = None,
    include_answer: bool | None = None,
    include_raw_content: bool | None = None,
    include_images: bool | None = None,
) -> dict[str, Any]:
    """Execute a Tavily web search and return the unmodified response payload."""
    if not settings.tavily_api_key:
        raise ConfigurationError("TAVILY_API_KEY is not configured")

    client = AsyncTavilyClient(api_key=settings.tavily_api_key)

    kwargs: dict[str, Any] = {
        "query": query,
        "search_depth": search_depth or settings.search_depth,
        "max_results": max_results if max_results is not None else settings.search_max_results,
        "include_answer": (
            settings.search_include_answer if include_answer is None else include_answer
        ),
        "include_raw_content": (
            settings.search_include_raw_content
            if include_raw_content is None
            else include_raw_content
        ),
        "include_images": (
            settings.search_include_images if include_images is None else include_images
        ),
    }
    return await client.search(**kwargs)


async def search(query: str, **options: Any) -> list[SearchResult]:
    """Execute a Tavily web search and return structured results in source order."""
    response = await search_raw(query, **options)
    return [SearchResult.from_dict(r) for r in response.get("results", [])]
