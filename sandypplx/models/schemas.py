from __future__ import annotations

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from sandypplx.tools.tavily_search import SearchResult


# --- Requests ---


class SearchRequest(BaseModel):
    query: str = Field(min_length=1)


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class SearchResultModel(BaseModel):
    title: str = ""
    url: str = ""
    content: str = ""
    score: float = 0.0
    published_date: date | None = None

    def to_result(self) -> SearchResult:
        return SearchResult(
            title=self.title,
            url=self.url,
            content=self.content,
            score=self.score,
            published_date=self.published_date,
        )


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(min_length=1)
    search_results: list[SearchResultModel] = Field(default_factory=list, alias="searchResults")


class AskRequest(BaseModel):
    question: str = Field(min_length=1)


# --- Responses ---


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None


class SessionSnapshotResponse(BaseModel):
    turn_id: int
    turns: list[dict[str, Any]]
    sources: list[dict[str, Any]]
    search_in_flight: bool
    search_error: str | None
    reformulated_query: str | None
    phase: str
    thinking: str
    answer: str
    streaming: bool
