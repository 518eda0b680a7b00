"""Shared fakes for the chat/search pipeline tests."""
from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from sandypplx.tools.tavily_search import SearchResult


class FakeChatStream:
    """Stands in for llm_client.ChatStream.

    Script items are yielded as text; an asyncio.Event is awaited instead of
    yielded and an exception instance is raised at that point.
    """

    def __init__(self, script):
        self.script = list(script)
        self.closed = False
        self.usage = SimpleNamespace(input_tokens=3, output_tokens=5)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True

    async def _iter(self):
        for item in self.script:
            if isinstance(item, asyncio.Event):
                await item.wait()
                continue
            if isinstance(item, BaseException):
                raise item
            yield item

    @property
    def text_stream(self):
        return self._iter()


class FakeLLM:
    """Stands in for llm_client.ChatCompletionsAdapter; one script per `stream` call."""

    def __init__(self, *scripts):
        self.scripts = list(scripts)
        self.calls: list[dict] = []
        self.streams: list[FakeChatStream] = []

    def stream(self, **kwargs):
        self.calls.append(kwargs)
        stream = FakeChatStream(self.scripts.pop(0))
        self.streams.append(stream)
        return stream


class RecordingFetcher:
    """Search fetcher returning canned responses and remembering the queries."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.queries: list[str] = []

    async def __call__(self, query: str):
        self.queries.append(query)
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


@pytest.fixture
def fake_llm():
    return FakeLLM


@pytest.fixture
def recording_fetcher():
    return RecordingFetcher


@pytest.fixture
def make_result():
    def _make(title: str, score: float, url: str | None = None, content: str = "snippet"):
        return SearchResult(
            title=title,
            url=url or f"https://example.com/{title.lower().replace(' ', '-')}",
            content=content,
            score=score,
        )

    return _make
