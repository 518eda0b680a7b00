"""OpenAI-compatible chat completion client used for reformulation and answers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterator

from sandypplx.config import settings
from sandypplx.exceptions import ConfigurationError


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


class ChatStream:
    """Async context manager around a streamed chat completion.

    Leaving the context closes the underlying HTTP stream, which is also how
    a superseded answer stream is cancelled.
    """

    def __init__(self, stream_coro: Any):
        self._stream_coro = stream_coro
        self._stream: Any | None = None
        self._usage = Usage()
        self._finished = False

    async def __aenter__(self) -> "ChatStream":
        self._stream = await self._stream_coro
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._stream is not None:
            await self._stream.close()

    async def _iter_text(self) -> AsyncIterator[str]:
        if self._stream is None:
            return
        async for chunk in self._stream:
            choices = getattr(chunk, "choices", None) or []
            usage = getattr(chunk, "usage", None)
            if usage:
                self._usage = Usage(
                    input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                    output_tokens=getattr(usage, "completion_tokens", 0) or 0,
                )

            if not choices:
                continue
            delta = getattr(choices[0], "delta", None)
            if not delta:
                continue
            text = getattr(delta, "content", None)
            if text:
                yield text
        self._finished = True

    @property
    def text_stream(self) -> AsyncIterator[str]:
        return self._iter_text()

    @property
    def usage(self) -> Usage:
        return self._usage

    @property
    def finished(self) -> bool:
        return self._finished


class ChatCompletionsAdapter:
    def __init__(self, openai_client: Any):
        self._client = openai_client

    @staticmethod
    def to_openai_messages(system: str, messages: list[dict[str, str]]) -> list[dict[str, str]]:
        openai_messages = [{"role": "system", "content": system}]
        for message in messages:
            openai_messages.append(
                {"role": str(message["role"]), "content": str(message["content"])}
            )
        return openai_messages

    def stream(
        self,
        *,
        model: str,
        system: str,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int | None = None,
    ) -> ChatStream:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": self.to_openai_messages(system, messages),
            "temperature": temperature,
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        return ChatStream(self._client.chat.completions.create(**kwargs))


def get_client() -> ChatCompletionsAdapter:
    """Build the chat client via the OpenAI SDK."""
    from openai import AsyncOpenAI

    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY is not configured")
    base_url = settings.openai_base_url.strip() or "https://api.openai.com/v1"
    openai_client = AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=base_url,
    )
    return ChatCompletionsAdapter(openai_client)


def get_model() -> str:
    """Model used for answers."""
    return settings.chat_model


def get_reformulation_model() -> str:
    """Model used for query reformulation; defaults to the answer model."""
    if settings.reformulation_model:
        return settings.reformulation_model
    return settings.chat_model


_client: ChatCompletionsAdapter | None = None


def client() -> ChatCompletionsAdapter:
    """Get or create the chat client."""
    global _client
    if _client is None:
        _client = get_client()
    return _client
