from __future__ import annotations

import time
from typing import Any, AsyncIterator, Sequence

from sandypplx.config import settings
from sandypplx.exceptions import ChatStreamFailure
from sandypplx.llm_client import client as llm_client, get_model
from sandypplx.models.session import ConversationTurn
from sandypplx.services import logger as log_service
from sandypplx.services.prompt_store import render_prompt
from sandypplx.tools.tavily_search import SearchResult


def format_search_context(sources: Sequence[SearchResult]) -> str:
    """Numbered source listing appended to the question."""
    if not sources:
        return render_prompt("answer.no_results")
    entries = [
        render_prompt(
            "answer.source_entry",
            index=index,
            title=source.title,
            url=source.url,
            score=source.score,
            content=source.content,
        )
        for index, source in enumerate(sources, start=1)
    ]
    return render_prompt("answer.search_results_header") + "\n".join(entries)


def build_answer_user_message(
    question: str,
    sources: Sequence[SearchResult],
    reformulated_query: str | None = None,
) -> str:
    query_context = ""
    if reformulated_query and reformulated_query != question:
        query_context = render_prompt(
            "answer.query_context",
            question=question,
            query=reformulated_query,
        )
    return (
        question
        + query_context
        + render_prompt("answer.sources_instruction")
        + format_search_context(sources)
    )


def build_answer_messages(
    prior_turns: Sequence[ConversationTurn],
    question: str,
    sources: Sequence[SearchResult],
    reformulated_query: str | None = None,
) -> list[dict[str, str]]:
    messages = [turn.to_message() for turn in prior_turns]
    messages.append(
        {
            "role": "user",
            "content": build_answer_user_message(question, sources, reformulated_query),
        }
    )
    return messages


class AnswerStreamer:
    """Streams the cited answer (thinking segment first) for one turn."""

    name = "answer"

    def __init__(self, llm: Any | None = None, model: str | None = None):
        self.llm = llm
        self.model = model or get_model()

    async def stream_answer(
        self,
        prior_turns: Sequence[ConversationTurn],
        question: str,
        sources: Sequence[SearchResult],
        reformulated_query: str | None = None,
    ) -> AsyncIterator[str]:
        """Yield raw text fragments as they arrive.

        Any collaborator error is raised as ChatStreamFailure. Closing this
        generator early closes the underlying completion stream.
        """
        messages = build_answer_messages(prior_turns, question, sources, reformulated_query)
        t0 = time.monotonic()
        try:
            active_client = self.llm or llm_client()
            async with active_client.stream(
                model=self.model,
                system=render_prompt("answer.system_prompt"),
                messages=messages,
                temperature=settings.chat_temperature,
                max_tokens=settings.chat_max_tokens,
            ) as stream:
                async for text in stream.text_stream:
                    yield text
        except Exception as e:
            log_service.log_llm_call(
                model=self.model,
                caller=self.name,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="error",
                error=str(e),
            )
            raise ChatStreamFailure(str(e)) from e

        usage = getattr(stream, "usage", None)
        log_service.log_llm_call(
            model=self.model,
            caller=self.name,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
            duration_ms=int((time.monotonic() - t0) * 1000),
        )
