from __future__ import annotations

import re
import time
from typing import Any, Sequence

from loguru import logger

from sandypplx.config import settings
from sandypplx.exceptions import ReformulationFailure
from sandypplx.llm_client import client as llm_client, get_reformulation_model
from sandypplx.models.session import ConversationTurn
from sandypplx.services import logger as log_service
from sandypplx.services.prompt_store import render_prompt

_MARKUP_RE = re.compile(r"<[^>]*>")
_EDGE_QUOTES_RE = re.compile(r'^["“”\s]+|["“”\s]+$')
_NEWLINE_RE = re.compile(r"\r?\n")


def normalize_reformulated_query(raw: str) -> str:
    """Strip markup, then quotes/whitespace at the edges, then fold newlines.

    Quotes inside the text are kept; only the outer boundary is trimmed.
    """
    text = _MARKUP_RE.sub("", raw)
    text = _EDGE_QUOTES_RE.sub("", text)
    text = _NEWLINE_RE.sub(" ", text)
    return text.strip()


def build_reformulation_messages(
    prior_turns: Sequence[ConversationTurn],
    question: str,
) -> list[dict[str, str]]:
    messages = [turn.to_message() for turn in prior_turns]
    messages.append(
        {
            "role": "user",
            "content": render_prompt("reformulation.user_prompt", question=question),
        }
    )
    return messages


class QueryReformulator:
    """Rewrites a follow-up question into a standalone search query."""

    name = "reformulator"

    def __init__(self, llm: Any | None = None, model: str | None = None):
        self.llm = llm
        self.model = model or get_reformulation_model()

    async def _generate(self, messages: list[dict[str, str]]) -> str:
        t0 = time.monotonic()
        try:
            active_client = self.llm or llm_client()
            raw = ""
            async with active_client.stream(
                model=self.model,
                system=render_prompt("reformulation.system_prompt"),
                messages=messages,
                temperature=settings.reformulation_temperature,
            ) as stream:
                async for text in stream.text_stream:
                    raw += text
        except Exception as e:
            log_service.log_llm_call(
                model=self.model,
                caller=self.name,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="error",
                error=str(e),
            )
            raise ReformulationFailure(str(e)) from e

        usage = getattr(stream, "usage", None)
        log_service.log_llm_call(
            model=self.model,
            caller=self.name,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
            duration_ms=int((time.monotonic() - t0) * 1000),
        )
        return raw

    async def reformulate(
        self,
        prior_turns: Sequence[ConversationTurn],
        question: str,
    ) -> str:
        """Return a search query for `question`; falls back to the question itself."""
        if not prior_turns:
            return question

        try:
            raw = await self._generate(build_reformulation_messages(prior_turns, question))
        except ReformulationFailure as e:
            logger.warning(f"Query reformulation failed, using original question: {e}")
            return question

        query = normalize_reformulated_query(raw)
        if not query:
            logger.info("Reformulation produced no text, using original question")
            return question
        logger.debug(f"Reformulated query: {query!r}")
        return query
