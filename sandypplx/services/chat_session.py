from __future__ import annotations

import itertools
from contextlib import aclosing
from typing import AsyncGenerator

from loguru import logger

from sandypplx.exceptions import ChatStreamFailure
from sandypplx.models.events import SessionEvent
from sandypplx.services import logger as log_service
from sandypplx.services import streaming
from sandypplx.services.answer_stream import AnswerStreamer
from sandypplx.services.query_reformulator import QueryReformulator
from sandypplx.services.session_state import StreamingSessionState, reduce
from sandypplx.tools.search_client import SearchClient
from sandypplx.tools.tavily_search import SearchResult


class ChatSession:
    """One in-memory conversation: reformulate, search, then stream the answer.

    `state` is only ever replaced through `dispatch`, which runs the reducer.
    `submit` is an async generator yielding every accepted event so a renderer
    can redraw after each one. Submitting a new question supersedes any turn
    still in flight: its remaining events are rejected by the reducer and its
    answer stream is closed at the next chunk.
    """

    def __init__(
        self,
        *,
        search_client: SearchClient | None = None,
        reformulator: QueryReformulator | None = None,
        answer_streamer: AnswerStreamer | None = None,
    ):
        self.search_client = search_client or SearchClient()
        self.reformulator = reformulator or QueryReformulator()
        self.answer_streamer = answer_streamer or AnswerStreamer()
        self.state = StreamingSessionState()
        # Ids keep increasing across resets so a stream opened before a reset stays stale.
        self._turn_ids = itertools.count(1)

    def dispatch(self, event: SessionEvent) -> bool:
        """Apply `event`; returns False when the reducer discarded it."""
        previous = self.state
        self.state = reduce(previous, event)
        accepted = self.state is not previous
        if not accepted:
            logger.debug(
                f"Discarded {event.event.value} for turn {event.turn_id} "
                f"(current turn {previous.current_turn_id})"
            )
        return accepted

    def reset(self) -> None:
        self.state = StreamingSessionState()

    async def submit(self, question: str) -> AsyncGenerator[SessionEvent, None]:
        question = question.strip()
        if not question:
            return

        turn_id = next(self._turn_ids)
        event = streaming.turn_submitted(turn_id, question)
        self.dispatch(event)
        yield event
        log_service.log_event(
            event_type="turn_submitted",
            message="Turn submitted",
            turn_id=turn_id,
            question=question[:100],
        )

        prior_turns = self.state.turns[:-1]

        # Follow-ups are rewritten into a standalone query before searching.
        query = question
        reformulated: str | None = None
        if prior_turns:
            reformulated = await self.reformulator.reformulate(prior_turns, question)
            query = reformulated
            event = streaming.query_reformulated(turn_id, reformulated, question)
            if not self.dispatch(event):
                return
            yield event

        event = streaming.search_started(turn_id, query)
        if not self.dispatch(event):
            return
        yield event

        sources: list[SearchResult] = []
        result_stream = await self.search_client.perform_search(query)
        search_error = self.search_client.search_error
        async with aclosing(result_stream) as results:
            async for result in results:
                event = streaming.search_result_arrived(turn_id, result)
                if not self.dispatch(event):
                    return
                sources.append(result)
                yield event

        if search_error:
            event = streaming.search_failed(turn_id, search_error)
        else:
            event = streaming.search_completed(turn_id, len(sources))
        if not self.dispatch(event):
            return
        yield event

        # The answer request starts once the paced result stream has drained.
        try:
            async with aclosing(
                self.answer_streamer.stream_answer(
                    prior_turns,
                    question,
                    sources,
                    reformulated,
                )
            ) as chunks:
                async for chunk in chunks:
                    event = streaming.chat_chunk_arrived(turn_id, chunk)
                    if not self.dispatch(event):
                        logger.info(f"Turn {turn_id} superseded, closing its answer stream")
                        return
                    yield event
        except ChatStreamFailure as e:
            logger.error(f"Answer stream failed for turn {turn_id}: {e}")
            event = streaming.chat_failed(turn_id, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error while answering turn {turn_id}: {e}")
            event = streaming.chat_failed(turn_id, str(e))
        else:
            event = streaming.chat_completed(turn_id)

        if self.dispatch(event):
            yield event

    async def ask(self, question: str) -> StreamingSessionState:
        """Run a whole turn without observing intermediate events."""
        async for _ in self.submit(question):
            pass
        return self.state
