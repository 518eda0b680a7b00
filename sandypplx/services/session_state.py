"""Session state and the reducer that is the only way to change it.

`reduce` is pure: it takes the current `StreamingSessionState` and one
`SessionEvent` and returns the next state. Events tagged with a turn id other
than the current turn are returned unchanged, which is how late chunks from
a superseded stream are discarded.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from sandypplx.models.events import EventType, SessionEvent
from sandypplx.models.session import ConversationTurn, ParsedAssistantContent, Phase, Role
from sandypplx.services.think_parser import ThinkScanner
from sandypplx.tools.tavily_search import SearchResult

APOLOGY_MESSAGE = "Sorry, there was an error processing your request."


@dataclass(frozen=True)
class AssistantBuffer:
    """Raw text of the in-progress assistant message plus its scanner."""

    turn_id: int
    raw_text: str = ""
    scanner: ThinkScanner = field(default_factory=ThinkScanner)
    closed: bool = False

    def append(self, chunk: str) -> "AssistantBuffer":
        return replace(self, raw_text=self.raw_text + chunk, scanner=self.scanner.feed(chunk))

    def close(self) -> "AssistantBuffer":
        return replace(self, scanner=self.scanner.finish(), closed=True)

    @property
    def view(self) -> ParsedAssistantContent:
        return self.scanner.view


@dataclass(frozen=True)
class StreamingSessionState:
    turns: tuple[ConversationTurn, ...] = ()
    current_turn_id: int = 0
    current_sources: tuple[SearchResult, ...] = ()
    sources_turn_id: int = 0
    search_in_flight: bool = False
    search_error: str | None = None
    reformulated_query: str | None = None
    assistant: AssistantBuffer | None = None
    phase: Phase = Phase.THINKING

    @property
    def thinking_text(self) -> str:
        if self.assistant is None:
            return ""
        return self.assistant.view.thinking_text or ""

    @property
    def answer_text(self) -> str:
        if self.assistant is None:
            return ""
        return self.assistant.view.answer_text

    @property
    def is_streaming(self) -> bool:
        return self.assistant is not None and not self.assistant.closed

    def sources_for_turn(self, turn_id: int) -> tuple[SearchResult, ...]:
        if self.sources_turn_id != turn_id:
            return ()
        return self.current_sources

    def snapshot(self) -> dict[str, Any]:
        return {
            "turn_id": self.current_turn_id,
            "turns": [t.to_dict() for t in self.turns],
            "sources": [s.to_dict() for s in self.current_sources],
            "search_in_flight": self.search_in_flight,
            "search_error": self.search_error,
            "reformulated_query": self.reformulated_query,
            "phase": self.phase.value,
            "thinking": self.thinking_text,
            "answer": self.answer_text,
            "streaming": self.is_streaming,
        }


def _freeze_assistant(state: StreamingSessionState, buffer: AssistantBuffer) -> tuple[ConversationTurn, ...]:
    turn = ConversationTurn(
        role=Role.ASSISTANT,
        raw_text=buffer.raw_text,
        turn_id=buffer.turn_id,
        sources=state.sources_for_turn(buffer.turn_id),
    )
    return state.turns + (turn,)


def _turn_submitted(state: StreamingSessionState, event: SessionEvent) -> StreamingSessionState:
    if event.turn_id <= state.current_turn_id:
        return state

    turns = state.turns
    previous = state.assistant
    # A superseded stream keeps what it produced so the conversation stays paired.
    if previous is not None and not previous.closed and previous.raw_text:
        turns = _freeze_assistant(state, previous)

    user_turn = ConversationTurn(
        role=Role.USER,
        raw_text=str(event.data.get("question", "")),
        turn_id=event.turn_id,
    )
    return replace(
        state,
        turns=turns + (user_turn,),
        current_turn_id=event.turn_id,
        search_error=None,
        reformulated_query=None,
        assistant=AssistantBuffer(turn_id=event.turn_id),
        phase=Phase.THINKING,
    )


def _search_result_arrived(state: StreamingSessionState, event: SessionEvent) -> StreamingSessionState:
    result = event.data["result"]
    if state.sources_turn_id == event.turn_id:
        sources = state.current_sources + (result,)
    else:
        # First result of a new search takes over the previous turn's list.
        sources = (result,)
    return replace(state, current_sources=sources, sources_turn_id=event.turn_id)


def _search_completed(state: StreamingSessionState, event: SessionEvent) -> StreamingSessionState:
    if state.sources_turn_id != event.turn_id:
        return replace(
            state,
            search_in_flight=False,
            current_sources=(),
            sources_turn_id=event.turn_id,
        )
    return replace(state, search_in_flight=False)


def _chat_chunk_arrived(state: StreamingSessionState, event: SessionEvent) -> StreamingSessionState:
    buffer = state.assistant
    if buffer is None or buffer.closed or buffer.turn_id != event.turn_id:
        return state
    buffer = buffer.append(str(event.data.get("chunk", "")))
    return replace(state, assistant=buffer, phase=buffer.scanner.phase)


def _chat_completed(state: StreamingSessionState, event: SessionEvent) -> StreamingSessionState:
    buffer = state.assistant
    if buffer is None or buffer.closed or buffer.turn_id != event.turn_id:
        return state
    buffer = buffer.close()
    return replace(
        state,
        turns=_freeze_assistant(state, buffer),
        assistant=buffer,
        phase=Phase.ANSWERING,
    )


def _chat_failed(state: StreamingSessionState, event: SessionEvent) -> StreamingSessionState:
    buffer = state.assistant
    if buffer is not None and buffer.closed:
        return state
    apology = AssistantBuffer(turn_id=event.turn_id).append(APOLOGY_MESSAGE).close()
    return replace(
        state,
        turns=_freeze_assistant(state, apology),
        assistant=apology,
        phase=Phase.ANSWERING,
    )


def reduce(state: StreamingSessionState, event: SessionEvent) -> StreamingSessionState:
    """Apply one event and return the next state."""
    if event.event is EventType.TURN_SUBMITTED:
        return _turn_submitted(state, event)

    if event.turn_id != state.current_turn_id:
        return state

    if event.event is EventType.QUERY_REFORMULATED:
        return replace(state, reformulated_query=str(event.data.get("query", "")))
    if event.event is EventType.SEARCH_STARTED:
        return replace(state, search_in_flight=True, search_error=None)
    if event.event is EventType.SEARCH_RESULT_ARRIVED:
        return _search_result_arrived(state, event)
    if event.event is EventType.SEARCH_COMPLETED:
        return _search_completed(state, event)
    if event.event is EventType.SEARCH_FAILED:
        return replace(
            state,
            search_in_flight=False,
            search_error=str(event.data.get("message", "")),
        )
    if event.event is EventType.CHAT_CHUNK_ARRIVED:
        return _chat_chunk_arrived(state, event)
    if event.event is EventType.CHAT_COMPLETED:
        return _chat_completed(state, event)
    if event.event is EventType.CHAT_FAILED:
        return _chat_failed(state, event)
    return state
