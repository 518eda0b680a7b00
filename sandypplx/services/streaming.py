from __future__ import annotations

from sandypplx.models.events import EventType, SessionEvent
from sandypplx.tools.tavily_search import SearchResult


def turn_submitted(turn_id: int, question: str) -> SessionEvent:
    return SessionEvent(
        event=EventType.TURN_SUBMITTED,
        turn_id=turn_id,
        data={"question": question},
    )


def query_reformulated(turn_id: int, query: str, original: str) -> SessionEvent:
    return SessionEvent(
        event=EventType.QUERY_REFORMULATED,
        turn_id=turn_id,
        data={"query": query, "original": original},
    )


def search_started(turn_id: int, query: str) -> SessionEvent:
    return SessionEvent(event=EventType.SEARCH_STARTED, turn_id=turn_id, data={"query": query})


def search_result_arrived(turn_id: int, result: SearchResult) -> SessionEvent:
    return SessionEvent(
        event=EventType.SEARCH_RESULT_ARRIVED,
        turn_id=turn_id,
        data={"result": result},
    )


def search_completed(turn_id: int, results_count: int) -> SessionEvent:
    return SessionEvent(
        event=EventType.SEARCH_COMPLETED,
        turn_id=turn_id,
        data={"results_count": results_count},
    )


def search_failed(turn_id: int, message: str) -> SessionEvent:
    return SessionEvent(event=EventType.SEARCH_FAILED, turn_id=turn_id, data={"message": message})


def chat_chunk_arrived(turn_id: int, chunk: str) -> SessionEvent:
    return SessionEvent(
        event=EventType.CHAT_CHUNK_ARRIVED,
        turn_id=turn_id,
        data={"chunk": chunk},
    )


def chat_completed(turn_id: int) -> SessionEvent:
    return SessionEvent(event=EventType.CHAT_COMPLETED, turn_id=turn_id)


def chat_failed(turn_id: int, message: str) -> SessionEvent:
    return SessionEvent(event=EventType.CHAT_FAILED, turn_id=turn_id, data={"message": message})
