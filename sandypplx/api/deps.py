from __future__ import annotations

from sandypplx.services.answer_stream import AnswerStreamer
from sandypplx.services.chat_session import ChatSession
from sandypplx.services.query_reformulator import QueryReformulator

# The service holds exactly one conversation, created on first use.
_session: ChatSession | None = None


def get_chat_session() -> ChatSession:
    global _session
    if _session is None:
        _session = ChatSession()
    return _session


def reset_chat_session() -> ChatSession:
    session = get_chat_session()
    session.reset()
    return session


def get_reformulator() -> QueryReformulator:
    return QueryReformulator()


def get_answer_streamer() -> AnswerStreamer:
    return AnswerStreamer()
