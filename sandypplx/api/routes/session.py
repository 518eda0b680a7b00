from __future__ import annotations

import json as _json

from fastapi import APIRouter
from sse_starlette.sse import EventSourceResponse

from sandypplx.api.deps import get_chat_session, reset_chat_session
from sandypplx.models.schemas import AskRequest, SessionSnapshotResponse
from sandypplx.services import logger as log_service

router = APIRouter(prefix="/api/session", tags=["session"])


@router.get("", response_model=SessionSnapshotResponse)
async def get_session_snapshot():
    """Current state of the single in-memory conversation."""
    return SessionSnapshotResponse(**get_chat_session().state.snapshot())


@router.post("/reset", response_model=SessionSnapshotResponse)
async def reset_session():
    return SessionSnapshotResponse(**reset_chat_session().state.snapshot())


@router.post("/ask")
async def ask(request: AskRequest):
    """SSE endpoint that runs one turn and streams every state transition.

    Each event carries its own payload plus the resulting state snapshot, so
    a client can render from the latest event alone.
    """
    session = get_chat_session()

    async def event_generator():
        try:
            async for event in session.submit(request.question):
                yield {
                    "event": event.event.value,
                    "data": _json.dumps(
                        {**event.to_payload(), "state": session.state.snapshot()}
                    ),
                }
        except Exception as e:
            log_service.log_event(
                event_type="stream_error",
                message="Unhandled error in session stream",
                error=str(e),
            )
            yield {
                "event": "error",
                "data": _json.dumps({"message": "Session stream failed unexpectedly."}),
            }

    return EventSourceResponse(event_generator())
