from __future__ import annotations

from typing import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import JSONResponse, StreamingResponse

from sandypplx.api.deps import get_answer_streamer, get_reformulator
from sandypplx.models.schemas import ChatRequest, ErrorResponse
from sandypplx.models.session import ConversationTurn, Role
from sandypplx.services import logger as log_service

router = APIRouter(prefix="/api/chat", tags=["chat"])


async def _relay(first: str, rest: AsyncIterator[str]) -> AsyncIterator[str]:
    try:
        yield first
        async for chunk in rest:
            yield chunk
    except Exception as e:
        # Headers are already sent; the body just ends early.
        log_service.log_event(
            event_type="stream_error",
            message="Answer stream failed mid-response",
            error=str(e),
        )
    finally:
        await rest.aclose()


@router.post("", responses={500: {"model": ErrorResponse}})
async def chat(request: ChatRequest):
    """Stream a cited answer for the last message as plain text.

    Conversations with more than one exchange get their last question
    reformulated for search context before the answer is requested.
    """
    turns = [
        ConversationTurn(role=Role(m.role), raw_text=m.content)
        for m in request.messages
    ]
    prior_turns, question = turns[:-1], turns[-1].raw_text
    sources = [r.to_result() for r in request.search_results]

    chunks: AsyncIterator[str] | None = None
    try:
        reformulated: str | None = None
        if len(turns) > 2:
            reformulated = await get_reformulator().reformulate(prior_turns, question)

        chunks = get_answer_streamer().stream_answer(prior_turns, question, sources, reformulated)
        first = await anext(chunks, "")
    except Exception as e:
        if chunks is not None:
            await chunks.aclose()
        log_service.log_event(
            event_type="chat_error",
            message="Error in chat processing",
            error=str(e),
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process chat"},
        )

    return StreamingResponse(_relay(first, chunks), media_type="text/plain; charset=utf-8")
