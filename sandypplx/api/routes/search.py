from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from sandypplx.models.schemas import ErrorResponse, SearchRequest
from sandypplx.services import logger as log_service
from sandypplx.tools import tavily_search

router = APIRouter(prefix="/api/search", tags=["search"])


@router.post("", responses={500: {"model": ErrorResponse}})
async def search(request: SearchRequest):
    """Proxy one query to Tavily and return its response unchanged."""
    try:
        return await tavily_search.search_raw(request.query)
    except Exception as e:
        log_service.log_event(
            event_type="search_error",
            message="Tavily search failed",
            error=str(e),
            query=request.query[:100],
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Failed to perform search",
                details=str(e) or "Unknown error",
            ).model_dump(),
        )
