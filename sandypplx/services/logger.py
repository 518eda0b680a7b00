"""Centralized logging service using loguru."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from loguru import logger

from sandypplx.config import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "sse_starlette.sse",
    "httpx",
    "httpcore",
    "openai._base_client",
    "tavily",
    "asyncio",
)

_configured = False


def configure_logging(log_dir: str | None = None) -> Path:
    """Install the stderr and daily file sinks; later calls are no-ops."""
    global _configured
    path = Path(log_dir or settings.log_dir)
    if _configured:
        return path

    path.mkdir(parents=True, exist_ok=True)
    logger.remove()
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=settings.app_log_level.upper(),
        colorize=True,
    )
    logger.add(
        path / "sandypplx_{time:YYYY-MM-DD}.log",
        format=FILE_FORMAT,
        level="DEBUG",
        rotation="00:00",
        retention="7 days",
        compression="zip",
    )
    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(settings.noisy_log_level.upper())

    _configured = True
    return path


def log_llm_call(
    model: str,
    caller: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    """Log a chat completion call."""
    call_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "model": model,
        "caller": caller,
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "total_tokens": input_tokens + output_tokens,
        "duration_ms": duration_ms,
        "status": status,
        "error": error,
    }
    if error:
        logger.error(f"LLM_CALL_FAILED: {call_data}")
    else:
        logger.info(f"LLM_CALL: {call_data}")


def log_search_call(
    provider: str,
    query: str,
    results_count: int = 0,
    duration_ms: int = 0,
    error: Optional[str] = None,
) -> None:
    """Log a web search round trip."""
    search_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "provider": provider,
        "query": query[:200],
        "results_count": results_count,
        "duration_ms": duration_ms,
        "error": error,
    }
    if error:
        logger.warning(f"SEARCH_FAILED: {search_data}")
    else:
        logger.info(f"SEARCH: {search_data}")


def log_event(
    event_type: str,
    message: str,
    **kwargs,
) -> None:
    """Log a generic event."""
    event_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "message": message,
        **kwargs,
    }
    logger.info(f"EVENT: {event_data}")
