"""
Structured logging utilities.

Configures structlog on top of the standard library and provides a context
manager for timing operations against GitHub.
"""

from __future__ import annotations

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO", fmt: str = "console") -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Logging level name.
        fmt: ``console`` for human-readable output, ``json`` for one JSON object per line.
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    renderer: Any = (
        structlog.processors.JSONRenderer() if fmt == "json" else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())


@asynccontextmanager
async def log_operation(operation: str, **context: Any) -> Any:  # AsyncGenerator[None, None]
    """
    Context manager for structured operation logging.

    Logs operation start, completion, and errors with timing information.

    Example:
        async with log_operation("installation_token_exchange", installation_id=42):
            token = await exchange(...)
    """
    start_time = time.monotonic()
    log = logger.bind(operation=operation, **context)
    log.debug("operation_started")

    try:
        yield
    except Exception as e:
        latency_ms = int((time.monotonic() - start_time) * 1000)
        log.warning("operation_failed", latency_ms=latency_ms, error=str(e))
        raise
    else:
        latency_ms = int((time.monotonic() - start_time) * 1000)
        log.info("operation_completed", latency_ms=latency_ms)
