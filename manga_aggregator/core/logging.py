import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from manga_aggregator.config import settings

# Chatty transport loggers; their request lines duplicate our fetch events
QUIET_LOGGERS = ("httpx", "httpcore", "hpack", "asyncio")


def _renderer() -> Processor:
    json_output = settings.is_production if settings.log_json is None else settings.log_json
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and the stdlib root logger for the service."""
    log_level = logging.getLevelName((level or settings.log_level).upper())
    if settings.debug:
        log_level = logging.DEBUG

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _renderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO if settings.debug else logging.WARNING)


def get_logger(name: str | None = None, **kwargs: Any) -> structlog.BoundLogger:
    """Named structured logger, optionally with bound context."""
    logger = structlog.get_logger(name)
    if kwargs:
        logger = logger.bind(**kwargs)
    return logger


def search_context(query: str):
    """Bind ``query`` to every log event emitted inside the block, including child tasks."""
    return structlog.contextvars.bound_contextvars(query=query)
