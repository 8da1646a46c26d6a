"""structlog configuration for the backend."""

from __future__ import annotations

import logging

import structlog
from structlog.typing import Processor

from .config import GameSettings


def configure_logging(settings: GameSettings) -> None:
    """Configure structlog once at startup.

    ``settings.log_format == "json"`` renders one JSON object per line, anything
    else uses the colourless console renderer.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    level = getattr(logging, settings.log_level, logging.INFO)
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
