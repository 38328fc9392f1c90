"""structlog configuration."""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from chuteskit.core.config import LoggingConfig


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure structlog rendering and level filtering.

    ``json`` renders one JSON object per line; ``console`` uses structlog's
    coloured dev renderer. Output goes to stderr so CLI stdout stays clean.
    """
    cfg = config or LoggingConfig()

    renderer: structlog.types.Processor
    if cfg.format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(cfg.level)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
