"""Structured logging setup."""

import logging
import sys
from typing import Optional, TextIO

import structlog

from kdump_enabler.config import LoggingConfig


def configure_logging(
    config: LoggingConfig, verbose: bool = False, stream: Optional[TextIO] = None
) -> Optional[TextIO]:
    """Configure structlog for the whole process.

    Args:
        config: Logging configuration
        verbose: Force DEBUG level regardless of configuration
        stream: Destination when no log file is configured, stderr by default

    Returns:
        The opened log file when ``config.file`` is set; the caller closes it
    """
    level_name = "DEBUG" if verbose else config.level
    level = logging.getLevelName(level_name)

    log_file = None
    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        log_file = config.file.open("a", encoding="utf-8")
        factory = structlog.WriteLoggerFactory(file=log_file)
        renderer = structlog.processors.JSONRenderer()
    else:
        factory = structlog.PrintLoggerFactory(file=stream or sys.stderr)
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=factory,
        cache_logger_on_first_use=False,
    )
    return log_file
