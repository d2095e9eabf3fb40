"""
utils/logging.py — structlog configuration for the EAV engine.

Structured logs go to stderr as JSON or human-readable console lines
(settings.log_format), keeping stdout free for CLI output. Call
configure_logging() once at process startup (done automatically by the CLI).

Usage:
    from campus_eav.utils.logging import configure_logging, get_logger

    configure_logging()
    log = get_logger("campus_eav.store", entity_type="course")
    log.info("entity_created", entity_id=42)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from campus_shared.config import settings

_configured = False


def configure_logging(
    log_level: str | None = None,
    log_format: str | None = None,
    *,
    force: bool = False,
) -> None:
    """
    Configure structlog for the current process.

    Only the first call takes effect unless *force* is set; loggers are
    cached on first use and keep the stream they were created with.

    Args:
        log_level:  Override settings.log_level ("DEBUG", "INFO", …).
        log_format: Override settings.log_format ("json" | "console").
        force:      Reconfigure even if already configured.
    """
    global _configured
    if _configured and not force:
        return

    level_name = (log_level or settings.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)
    fmt = log_format or settings.log_format

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    if fmt == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str, **initial_values: Any) -> structlog.BoundLogger:
    """Return a structlog logger for *name*, bound to any initial context values."""
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger  # type: ignore[return-value]
