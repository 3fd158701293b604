"""Structured logging setup using structlog."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_CONFIGURED = False


def configure_logging(level: str = "INFO", *, json: bool = False, force: bool = False) -> None:
    """Initialize structlog once for the process.

    Args:
        level: Minimum log level name.
        json: Render events as JSON lines instead of the console format.
        force: Reconfigure even if logging was already set up.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format="%(message)s", stream=sys.stderr)

    renderer: Any
    if json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        logger_factory=_stderr_logger,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )

    _CONFIGURED = True


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Resolved per logger so a redirected or replaced stderr is honored.
    return structlog.PrintLogger(sys.stderr)


def get_logger(name: str | None = None) -> Any:
    """Return a bound structlog logger, configuring defaults on first use."""
    configure_logging()
    return structlog.get_logger(name)
