"""structlog setup for ngxdrift runs.

Log lines are diagnostics for a one-shot CLI run: they go to stderr as JSON
(or coloured key=value pairs with the console format) and stay quiet below
warning unless --verbose is given.
"""

from __future__ import annotations

import logging
import sys

import structlog


def setup_logging(level: str = "warning", fmt: str = "json") -> None:
    """Route ngxdrift logs to stderr at *level*, rendered as *fmt*.

    stdout carries only the progress lines and the verdict.
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)
    renderer = structlog.dev.ConsoleRenderer() if fmt == "console" else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Return a logger tagged with the ngxdrift component it belongs to."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]
