"""
structlog configuration shared by the CLI and embedding applications.
"""

from __future__ import annotations

import sys

import structlog
import structlog.stdlib


def configure_logging(level: str = "info", fmt: str = "text") -> None:
    """Configure structlog with the specified level and format.

    Log lines go to stderr so command output on stdout stays scriptable.
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            structlog.stdlib.NAME_TO_LEVEL[level.lower()]
        ),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )
