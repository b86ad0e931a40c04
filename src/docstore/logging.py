"""Structured logging setup for docstore.

docstore is a library, so nothing is configured at import time: structlog's
defaults apply until an application (or the CLI) calls ``configure_logging``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from docstore.config import DocstoreConfig


def add_logger_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add the logger name, falling back to "docstore"."""
    event_dict["logger"] = getattr(logger, "name", None) or "docstore"
    return event_dict


class _StderrLogger(structlog.PrintLogger):
    """Print logger that remembers its name and writes to the current sys.stderr."""

    def __init__(self, name: str | None = None) -> None:
        super().__init__(file=sys.stderr)
        self.name = name


def configure_logging(config: DocstoreConfig | None = None) -> None:
    """Configure structlog with a console or JSON renderer.

    Args:
        config: Runtime configuration; ``log_level`` and ``log_format`` are used.
    """
    cfg = config or DocstoreConfig()
    level = getattr(logging, cfg.log_level.upper(), logging.WARNING)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: Processor
    if cfg.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=False,
            exception_formatter=structlog.dev.plain_traceback,
        )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_StderrLogger,
        cache_logger_on_first_use=False,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger bound to ``name``."""
    return structlog.get_logger(name or "docstore")
