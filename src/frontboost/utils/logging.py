from __future__ import annotations

import logging
import sys
from typing import TextIO, cast

import structlog


def configure_logging(level: str = "INFO", json: bool = False, stream: TextIO | None = None) -> None:
    """Configure structlog for frontboost.

    Log records go to stderr by default so that stdout stays free for the
    command output. ``json=True`` switches the console renderer for a JSON
    renderer, for builds running under CI or a log collector.

    Args:
        level: Standard logging level string, e.g. "DEBUG", "INFO", "WARNING".
        json: If True, render log entries as JSON. If False, use coloured console output.
        stream: Where to write; defaults to ``sys.stderr``.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    stream = stream or sys.stderr

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a named structlog logger."""
    return cast(structlog.BoundLogger, structlog.get_logger(name))
