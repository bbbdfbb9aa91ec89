"""
Structured logging configuration using structlog wrapping stdlib.

Every focusflow module logs through plain `logging.getLogger(__name__)`,
so the shared processors also run as `foreign_pre_chain`; without it
stdlib records would reach the JSON renderer with no level, logger name
or timestamp.

Environment:
    FOCUSFLOW_LOG_LEVEL   default WARNING, so CLI output is only the
                          command's own JSON unless --verbose is given
    FOCUSFLOW_LOG_FORMAT  "json" for one JSON object per line; otherwise
                          console output, coloured only on a terminal

Usage:
    from focusflow.logging_config import setup_logging
    setup_logging()
"""

from __future__ import annotations

import logging
import os
import sys

import structlog


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    if level is None:
        level = os.environ.get("FOCUSFLOW_LOG_LEVEL", "WARNING")

    if json_output is None:
        json_output = os.environ.get("FOCUSFLOW_LOG_FORMAT", "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)


__all__ = ["setup_logging"]
