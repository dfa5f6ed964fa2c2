"""Logging setup for txsql.

Library modules log through ``logging.getLogger(__name__)`` and install
no handlers. Applications and the CLI call configure_logging() to render
the ``txsql`` logger tree as text or JSON through structlog.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional

import structlog

from txsql.core.config import config

_HANDLER_NAME = "txsql"


def _build_formatter(log_format: str) -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering stdlib records with structlog processors."""
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ExtraAdder(),
            structlog.processors.TimeStamper(fmt="iso"),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def configure_logging(
    level: Optional[str] = None,
    log_format: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Attach a structlog-rendered handler to the ``txsql`` logger.

    Calling it again replaces the handler installed by the previous call.

    Args:
        level: Log level name, defaults to config.log_level
        log_format: "text" or "json", defaults to config.log_format
        stream: Output stream, defaults to stderr

    Returns:
        The configured ``txsql`` logger

    Raises:
        ValueError: If log_format is not "text" or "json"
    """
    level = (level or config.log_level).upper()
    log_format = log_format or config.log_format
    if log_format not in ("text", "json"):
        raise ValueError(f"Invalid log format: {log_format}. Must be one of: text, json")

    logger = logging.getLogger("txsql")
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(_build_formatter(log_format))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
