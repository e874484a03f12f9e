"""
logging.py

Responsibility: Configure stdlib logging with a structlog formatter on stderr.

Level: `-v` (DEBUG), else $WHEELBUILDER_LOG_LEVEL, else WARNING.
$WHEELBUILDER_LOG_JSON switches the renderer to JSON.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

LEVEL_ENV_VAR = "WHEELBUILDER_LOG_LEVEL"
JSON_ENV_VAR = "WHEELBUILDER_LOG_JSON"


def _resolve_level(value: str | int | None, verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    if value is None:
        return logging.WARNING
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    # Unknown names come back as the string "Level <name>".
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else logging.WARNING


def _resolve_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def configure_logging(*, verbose: bool = False, level: str | int | None = None, force: bool = True) -> None:
    """Route stdlib and structlog records through one stderr handler."""
    resolved_level = _resolve_level(level or os.environ.get(LEVEL_ENV_VAR), verbose)

    renderer: structlog.types.Processor
    if _resolve_bool(os.environ.get(JSON_ENV_VAR)):
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    if force:
        root_logger.handlers.clear()
    root_logger.setLevel(resolved_level)
    root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
