#!/usr/bin/env python3
"""
Structured logging configuration for whichmodel.

Logs always go to stderr so ``--json`` output on stdout stays machine
readable. HTTP client libraries are held at WARNING because every catalog
page and model page would otherwise log a request line.
"""

import logging
import sys
from typing import List, Optional

import structlog
from structlog.typing import Processor

from .config import get_config

# Third-party loggers that log each request at INFO/DEBUG
CHATTY_LOGGERS = ("httpx", "httpcore", "openai")


def build_processors(log_format: str, colors: bool) -> List[Processor]:
    """structlog processor chain for ``log_format`` ("json" or "console")."""
    processors: List[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.processors.TimeStamper(fmt="%H:%M:%S"))
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))
    return processors


def setup_logging(level: Optional[str] = None) -> None:
    """Configure structured logging based on configuration.

    Args:
        level: Optional level overriding WHICHMODEL_LOG_LEVEL (used by --verbose)
    """
    config = get_config()
    level_name = (level or config.log_level).upper()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name),
        force=True,
    )
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=build_processors(config.log_format, colors=sys.stderr.isatty()),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "whichmodel") -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)
