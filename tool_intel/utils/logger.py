"""
Structured logging configuration.

Events are rendered by structlog and handed to the ``tool_intel`` stdlib
logger, which writes to stderr (stdout is reserved for command output) and,
when configured, to a log file.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import Processor

APP_LOGGER_NAME = "tool_intel"


def _reset_handlers(app_logger: logging.Logger) -> None:
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure application-wide structured logging.

    Safe to call more than once; each call replaces the previous handlers.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Whether to output logs in JSON format.
        log_file: Optional file that receives the same events as stderr.
    """
    log_level = getattr(logging, level.upper())

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=log_file is None))

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    _reset_handlers(app_logger)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(logging.Formatter("%(message)s"))
        app_logger.addHandler(handler)

    app_logger.setLevel(log_level)
    app_logger.propagate = False

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger for the given module name.

    Args:
        name: Logger name, typically __name__.

    Returns:
        Configured structlog logger instance.
    """
    return structlog.get_logger(name)


class LogContext:
    """Binds key/value pairs (tool_id, domain...) to every event inside the block."""

    def __init__(self, **kwargs):
        self.context = kwargs
        self._token = None

    def __enter__(self):
        self._token = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token:
            structlog.contextvars.reset_contextvars(**self._token)
