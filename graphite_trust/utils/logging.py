"""Logging configuration for GraphiteTrust.

structlog renders on top of the stdlib root logger. Everything goes to stderr
so the CLI's stdout carries only dashboard output.
"""

import logging
import sys
from pathlib import Path

import structlog
from structlog.stdlib import LoggerFactory

# Chatty transport loggers; one line per request drowns the dashboard logs
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_HANDLER_NAME = "graphite_trust"


def _renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _replace_handlers(root: logging.Logger, handlers) -> None:
    """Swap our handlers in place so repeated setup never duplicates output."""
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        handler.set_name(_HANDLER_NAME)
        root.addHandler(handler)


def setup_logging(settings) -> None:
    """Setup structured logging from ``GraphiteSettings``."""

    level = getattr(logging, settings.log_level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _renderer(settings.log_format),
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # structlog already rendered the event; stdlib only writes it out
    formatter = logging.Formatter("%(message)s")

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    handlers = [stream_handler]

    if settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(settings.log_file)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root = logging.getLogger()
    _replace_handlers(root, handlers)
    root.setLevel(level)

    quiet_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
