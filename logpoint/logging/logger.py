"""
Structured logging module using structlog.

Provides machine-friendly JSON logging output for log points and for the
library's own diagnostics.
"""
import logging
from typing import Optional

import structlog

from logpoint.config import Settings
from logpoint.models import LogLevel


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structlog for log point output.

    Sets up processors for structured logging with a JSON (or console) renderer.
    The threshold comes from LOGPOINT_LOG_LEVEL (default: INFO); TRACE is
    accepted as a threshold below DEBUG.

    Args:
        settings: Settings to apply; read from the environment when omitted
    """
    if settings is None:
        settings = Settings()

    if settings.json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_threshold(settings.log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _threshold(level: LogLevel) -> int:
    # Filtering loggers only exist for the stdlib levels; NOTSET lets TRACE through
    if level is LogLevel.TRACE:
        return logging.NOTSET
    return level.levelno


def _configure_on_import() -> None:
    settings = Settings()
    if settings.configure_logging:
        configure_logging(settings)


# Configure logging on module import
_configure_on_import()


def get_logger(name: str) -> structlog.typing.FilteringBoundLogger:
    """
    Get a logger instance for the given name.

    Args:
        name: Logger name, a module name or the dotted name of a class
            (e.g., "billing.invoices.InvoiceService")

    Returns:
        Configured structlog logger with the logger name bound
    """
    return structlog.get_logger(name).bind(logger=name)
