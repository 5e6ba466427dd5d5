"""Logging and observability configuration using Pydantic Logfire.

All modules use Python's standard logging library (logging.getLogger(__name__))
and Logfire captures and enriches those records.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})

Structured logging utilities:
    log_with_context(logger, "info", "Message", task_id="123", request_id="abc")
"""

import logging

import logfire
from fastapi import FastAPI

from taskapi import __version__
from taskapi.core.config import Settings


def configure_logfire(settings: Settings) -> None:
    """Configure Pydantic Logfire and route standard logging through it.

    Nothing is sent to Logfire unless a token is configured.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="taskapi",
        service_version=__version__,
        environment=settings.environment,
        send_to_logfire="if-token-present",
        console=False,
    )

    root = logging.getLogger()
    if not any(isinstance(handler, logfire.LogfireLoggingHandler) for handler in root.handlers):
        root.addHandler(logfire.LogfireLoggingHandler())
    if root.level == logging.NOTSET or root.level > logging.INFO:
        root.setLevel(logging.INFO)

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully", extra={"environment": settings.environment})


def instrument_fastapi(app: FastAPI) -> None:
    """Add Logfire request spans to a FastAPI application."""
    logfire.instrument_fastapi(app)
    logger = logging.getLogger(__name__)
    logger.info("FastAPI instrumentation configured")


def span(name: str, **attributes: object) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("task_service.create_task"):
            ...
    """
    return logfire.span(name, **attributes)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Additional context fields (task_id, path, status_code, etc.)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)
