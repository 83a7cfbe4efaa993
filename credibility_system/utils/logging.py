"""Structured logging utilities using structlog for store and pipeline events."""

import os
import sys
import uuid
from typing import Any, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import JSONRenderer

# Console rendering only when a human is watching and asked for it
IS_TTY = sys.stderr.isatty()
LOG_FORMAT = os.getenv("LOG_FORMAT", "console").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_structured_logging() -> None:
    """
    Configure structured logging with appropriate processors and renderers.

    Uses:
    - Console renderer for development (colorized, human-readable)
    - JSON renderer for production (structured, machine-readable)
    - Context variables for request/report correlation
    """
    # Shared by both renderers
    processors = [
        merge_contextvars,  # Bound request context
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,  # Tracebacks from logger.exception
    ]

    if IS_TTY and LOG_FORMAT == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        # One JSON object per line
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_structured_logger(
    name: str,
    component: Optional[str] = None,
    **additional_context: Any,
) -> structlog.BoundLogger:
    """
    Get a structured logger with bound context.

    Args:
        name: Logger name (typically module name)
        component: Optional component name to bind
        **additional_context: Additional context to bind

    Returns:
        Configured BoundLogger instance with context

    Example:
        >>> logger = get_structured_logger("stores", component="ReportStore")
        >>> logger.info("report_saved", report_id="abc")
    """
    logger = structlog.get_logger(name)
    if component:
        logger = logger.bind(component=component)
    if additional_context:
        logger = logger.bind(**additional_context)
    return logger


def get_correlation_id() -> str:
    """Generate a correlation ID tying a submission to its background scoring run."""
    return str(uuid.uuid4())


def bind_report_context(
    logger: structlog.BoundLogger,
    report_id: str,
    user_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> structlog.BoundLogger:
    """
    Bind report identity to an existing logger.

    Example:
        >>> log = bind_report_context(base_logger, report.id, report.user_id, cid)
        >>> log.info("scoring_completed", awarded=2)
    """
    bound = logger.bind(report_id=report_id)
    if user_id:
        bound = bound.bind(user_id=user_id)
    if correlation_id:
        bound = bound.bind(correlation_id=correlation_id)
    return bound


# Configure on module import
configure_structured_logging()

__all__ = [
    "get_structured_logger",
    "get_correlation_id",
    "bind_report_context",
    "configure_structured_logging",
]
