"""Logging configuration using loguru with automatic dev/prod detection."""

import sys
from loguru import logger

from credibility_system.config.settings import settings


def configure_logging() -> None:
    """
    Configure loguru based on environment settings.

    Behavior:
    - Development (TTY + console format): Colorized, human-readable output
    - Production (non-TTY or json format): JSON-structured logs to stdout
    - Respects LOG_LEVEL from settings
    """
    # Drop loguru's default stderr handler
    logger.remove()

    is_tty = sys.stderr.isatty()
    use_console_format = settings.log_format.lower() == "console"

    # Records logged without bind() still need a component for the format string
    logger.configure(extra={"component": "-"})

    if is_tty and use_console_format:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[component]}</cyan> | <level>{message}</level>",
            level=settings.log_level,
            colorize=True,
        )
    else:
        # One JSON record per line for log shippers
        logger.add(
            sys.stdout,
            format="{message}",
            level=settings.log_level,
            serialize=True,
            diagnose=False,  # Never dump local variables (API keys) into logs
        )


def get_logger(component: str):
    """
    Get a logger instance bound to a specific component name.

    Args:
        component: Component/module name for log context

    Returns:
        Logger instance with component context

    Example:
        >>> log = get_logger("scoring.corroboration")
        >>> log.info("Evaluating report")
    """
    return logger.bind(component=component)


# Configure logging on module import
configure_logging()

__all__ = ["logger", "get_logger", "configure_logging"]
