"""Logging configuration for the application."""

import logging
import sys
from contextvars import ContextVar
from typing import Any

from hybrid_rag.config import get_settings

# Context variable for request ID tracking
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    """Add request ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add request_id to the log record.

        Args:
            record: Log record to filter

        Returns:
            True to allow the record to be logged
        """
        record.request_id = request_id_var.get() or "N/A"
        return True


class ColoredFormatter(logging.Formatter):
    """Colored log formatter for console output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with a colored level name."""
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

        formatted = super().format(record)

        # Reset levelname for other handlers
        record.levelname = levelname

        return formatted


def setup_logging(level: str | None = None) -> None:
    """Configure logging for the application.

    Sets up a console handler with request ID tracking, a timestamped
    format and colored level names when attached to a terminal.

    Args:
        level: Optional level override; defaults to ``settings.log_level``
    """
    log_level = level or get_settings().log_level

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    log_format = (
        "%(asctime)s | %(levelname)-8s | %(request_id)s | "
        "%(name)s:%(funcName)s:%(lineno)d | %(message)s"
    )
    date_format = "%Y-%m-%d %H:%M:%S"

    if sys.stdout.isatty():
        formatter = ColoredFormatter(log_format, datefmt=date_format)
    else:
        formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler.setFormatter(formatter)
    console_handler.addFilter(RequestIdFilter())
    root_logger.addHandler(console_handler)

    # Quiet the provider SDKs
    for noisy in ("httpx", "httpcore", "openai", "pinecone", "chromadb", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configured with level: {log_level}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def set_request_id(request_id: str) -> None:
    """Set the request ID for the current context."""
    request_id_var.set(request_id)


def clear_request_id() -> None:
    """Clear the request ID from the current context."""
    request_id_var.set(None)


def log_progress(
    logger: logging.Logger,
    operation: str,
    current: int,
    total: int,
    **kwargs: Any,
) -> None:
    """Log progress for long-running operations.

    Args:
        logger: Logger instance
        operation: Operation name
        current: Current progress count
        total: Total count
        **kwargs: Additional context to log
    """
    percentage = (current / total * 100) if total > 0 else 0
    context = " | ".join(f"{k}={v}" for k, v in kwargs.items())
    message = f"{operation}: {current}/{total} ({percentage:.1f}%)"
    if context:
        message += f" | {context}"
    logger.info(message)
