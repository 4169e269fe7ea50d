"""
Centralized logging configuration.

Provides consistent logging across all components:
- Settlement core
- Batch settlement
- Operator scripts

Usage:
    from src.utils.logging import setup_logging, get_logger

    # At application startup
    setup_logging()

    # In any module
    logger = get_logger(__name__)
    logger.info("Settling bets")
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from src.config import settings

ROOT_LOGGER_NAME = "bet_settlement"

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


# =============================================================================
# Log Formatters
# =============================================================================

class ColoredFormatter(logging.Formatter):
    """Colored console formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelname, "")
        context = getattr(record, "context", None)
        if context:
            pairs = " ".join(f"{k}={v}" for k, v in context.items())
            message = f"{message} [{pairs}]"
        return f"{color}{message}{self.RESET}" if color else message


class JSONFormatter(logging.Formatter):
    """JSON formatter for production/structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        context = getattr(record, "context", None)
        if context:
            log_record.update(context)

        return json.dumps(log_record, default=str)


class ContextFilter(logging.Filter):
    """Attaches the active LogContext values to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = dict(_log_context.get())
        return True


# =============================================================================
# Setup Functions
# =============================================================================

_logging_configured = False


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    json_format: Optional[bool] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Configure application-wide logging.

    Call once at application startup (script entry point, worker startup).

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config.
        log_file: Optional file path. Defaults to config.
        json_format: Use JSON format. Defaults to config.
        force: Force reconfiguration even if already configured.

    Returns:
        Root application logger
    """
    global _logging_configured

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _logging_configured and not force:
        return root_logger

    level = level or settings.log_level
    log_file = log_file or settings.log_file
    if json_format is None:
        json_format = settings.log_json

    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG)
    console_handler.addFilter(ContextFilter())

    if json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(ColoredFormatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))

    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(ContextFilter())
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    _logging_configured = True
    root_logger.debug("Logging configured")

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a named logger under the application namespace.

    Args:
        name: Logger name (usually __name__ or module name)

    Returns:
        Logger instance

    Usage:
        logger = get_logger(__name__)
        logger.info("Processing started")
    """
    # Remove common prefixes for cleaner names
    if name.startswith("src."):
        name = name[4:]

    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


# =============================================================================
# Context Managers
# =============================================================================

class LogContext:
    """
    Context manager for adding context to log messages.

    Context is stored in a ContextVar, so each worker thread keeps its own.

    Usage:
        with LogContext(bet_id="b-1", market="ASIAN_HANDICAP"):
            logger.info("Settling")  # Includes context
    """

    def __init__(self, **context: Any):
        self.context = context
        self._token = None

    def __enter__(self) -> "LogContext":
        merged = {**_log_context.get(), **self.context}
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, *args: Any) -> None:
        _log_context.reset(self._token)


def current_log_context() -> dict[str, Any]:
    """Return a copy of the active log context."""
    return dict(_log_context.get())
