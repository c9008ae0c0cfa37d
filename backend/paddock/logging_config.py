"""
Logging configuration for Paddock.

Module loggers live under the ``paddock`` namespace and propagate to a single
handler installed by ``setup_logging``. Extra fields passed through
``extra=`` are appended to the line as ``key=value`` pairs.

Usage:
    from paddock.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Meeting processed", extra={"track": "Ellerslie", "races": 8})
"""

import logging
import sys

ROOT_LOGGER_NAME = "paddock"

# Attributes every LogRecord carries; anything else came in through extra=.
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "asctime", "taskName",
})


class StructuredFormatter(logging.Formatter):
    """Formatter that includes extra fields in log output."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)

        extras = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        ]
        if extras:
            return f"{base} | {' '.join(extras)}"
        return base


def setup_logging(level: str | int = logging.INFO) -> logging.Logger:
    """
    Configure the ``paddock`` logger once.

    Args:
        level: Logging level name or number

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger under the package namespace.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger that propagates to the ``paddock`` handler
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
