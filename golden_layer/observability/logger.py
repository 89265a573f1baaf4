"""
Structured logging for golden-layer

Module loggers (``get_logger(__name__)``) carry no handlers of their own and
propagate to the ``golden_layer`` package logger, which owns the single
handler. ``configure_logging`` re-targets that handler from settings, so a
change of level or format applies to every module at once.

JSON lines come from python-json-logger; the text format is meant for
local development.
"""
import logging
import os
import sys
import time
from contextlib import contextmanager
from typing import IO

from pythonjsonlogger import jsonlogger

ROOT_LOGGER_NAME = "golden_layer"


class ConformanceJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter with a UTC timestamp, the level, the logger name and the
    thread name (steps of one phase run on different threads).
    """

    converter = time.gmtime

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)
        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ")
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["thread"] = record.threadName


def _level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName((level or "INFO").upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _formatter(format_type: str) -> logging.Formatter:
    if format_type == "text":
        return logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - [%(threadName)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    return ConformanceJsonFormatter("%(timestamp)s %(level)s %(logger)s %(message)s")


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str | int | None = None,
    format_type: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """
    Attach a fresh handler to a logger

    Args:
        name: Logger name
        level: Level name or number (LOG_LEVEL, then INFO)
        format_type: "json" or "text" (LOG_FORMAT, then json)
        stream: Output stream, stdout by default

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(_level(level or os.getenv("LOG_LEVEL")))

    # Reconfiguring replaces the handler instead of stacking a second one
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(_formatter((format_type or os.getenv("LOG_FORMAT", "json")).lower()))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def configure_logging(settings) -> logging.Logger:
    """Apply the log level and format from ``Settings`` to the package logger."""
    return setup_logger(ROOT_LOGGER_NAME, settings.log_level, settings.log_format)


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger

    Loggers inside the ``golden_layer`` namespace share the package
    handler; any other name gets its own handler on first use.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        setup_logger(ROOT_LOGGER_NAME)

    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)

    logger = logging.getLogger(name)
    if not logger.handlers:
        setup_logger(name)
    return logger


@contextmanager
def log_operation(operation_name: str, logger: logging.Logger | None = None, **fields):
    """
    Log the start and outcome of an operation with its duration

    Usage:
        with log_operation("Loading governance", logger=logger, config_dir="config"):
            ...

    Exceptions are logged and re-raised.
    """
    logger = logger or get_logger()
    context = {"operation": operation_name, **fields}
    started = time.monotonic()
    logger.info(f"{operation_name} started", extra=context)
    try:
        yield context
    except Exception as e:
        logger.error(
            f"{operation_name} failed",
            extra={
                **context,
                "status": "failed",
                "duration_seconds": round(time.monotonic() - started, 3),
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
            exc_info=True,
        )
        raise
    logger.info(
        f"{operation_name} finished",
        extra={**context, "status": "succeeded", "duration_seconds": round(time.monotonic() - started, 3)},
    )
