"""
Logging utilities for the Drive upload action.

Provides structured logging with entry/exit decorators, JSON formatting,
correlation IDs and the fixed action prefix used on every action-level
message.

Features:
    - Structured JSON logging when LOG_FORMAT=json
    - Correlation ID tracking per upload invocation (job uid)
    - Entry/exit decorator with timing and argument redaction
    - Colorized console output via coloredlogs

Example usage:
    >>> from drive_uploader.utils.logging import get_logger, set_correlation_id
    >>>
    >>> logger = get_logger(__name__)
    >>> set_correlation_id("job-12345")
    >>> logger.info(f"{ACTION_PREFIX} Uploading file: /renders/out.mp4")
"""

import logging
import functools
import json
import os
import uuid
from typing import Any, Callable, TypeVar, cast, Optional, Dict
from datetime import datetime, timezone
from contextvars import ContextVar

import coloredlogs

# Type variable for generic decorator typing
F = TypeVar("F", bound=Callable[..., Any])

# Correlation ID for the current invocation
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Tag preceding every action-level log line
ACTION_PREFIX = "[drive-upload]"

# Argument names never written to logs
REDACTED_ARGUMENTS = frozenset(
    {"base64_credentials", "credentials", "access_token", "token", "client_secret", "refresh_token"}
)

# LogRecord attributes that are not user-supplied extras
_STANDARD_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime"}

# Third-party loggers held at WARNING or above
QUIET_LOGGERS = ("google", "googleapiclient")


# ============================================================================
# Correlation ID Management
# ============================================================================

def get_correlation_id() -> str:
    """
    Get current correlation ID or generate a new one.

    Returns:
        Current correlation ID (generates UUID if not set)
    """
    corr_id = _correlation_id.get()
    if corr_id is None:
        corr_id = str(uuid.uuid4())
        _correlation_id.set(corr_id)
    return corr_id


def set_correlation_id(corr_id: str) -> None:
    """Set correlation ID for the current context (normally the job uid)."""
    _correlation_id.set(corr_id)


def clear_correlation_id() -> None:
    """Clear correlation ID for current context."""
    _correlation_id.set(None)


# ============================================================================
# JSON Formatter
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Example output:
        {
            "timestamp": "2026-10-19T10:30:15.123456Z",
            "level": "INFO",
            "logger": "drive_uploader.action",
            "message": "[drive-upload] Uploading file to Google Drive: ...",
            "correlation_id": "job-12345",
            "extra": {"stage": "uploading"}
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_FIELDS
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", json_format: Optional[bool] = None) -> None:
    """
    Configure global logging for the action.

    Uses JSON output when json_format is True (or, when None, when the
    LOG_FORMAT environment variable is "json"); otherwise installs
    coloredlogs on the root logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Force JSON (True) or text (False) output

    Example:
        >>> setup_logging(level="DEBUG")
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    if json_format is None:
        json_format = os.getenv("LOG_FORMAT", "text").lower() == "json"

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    if json_format:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(console_handler)
    else:
        coloredlogs.install(
            level=log_level,
            fmt=LOG_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            logger=root_logger,
        )

    # google-auth logs token request bodies at DEBUG
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name."""
    return logging.getLogger(name)


def _redact(name: str, value: Any) -> str:
    if name in REDACTED_ARGUMENTS:
        return f"{name}=<redacted>"
    return f"{name}={value!r}"


def log_function_call(func: F) -> F:
    """
    Decorator that logs function entry, exit and errors with timing.

    Arguments whose names appear in REDACTED_ARGUMENTS are logged as
    ``<redacted>``. Exceptions are logged at DEBUG and re-raised unchanged;
    the action adapter owns the user-facing error line.

    Example:
        >>> @log_function_call
        ... def verify_folder(client, folder_id): ...
        >>> # ENTER verify_folder(client=..., folder_id='P1')
        >>> # EXIT verify_folder -> FolderRef(...) (0.21s)
    """
    logger = get_logger(func.__module__)

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        correlation_id = get_correlation_id()

        arg_names = func.__code__.co_varnames[: func.__code__.co_argcount]
        args_repr = [_redact(name, value) for name, value in zip(arg_names, args)]
        kwargs_repr = [_redact(key, value) for key, value in kwargs.items()]
        all_args = ", ".join(args_repr + kwargs_repr)

        logger.debug(
            f"ENTER {func.__name__}({all_args})",
            extra={
                "function": func.__name__,
                "correlation_id": correlation_id,
                "event": "function_entry",
            },
        )

        start_time = datetime.now()
        try:
            result = func(*args, **kwargs)
        except Exception as error:
            execution_time = (datetime.now() - start_time).total_seconds()
            logger.debug(
                f"ERROR {func.__name__} raised {type(error).__name__}: {error}",
                extra={
                    "function": func.__name__,
                    "duration_seconds": execution_time,
                    "correlation_id": correlation_id,
                    "event": "function_error",
                    "error_type": type(error).__name__,
                },
            )
            raise

        execution_time = (datetime.now() - start_time).total_seconds()
        logger.debug(
            f"EXIT {func.__name__} -> {result!r} ({execution_time:.2f}s)",
            extra={
                "function": func.__name__,
                "duration_seconds": execution_time,
                "correlation_id": correlation_id,
                "event": "function_exit",
            },
        )
        return result

    return cast(F, wrapper)
