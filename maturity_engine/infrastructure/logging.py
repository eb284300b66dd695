"""
Centralized logging configuration for the maturity scoring engine.

Records are rendered as JSON (or plain text in development) and carry the
context of the operation that produced them: response id, topic id and
operation name. The context lives in a ``ContextVar`` so concurrent requests
served from the web thread pool never see each other's values.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
import time
from collections.abc import Callable
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

if TYPE_CHECKING:
    from .config import LoggingConfig

P = ParamSpec("P")
R = TypeVar("R")

ROOT_LOGGER_NAME = "maturity_engine"
CONTEXT_FIELDS = ("response_id", "assessment_id", "topic_id", "request_id", "operation")

_log_context: ContextVar[dict[str, Any]] = ContextVar("maturity_log_context", default={})


class StructuredFormatter(logging.Formatter):
    """One JSON document per record, with any context fields attached."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update(
            {name: getattr(record, name) for name in CONTEXT_FIELDS if hasattr(record, name)}
        )

        if record.exc_info and record.exc_info[0] is not None:
            error_type, error, _ = record.exc_info
            entry["exception"] = {
                "type": error_type.__name__,
                "message": str(error),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, ensure_ascii=False, default=str)


class ContextFilter(logging.Filter):
    """Copies the current logging context onto every record that passes."""

    @property
    def context(self) -> dict[str, Any]:
        return _log_context.get()

    def set_context(self, **kwargs: Any) -> Token[dict[str, Any]]:
        return _log_context.set({**_log_context.get(), **kwargs})

    def reset(self, token: Token[dict[str, Any]]) -> None:
        _log_context.reset(token)

    def clear_context(self) -> None:
        _log_context.set({})

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            setattr(record, key, value)
        return True


context_filter = ContextFilter()


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    structured: bool = True,
    enable_console: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Install handlers for the package logger, the root logger and the noisy
    third-party loggers.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path for a rotating JSON log file
        structured: JSON console output when true, plain text otherwise
        enable_console: Whether to log to stdout
        max_bytes: Size at which the log file rotates
        backup_count: Number of rotated files kept

    Example:
        >>> setup_logging(level="DEBUG", log_file="./logs/engine.log")
    """
    handlers: dict[str, dict[str, Any]] = {}

    if enable_console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "structured" if structured else "standard",
            "filters": ["context"],
            "stream": "ext://sys.stdout",
        }

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": "structured",
            "filters": ["context"],
            "filename": log_file,
            "maxBytes": max_bytes,
            "backupCount": backup_count,
            "encoding": "utf-8",
        }

    names = list(handlers)
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {"()": StructuredFormatter},
                "standard": {
                    "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "filters": {"context": {"()": lambda: context_filter}},
            "handlers": handlers,
            "loggers": {
                ROOT_LOGGER_NAME: {"level": level, "handlers": names, "propagate": False},
                "sqlalchemy.engine": {"level": "WARNING", "handlers": names, "propagate": False},
                "uvicorn.access": {"level": "WARNING", "handlers": names, "propagate": False},
            },
            "root": {"level": level, "handlers": names},
        }
    )


def configure_logging(config: LoggingConfig) -> None:
    """Apply a ``LoggingConfig`` section from the application settings."""
    setup_logging(
        level=config.level,
        log_file=config.file_path,
        structured=config.structured,
        enable_console=config.console_enabled,
        max_bytes=config.max_bytes,
        backup_count=config.backup_count,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Logger under the ``maturity_engine`` namespace.

    Example:
        >>> get_logger("scoring").name
        'maturity_engine.scoring'
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_context(**kwargs: Any) -> None:
    """Set logging context variables, e.g. ``set_context(response_id=42)``."""
    context_filter.set_context(**kwargs)


def clear_context() -> None:
    context_filter.clear_context()


class LogContext:
    """Adds context for the duration of a ``with`` block."""

    def __init__(self, **kwargs: Any):
        self.context = kwargs
        self._token: Token[dict[str, Any]] | None = None

    def __enter__(self) -> LogContext:
        self._token = context_filter.set_context(**self.context)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            context_filter.reset(self._token)
            self._token = None


def log_operation(
    operation: str, logger: logging.Logger | None = None
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Log start, success and failure of an application operation.

    Example:
        >>> @log_operation("complete_assessment")
        ... def complete_assessment(uow, response_id):
        ...     pass
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            op_logger = logger or get_logger(func.__module__)
            with LogContext(operation=operation):
                op_logger.info("Starting %s", operation)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    op_logger.error("Failed %s: %s", operation, e, exc_info=True)
                    raise
                op_logger.info("Completed %s", operation)
                return result

        return wrapper

    return decorator


def log_database_operation(operation: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Repository decorator: debug-level start/finish lines with the elapsed time."""

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            db_logger = get_logger("database")
            started = time.perf_counter()
            with LogContext(operation=f"db_{operation}"):
                db_logger.debug("Starting database operation: %s", operation)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    db_logger.error(
                        "Database operation %s failed after %.3fs: %s",
                        operation,
                        time.perf_counter() - started,
                        e,
                    )
                    raise
                db_logger.debug(
                    "Database operation %s took %.3fs", operation, time.perf_counter() - started
                )
                return result

        return wrapper

    return decorator


def configure_development_logging() -> None:
    setup_logging(level="DEBUG", log_file=os.getenv("LOG_FILE_PATH"), structured=False)


def configure_production_logging() -> None:
    setup_logging(
        level="INFO",
        log_file=os.getenv("LOG_FILE_PATH", "./logs/production.log"),
        structured=True,
    )


def configure_test_logging() -> None:
    setup_logging(level="WARNING", structured=False, enable_console=False)


def auto_configure_logging() -> None:
    """Pick a preset from the ``ENVIRONMENT`` variable."""
    env = os.getenv("ENVIRONMENT", "development").lower()

    if env == "production":
        configure_production_logging()
    elif env in ("test", "testing"):
        configure_test_logging()
    else:
        configure_development_logging()

    get_logger(__name__).info("Logging configured for %s environment", env)


if not logging.getLogger().handlers:
    auto_configure_logging()
