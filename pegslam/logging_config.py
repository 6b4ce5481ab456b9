"""
Peg Slam - Structured Logging Configuration
===========================================
Provides JSON-formatted structured logging with request context.

Features:
- JSON output for log aggregation
- Request-scoped context (request_id, principal, endpoint)
- Performance tracking (duration_ms)
- Log level filtering via environment

Usage:
    from pegslam.logging_config import get_logger, log_event

    logger = get_logger(__name__)
    logger.info("Pegs drawn", extra={"competition_id": cid})

    # Or use the helper
    log_event("competition_joined", competition_id=cid, peg_number=4)
"""

from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
import time
import traceback
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pegslam.config import settings


class LogLevel(str, Enum):
    """Standard log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# =============================================================================
# Request context
# =============================================================================

_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("log_request_id", default=None)
_principal_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("log_principal", default=None)
_client_ip_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("log_client_ip", default=None)
_endpoint_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("log_endpoint", default=None)


class LogContext:
    """
    Request-scoped log context.

    Backed by contextvars so values set in middleware are visible to route
    handlers running in the threadpool.
    """

    @classmethod
    def set_request_id(cls, request_id: str | None) -> None:
        _request_id_var.set(request_id)

    @classmethod
    def get_request_id(cls) -> str | None:
        return _request_id_var.get()

    @classmethod
    def set_principal(cls, principal: str | None) -> None:
        """Set the authenticated principal, e.g. ``user:<id>`` or ``staff:<id>``."""
        _principal_var.set(principal)

    @classmethod
    def get_principal(cls) -> str | None:
        return _principal_var.get()

    @classmethod
    def set_client_ip(cls, client_ip: str | None) -> None:
        _client_ip_var.set(client_ip)

    @classmethod
    def get_client_ip(cls) -> str | None:
        return _client_ip_var.get()

    @classmethod
    def set_endpoint(cls, endpoint: str | None) -> None:
        _endpoint_var.set(endpoint)

    @classmethod
    def get_endpoint(cls) -> str | None:
        return _endpoint_var.get()

    @classmethod
    def clear(cls) -> None:
        """Clear all context."""
        _request_id_var.set(None)
        _principal_var.set(None)
        _client_ip_var.set(None)
        _endpoint_var.set(None)

    @classmethod
    def get_all(cls) -> dict[str, Any]:
        """Get all context as a dict."""
        return {
            "request_id": cls.get_request_id(),
            "principal": cls.get_principal(),
            "client_ip": cls.get_client_ip(),
            "endpoint": cls.get_endpoint(),
        }


# =============================================================================
# JSON Formatter
# =============================================================================

_STANDARD_ATTRS = frozenset(
    {
        "name", "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "lineno", "funcName", "created", "msecs",
        "relativeCreated", "thread", "threadName", "processName",
        "process", "getMessage", "exc_info", "exc_text", "stack_info",
        "taskName",
    }
)


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs in a consistent JSON format with timestamps,
    log levels, and contextual fields.
    """

    def __init__(
        self,
        *,
        service_name: str = "pegslam",
        environment: str = "production",
        include_extra_fields: bool = True,
    ) -> None:
        super().__init__()
        self.service_name = service_name
        self.environment = environment
        self.include_extra_fields = include_extra_fields
        self._iso_format = "%Y-%m-%dT%H:%M:%S.%fZ"

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": self._format_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "environment": self.environment,
        }

        if record.pathname:
            log_entry["file"] = Path(record.pathname).name
            log_entry["line"] = record.lineno
            log_entry["function"] = record.funcName

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        for key, value in LogContext.get_all().items():
            if value is not None:
                log_entry[key] = value

        if self.include_extra_fields:
            for key, value in record.__dict__.items():
                if key not in _STANDARD_ATTRS and not key.startswith("_"):
                    log_entry[key] = value

        return json.dumps(log_entry, default=self._json_serializer, ensure_ascii=False)

    def _format_timestamp(self, created: float) -> str:
        dt = datetime.fromtimestamp(created, tz=timezone.utc)
        return dt.strftime(self._iso_format)

    @staticmethod
    def _json_serializer(obj: Any) -> str:
        if isinstance(obj, datetime):
            return obj.isoformat()
        return str(obj)


# =============================================================================
# Console Formatter (human-readable fallback)
# =============================================================================


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output during development."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        level_color = self.LEVEL_COLORS.get(record.levelname, "")
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        request_id = LogContext.get_request_id() or "-"

        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        base = (
            f"{level_color}{record.levelname:<8}{self.RESET} "
            f"{timestamp} "
            f"[{request_id}] "
            f"{record.name}: "
            f"{record.getMessage()}"
        )
        if extras:
            base += " " + " ".join(f"{k}={v}" for k, v in extras.items())

        if record.exc_info:
            base += "\n" + "".join(traceback.format_exception(*record.exc_info))

        return base


# =============================================================================
# Logger Factory
# =============================================================================


def _get_log_level() -> int:
    level_str = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def _should_use_json() -> bool:
    log_format = os.environ.get("LOG_FORMAT", "").lower()
    if log_format == "console":
        return False
    if log_format == "json":
        return True
    # JSON in production, console in dev
    return not settings.debug_mode


def _convert_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


_configured = False


def configure_logging(
    *,
    level: str | int | None = None,
    service_name: str = "pegslam",
    environment: str = "production",
    log_format: str | None = None,
) -> None:
    """
    Configure the root logger with structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Service name for log identification
        environment: Environment label (production, staging, development)
        log_format: Format type ("json" or "console")
    """
    global _configured

    resolved_level = _get_log_level() if level is None else _convert_level(level)
    root = logging.getLogger()
    root.setLevel(resolved_level)

    # Replace only handlers we installed, so test harness handlers survive.
    for existing in list(root.handlers):
        if getattr(existing, "_pegslam_handler", False):
            root.removeHandler(existing)

    use_json = _should_use_json() if log_format is None else log_format == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(resolved_level)
    handler._pegslam_handler = True  # type: ignore[attr-defined]
    if use_json:
        handler.setFormatter(StructuredFormatter(service_name=service_name, environment=environment))
    else:
        handler.setFormatter(ConsoleFormatter())

    root.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the configured structured format.

    Args:
        name: Logger name (usually __name__)
    """
    if not _configured:
        configure_logging()
    return logging.getLogger(name)


# =============================================================================
# Helper Functions
# =============================================================================


def log_event(
    event_name: str,
    level: str | LogLevel = LogLevel.INFO,
    **extra_fields: Any,
) -> None:
    """
    Log a structured event with additional fields.

    Example:
        log_event("pegs_drawn", competition_id=cid, mode="random", updated=12)
    """
    logger = get_logger("pegslam.event")
    level_name = level.value if isinstance(level, LogLevel) else str(level)
    log_func = getattr(logger, level_name.lower(), logger.info)
    log_func(event_name, extra=extra_fields)


def log_error(
    event_name: str,
    exc: Exception | None = None,
    **extra_fields: Any,
) -> None:
    """Log an error event with optional exception info."""
    logger = get_logger("pegslam.error")
    if exc is not None:
        logger.error(event_name, exc_info=(type(exc), exc, exc.__traceback__), extra=extra_fields)
    else:
        logger.error(event_name, extra=extra_fields)


# =============================================================================
# Performance Tracking
# =============================================================================


class PerformanceTracker:
    """
    Context manager for tracking operation performance.

    Logs the duration and any additional metrics when the context exits.

    Example:
        with PerformanceTracker("leaderboard_build", competition_id=cid):
            rows = repo.get_leaderboard(cid)
    """

    def __init__(self, operation: str, **extra_fields: Any) -> None:
        self.operation = operation
        self.extra = extra_fields
        self._start_time: float | None = None

    def __enter__(self) -> PerformanceTracker:
        self._start_time = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        if self._start_time is None:
            return

        duration_ms = (time.perf_counter() - self._start_time) * 1000
        self.extra["duration_ms"] = round(duration_ms, 2)

        if args[0] is not None:
            self.extra["error"] = str(args[1])
            get_logger("pegslam.performance").warning(f"{self.operation}_failed", extra=self.extra)
        else:
            get_logger("pegslam.performance").debug(f"{self.operation}_completed", extra=self.extra)
