"""
Request observability: request IDs, timing and structured request logs.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from pegslam.api.middleware import get_client_ip
from pegslam.config import get_settings
from pegslam.exceptions import PegSlamError, handle_exception
from pegslam.logging_config import LogContext, PerformanceTracker, get_logger

_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

logger = get_logger(__name__)

_SENSITIVE_PARAMS = frozenset({"token", "password", "secret", "auth", "api_key"})


def generate_request_id() -> str:
    return str(uuid.uuid4())


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return _request_id_ctx.get()


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Adds an ``X-Request-ID`` to every response and logs each request.

    The ID comes from the incoming ``X-Request-ID`` header when present.
    Requests slower than ``slow_request_threshold_ms`` are logged at
    WARNING as ``request_completed_slow``.
    """

    def __init__(self, app: ASGIApp, *, slow_request_threshold_ms: float = 1000.0) -> None:
        super().__init__(app)
        self.slow_request_threshold_ms = slow_request_threshold_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or generate_request_id()
        settings = getattr(request.app.state, "settings", None) or get_settings()
        client_ip = get_client_ip(request, settings)

        _request_id_ctx.set(request_id)
        LogContext.set_request_id(request_id)
        LogContext.set_client_ip(client_ip)
        LogContext.set_principal(None)
        LogContext.set_endpoint(request.url.path)

        request_meta: dict[str, Any] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": client_ip,
            "user_agent": request.headers.get("user-agent"),
        }
        if request.url.query:
            request_meta["query_params"] = self._sanitize_query_params(str(request.url.query))
        logger.info("request_started", extra=request_meta)

        start = time.perf_counter()
        with PerformanceTracker("api_request", endpoint=f"{request.method} {request.url.path}", request_id=request_id):
            try:
                response = await call_next(request)
            except Exception as exc:
                error_meta: dict[str, Any] = {
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "error_type": type(exc).__name__,
                    "error_message": str(exc),
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                }
                if isinstance(exc, PegSlamError):
                    exc.request_id = request_id
                    error_meta["error_code"] = exc.error_code
                    exc.log()
                else:
                    error_meta["error_detail"] = handle_exception(exc, request_id=request_id).get("detail")
                    logger.error("request_failed", extra=error_meta, exc_info=True)
                raise

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        response_meta: dict[str, Any] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
        }
        principal = LogContext.get_principal()
        if principal:
            response_meta["principal"] = principal
        if hasattr(request.state, "result_count"):
            response_meta["result_count"] = request.state.result_count

        if duration_ms >= self.slow_request_threshold_ms:
            response_meta["slow_request"] = True
            logger.warning("request_completed_slow", extra=response_meta)
        else:
            logger.info("request_completed", extra=response_meta)
        return response

    @staticmethod
    def _sanitize_query_params(query: str) -> str:
        """Redact sensitive values (e.g. the email verification token) from a query string."""
        sanitized = []
        for part in query.split("&"):
            if "=" in part:
                key, _ = part.split("=", 1)
                if key.lower() in _SENSITIVE_PARAMS:
                    sanitized.append(f"{key}=***REDACTED***")
                    continue
            sanitized.append(part)
        return "&".join(sanitized)


__all__ = ["ObservabilityMiddleware", "generate_request_id", "get_request_id"]
