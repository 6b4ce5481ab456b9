"""
Centralized exception hierarchy for Peg Slam.

Every error raised by the repository, the peg/weight helpers and the API
layer derives from PegSlamError, so the API can map it to an HTTP status
and the JSON envelope both clients read (``{"message": ...}``).
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Base Exception
# =============================================================================


class PegSlamError(RuntimeError):
    """
    Base exception for all Peg Slam errors.

    Attributes:
        message: Human-readable error message, shown to the user by the clients.
        detail: Additional error details (optional).
        error_code: Machine-readable error code.
        request_id: Identifier of the request that failed (optional).
        extra: Additional top-level fields merged into the response body.
    """

    default_error_code = "pegslam_error"

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        error_code: str | None = None,
        request_id: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.error_code = error_code or self.default_error_code
        self.request_id = request_id
        self.extra = dict(extra or {})

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        if self.request_id:
            result["request_id"] = self.request_id
        result.update(self.extra)
        return result

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message

    def log(self, level: int = logging.ERROR) -> None:
        """Log the exception with structured data."""
        logger.log(
            level,
            self.message,
            extra={
                "error_code": self.error_code,
                "detail": self.detail,
                "request_id": self.request_id,
                "exception_type": self.__class__.__name__,
            },
        )


# =============================================================================
# Client Errors
# =============================================================================


class ValidationError(PegSlamError):
    """
    Raised when input validation fails.

    HTTP Status: 400 Bad Request
    """

    default_error_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        detail: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.field = field
        super().__init__(message, detail=detail, request_id=request_id)


class DuplicateError(ValidationError):
    """Raised when a unique value (email, username) is already taken."""

    default_error_code = "duplicate"


class AuthenticationError(PegSlamError):
    """
    Raised when a request needs a session and has none, or credentials are wrong.

    HTTP Status: 401 Unauthorized
    """

    default_error_code = "not_authenticated"


class PermissionDeniedError(PegSlamError):
    """
    Raised when the caller is authenticated but not allowed to act.

    HTTP Status: 403 Forbidden
    """

    default_error_code = "permission_denied"


class PaymentRequiredError(PegSlamError):
    """
    Raised when joining a paid competition without a completed payment.

    HTTP Status: 402 Payment Required
    """

    default_error_code = "payment_required"


# =============================================================================
# Not Found Errors
# =============================================================================


class NotFoundError(PegSlamError):
    """
    Raised when a requested resource is not found.

    HTTP Status: 404 Not Found
    """

    default_error_code = "not_found"

    def __init__(
        self,
        message: str = "Not found",
        *,
        resource_id: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.resource_id = resource_id
        super().__init__(message, request_id=request_id)


class CompetitionNotFoundError(NotFoundError):
    def __init__(self, competition_id: str | None = None, *, request_id: str | None = None) -> None:
        super().__init__("Competition not found", resource_id=competition_id, request_id=request_id)


class AnglerNotFoundError(NotFoundError):
    def __init__(self, user_id: str | None = None, *, request_id: str | None = None) -> None:
        super().__init__("Angler not found", resource_id=user_id, request_id=request_id)


class TeamNotFoundError(NotFoundError):
    def __init__(self, team_id: str | None = None, *, request_id: str | None = None) -> None:
        super().__init__("Team not found", resource_id=team_id, request_id=request_id)


# =============================================================================
# Conflicts
# =============================================================================


class ConflictError(PegSlamError):
    """
    Raised when a write would break a uniqueness rule (already joined, already in a team).

    HTTP Status: 409 Conflict
    """

    default_error_code = "conflict"


class PegUnavailableError(ConflictError):
    """Raised when a requested peg is booked, out of range, or none are left."""

    default_error_code = "peg_unavailable"

    def __init__(
        self,
        message: str = "Peg not available",
        *,
        peg_number: int | None = None,
        request_id: str | None = None,
    ) -> None:
        self.peg_number = peg_number
        super().__init__(message, request_id=request_id)


# =============================================================================
# Rate Limiting
# =============================================================================


class RateLimitError(PegSlamError):
    """
    Raised when a client exceeds the login/contact rate limit.

    HTTP Status: 429 Too Many Requests
    """

    default_error_code = "rate_limited"

    def __init__(
        self,
        message: str = "Too many requests, please try again later",
        *,
        retry_after: int | None = None,
        request_id: str | None = None,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(message, request_id=request_id)


# =============================================================================
# Server-side Errors
# =============================================================================


class EmailDeliveryError(PegSlamError):
    """
    Raised when the email provider rejects or fails a send.

    HTTP Status: 502 Bad Gateway
    """

    default_error_code = "email_delivery_failed"

    def __init__(
        self,
        message: str = "Failed to send email",
        *,
        status_code: int | None = None,
        detail: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, detail=detail, request_id=request_id)


class ConfigurationError(PegSlamError):
    """
    Raised when configuration is invalid.

    HTTP Status: 500 Internal Server Error
    """

    default_error_code = "configuration_error"


class DataStoreError(PegSlamError):
    """
    Raised when data store operations fail.

    HTTP Status: 500 Internal Server Error
    """

    default_error_code = "data_store_error"


class DatabaseError(DataStoreError):
    """Raised when a SQLite operation fails."""

    default_error_code = "database_error"

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        detail: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.operation = operation
        super().__init__(message, detail=detail, request_id=request_id)


# =============================================================================
# HTTP Exception Helpers
# =============================================================================

_STATUS_MAP: tuple[tuple[type[PegSlamError], int], ...] = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (PaymentRequiredError, 402),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (RateLimitError, 429),
    (EmailDeliveryError, 502),
    (ConfigurationError, 500),
    (DataStoreError, 500),
)


def exception_to_http_status(exc: PegSlamError) -> int:
    """
    Map exception to appropriate HTTP status code.

    Args:
        exc: The exception to map.

    Returns:
        HTTP status code.
    """
    for exc_class, status in _STATUS_MAP:
        if isinstance(exc, exc_class):
            return status
    return 500


def handle_exception(exc: Exception, request_id: str | None = None) -> dict[str, Any]:
    """
    Convert any exception to standardized error response.

    Args:
        exc: The exception to handle.
        request_id: Request ID for tracing.

    Returns:
        Dictionary with error details.
    """
    if isinstance(exc, PegSlamError):
        exc.request_id = request_id or exc.request_id
        return exc.to_dict()

    if isinstance(exc, ValueError):
        return ValidationError(str(exc), request_id=request_id).to_dict()

    logger.error(
        "Unhandled exception",
        extra={
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
            "request_id": request_id,
        },
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return PegSlamError(
        "Internal server error",
        error_code="internal_error",
        request_id=request_id,
    ).to_dict()
