"""
Dependency helpers for API routes.

These are kept as simple functions (not FastAPI Depends): routes call them
with the request, the same way they read the repo from ``request.app.state``.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request, Response

from pegslam.api.middleware import get_client_ip
from pegslam.api.state import AppState
from pegslam.exceptions import AuthenticationError, PermissionDeniedError, RateLimitError
from pegslam.logging_config import LogContext
from pegslam.repository import PegSlamRepo

_SENSITIVE_USER_FIELDS = (
    "password",
    "resetToken",
    "resetTokenExpiry",
    "verificationToken",
    "verificationTokenExpiry",
)


def get_state(request: Request) -> AppState:
    return request.app.state.state


def get_repo(request: Request) -> PegSlamRepo:
    return get_state(request).repo


def get_session_token(request: Request) -> str | None:
    """Session token from the cookie, or from ``Authorization: Bearer``."""
    settings = get_state(request).settings
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    auth = request.headers.get("authorization") or ""
    scheme, _, value = auth.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


def _session_principal(request: Request, kind: str) -> dict[str, Any] | None:
    token = get_session_token(request)
    if not token:
        return None
    repo = get_repo(request)
    session = repo.get_session(token)
    if session is None or session["kind"] != kind:
        return None
    principal = repo.get_user(session["principalId"]) if kind == "user" else repo.get_staff(session["principalId"])
    if principal is not None:
        LogContext.set_principal(f"{kind}:{principal['id']}")
    return principal


def optional_user(request: Request) -> dict[str, Any] | None:
    return _session_principal(request, "user")


def require_user(request: Request) -> dict[str, Any]:
    user = optional_user(request)
    if user is None:
        raise AuthenticationError("Not authenticated")
    if user.get("status") == "blocked":
        raise PermissionDeniedError("Your account has been blocked")
    return user


def require_staff(request: Request) -> dict[str, Any]:
    staff = _session_principal(request, "staff")
    if staff is None:
        raise AuthenticationError("Not authenticated")
    if not staff.get("isActive", True):
        raise PermissionDeniedError("Account is inactive")
    return staff


def require_admin(request: Request) -> dict[str, Any]:
    staff = require_staff(request)
    if staff.get("role") != "admin":
        raise PermissionDeniedError("Admin access required")
    return staff


def require_user_or_staff(request: Request) -> dict[str, Any]:
    """An angler session (blocked accounts refused), otherwise a staff session."""
    if optional_user(request) is not None:
        return require_user(request)
    return require_staff(request)


def start_session(request: Request, response: Response, kind: str, principal_id: str) -> str:
    """Create a session, set the HTTP-only cookie, and return the token."""
    state = get_state(request)
    settings = state.settings
    token = state.repo.create_session(kind, principal_id, settings.session_ttl_seconds)
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    LogContext.set_principal(f"{kind}:{principal_id}")
    return token


def end_session(request: Request, response: Response) -> None:
    token = get_session_token(request)
    if token:
        get_repo(request).delete_session(token)
    response.delete_cookie(get_state(request).settings.session_cookie_name)


def enforce_rate_limit(request: Request, bucket: str) -> None:
    """Count one request from this client against ``bucket``; raise RateLimitError when over."""
    state = get_state(request)
    client_ip = get_client_ip(request, state.settings)
    allowed, retry_after = state.rate_limiter.check_rate_limit(f"{bucket}:{client_ip}")
    if not allowed:
        raise RateLimitError(retry_after=retry_after)


def public_user(user: dict[str, Any], *, include_email: bool = True) -> dict[str, Any]:
    """An angler record without password and token fields."""
    hidden = _SENSITIVE_USER_FIELDS if include_email else (*_SENSITIVE_USER_FIELDS, "email")
    return {key: value for key, value in user.items() if key not in hidden}


def set_no_store(response: Response) -> None:
    response.headers["Cache-Control"] = "no-store"
