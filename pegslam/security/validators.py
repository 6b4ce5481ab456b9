"""
Input validation for account and search fields.

Each validator returns the normalised value or raises
``pegslam.exceptions.ValidationError`` with the message shown to the user.
"""

from __future__ import annotations

import re

from pegslam.exceptions import ValidationError

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6
MAX_SEARCH_LENGTH = 100

_USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
# Deliberately loose: one @, a dot in the domain, no whitespace
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_email(email: str) -> str:
    value = (email or "").strip()
    if not _EMAIL_PATTERN.match(value):
        raise ValidationError("Invalid email address", field="email")
    return value.lower()


def validate_username(username: str) -> str:
    value = (username or "").strip()
    if len(value) < USERNAME_MIN_LENGTH:
        raise ValidationError(f"Username must be at least {USERNAME_MIN_LENGTH} characters", field="username")
    if len(value) > USERNAME_MAX_LENGTH:
        raise ValidationError(f"Username must be at most {USERNAME_MAX_LENGTH} characters", field="username")
    if not _USERNAME_PATTERN.match(value):
        raise ValidationError(
            "Username can only contain letters, numbers, and underscores",
            field="username",
        )
    return value


def validate_password(password: str, confirm: str | None = None) -> str:
    if len(password or "") < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
            field="password",
        )
    if confirm is not None and password != confirm:
        raise ValidationError("Passwords don't match", field="confirmPassword")
    return password


def validate_search_input(query: str | None) -> str:
    """Trim a directory search string and cap its length."""
    value = (query or "").strip()
    if len(value) > MAX_SEARCH_LENGTH:
        raise ValidationError(f"Search must be at most {MAX_SEARCH_LENGTH} characters", field="search")
    return value
