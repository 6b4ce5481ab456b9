"""
Security module for Peg Slam.

Provides password hashing, one-time tokens, input validation and rate
limiting.
"""

from pegslam.security.passwords import (
    generate_invite_code,
    generate_session_token,
    generate_token,
    hash_password,
    hash_token,
    verify_password,
)
from pegslam.security.rate_limit import (
    RateLimitConfig,
    SQLiteRateLimiter,
)
from pegslam.security.sql import (
    contains_pattern,
    escape_like_pattern,
)
from pegslam.security.validators import (
    validate_email,
    validate_password,
    validate_search_input,
    validate_username,
)

__all__ = [
    "hash_password",
    "verify_password",
    "generate_token",
    "hash_token",
    "generate_session_token",
    "generate_invite_code",
    "RateLimitConfig",
    "SQLiteRateLimiter",
    "escape_like_pattern",
    "contains_pattern",
    "validate_email",
    "validate_password",
    "validate_username",
    "validate_search_input",
]
