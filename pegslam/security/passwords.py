"""
Password hashing and one-time tokens.

Passwords go through a passlib ``CryptContext`` (bcrypt). Reset tokens are
handed to the user in plain text and stored only as their SHA-256 digest.
"""

from __future__ import annotations

import hashlib
import secrets
import string

from passlib.context import CryptContext

BCRYPT_ROUNDS = 12

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits
INVITE_CODE_LENGTH = 6

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, encoded: str | None) -> bool:
    """Check ``password`` against a stored hash; unrecognised hashes never match."""
    if not encoded:
        return False
    try:
        return pwd_context.verify(password, encoded)
    except ValueError:
        return False


def generate_token() -> str:
    """32 random bytes as hex, for email verification and password reset links."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_session_token() -> str:
    return secrets.token_urlsafe(32)


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))
