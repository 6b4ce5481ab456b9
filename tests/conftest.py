"""
Pytest configuration and shared fixtures for Peg Slam tests.

Every app is built over a throwaway SQLite file and upload directory, and
outgoing email is captured instead of sent.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict

import pytest
from passlib.context import CryptContext

# The module-level ``pegslam.api.app`` is created at import; keep its files out of the checkout.
_IMPORT_DIR = Path(tempfile.mkdtemp(prefix="pegslam-tests-"))
os.environ.setdefault("PEGSLAM_DB_PATH", str(_IMPORT_DIR / "pegslam.db"))
os.environ.setdefault("PEGSLAM_UPLOAD_DIR", str(_IMPORT_DIR / "uploads"))
os.environ.setdefault("RATE_LIMIT_DB_PATH", str(_IMPORT_DIR / "rate_limits.db"))
os.environ.pop("RESEND_API_KEY", None)

from fastapi.testclient import TestClient  # noqa: E402

from pegslam.api import create_app  # noqa: E402
from pegslam.config import Settings  # noqa: E402
from pegslam.mailer import Mailer  # noqa: E402
from pegslam.repository import PegSlamRepo  # noqa: E402
from pegslam.security import RateLimitConfig, SQLiteRateLimiter, hash_password  # noqa: E402

PASSWORD = "s3cret!"

_TOKEN_RE = re.compile(r"token=([A-Za-z0-9_\-]+)")


class RecordingMailer(Mailer):
    """Mailer that keeps messages in memory."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.sent: list[Dict[str, Any]] = []

    def send(self, *, to, subject, html_body, reply_to=None, kind="generic") -> bool:
        self.sent.append({"to": to, "subject": subject, "html": html_body, "reply_to": reply_to, "kind": kind})
        return True

    def last_token(self, kind: str) -> str:
        for message in reversed(self.sent):
            if message["kind"] == kind:
                match = _TOKEN_RE.search(message["html"])
                assert match, f"no token link in {kind} email"
                return match.group(1)
        raise AssertionError(f"no {kind} email sent")


@pytest.fixture
def password() -> str:
    """Plain-text password of every account made by the factories below."""
    return PASSWORD


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Full-cost bcrypt makes every login slow; tests use the minimum cost factor."""
    monkeypatch.setattr(
        "pegslam.security.passwords.pwd_context",
        CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=4),
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    s = Settings()
    s.db_path = tmp_path / "pegslam.db"
    s.upload_dir = tmp_path / "uploads"
    s.rate_limit_db_path = tmp_path / "rate_limits.db"
    s.max_upload_bytes = 64 * 1024
    s.enforce_entry_fees = False
    return s


@pytest.fixture
def mailer(settings: Settings) -> RecordingMailer:
    return RecordingMailer(settings)


@pytest.fixture
def app(settings: Settings, mailer: RecordingMailer):
    limiter = SQLiteRateLimiter(settings.rate_limit_db_path, RateLimitConfig(requests_per_window=1_000))
    return create_app(settings=settings, mailer=mailer, rate_limiter=limiter)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def repo(app) -> PegSlamRepo:
    return app.state.state.repo


@pytest.fixture
def make_angler(repo: PegSlamRepo) -> Callable[..., Dict[str, Any]]:
    """Create a verified angler; the returned dict carries ``headers`` for Bearer auth."""

    def _make(username: str = "jane_carp", **fields: Any) -> Dict[str, Any]:
        user = repo.create_user(
            {
                "firstName": fields.pop("firstName", username.split("_")[0].title()),
                "lastName": fields.pop("lastName", "Angler"),
                "email": fields.pop("email", f"{username}@example.com"),
                "username": username,
                "password": hash_password(PASSWORD),
                "emailVerified": True,
                **fields,
            }
        )
        token = repo.create_session("user", user["id"], 3600)
        return {**user, "headers": {"Authorization": f"Bearer {token}"}}

    return _make


@pytest.fixture
def make_staff(repo: PegSlamRepo) -> Callable[..., Dict[str, Any]]:
    def _make(email: str = "admin@pegslam.co.uk", role: str = "admin", **fields: Any) -> Dict[str, Any]:
        staff = repo.create_staff(
            {
                "email": email,
                "password": hash_password(PASSWORD),
                "firstName": fields.pop("firstName", "Sam"),
                "lastName": fields.pop("lastName", "Reed"),
                "role": role,
                **fields,
            }
        )
        token = repo.create_session("staff", staff["id"], 3600)
        return {**staff, "headers": {"Authorization": f"Bearer {token}"}}

    return _make


@pytest.fixture
def admin(make_staff) -> Dict[str, Any]:
    return make_staff()


@pytest.fixture
def make_competition(repo: PegSlamRepo) -> Callable[..., Dict[str, Any]]:
    def _make(**fields: Any) -> Dict[str, Any]:
        data = {
            "name": "Autumn Slam",
            "date": "2030-10-12",
            "time": "08:00",
            "endTime": "15:00",
            "venue": "Larford Lakes",
            "pegsTotal": 10,
            "entryFee": "0",
            **fields,
        }
        return repo.create_competition(data)

    return _make
