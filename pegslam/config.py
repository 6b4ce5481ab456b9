"""
Peg Slam - Configuration Management
===================================
Centralized configuration with environment variable support.

Usage:
    from pegslam.config import settings

    db_path = settings.db_path
    ttl = settings.session_ttl_seconds
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from pegslam.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _env_int(name: str, *, minimum: int) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {value}")
    return value


def _env_flag(name: str) -> bool | None:
    raw = os.environ.get(name, "").strip().lower()
    if raw in ("1", "true", "yes"):
        return True
    if raw in ("0", "false", "no"):
        return False
    return None


@dataclass
class Settings:
    """Application settings with environment variable overrides."""

    # Paths
    db_path: Path = field(default_factory=lambda: Path("data/pegslam.db"))
    upload_dir: Path = field(default_factory=lambda: Path("attached_assets/uploads"))
    upload_url_prefix: str = "/attached-assets/uploads"
    max_upload_bytes: int = 8 * 1024 * 1024

    # Sessions
    session_cookie_name: str = "pegslam_session"
    session_ttl_seconds: int = 60 * 60 * 24 * 7  # 7 days
    session_cookie_secure: bool = False

    # Email
    app_url: str = "http://localhost:5000"
    email_from: str = "noreply@pegslam.co.uk"
    contact_email: str = "info@pegslam.co.uk"

    # Bookings
    enforce_entry_fees: bool = True

    # Rate limiting (login, password reset, contact form)
    login_rate_limit_requests: int = 10
    login_rate_limit_window_seconds: int = 300
    rate_limit_db_path: Path = field(default_factory=lambda: Path("data/rate_limits.db"))

    # Reverse proxy / client IP extraction
    # When running behind a reverse proxy, set TRUST_PROXY_HEADERS=true and TRUSTED_PROXY_IPS
    # to correctly derive client IPs from X-Forwarded-For.
    trust_proxy_headers: bool = False
    trusted_proxy_ips: set[str] = field(default_factory=set)

    # CORS configuration
    # Example: CORS_ALLOW_ORIGINS="https://pegslam.com,https://admin.pegslam.com"
    cors_allow_origins: set[str] = field(
        default_factory=lambda: {
            "http://localhost",
            "http://localhost:5000",
            "http://localhost:8081",  # Expo dev server
            "http://127.0.0.1",
            "http://127.0.0.1:5000",
        }
    )
    cors_allow_credentials: bool = True
    cors_max_age: int = 600  # 10 minutes

    debug_mode: bool = False

    def __post_init__(self):
        """Load overrides from environment variables."""
        self._load_env_overrides()

    def _load_env_overrides(self):
        """Load configuration from environment variables."""
        # Paths
        if db_path := os.environ.get("PEGSLAM_DB_PATH"):
            self.db_path = Path(db_path)
        if upload_dir := os.environ.get("PEGSLAM_UPLOAD_DIR"):
            self.upload_dir = Path(upload_dir)
        if (max_upload := _env_int("MAX_UPLOAD_BYTES", minimum=1)) is not None:
            self.max_upload_bytes = max_upload

        # Sessions
        if (ttl := _env_int("SESSION_TTL_SECONDS", minimum=1)) is not None:
            self.session_ttl_seconds = ttl
        if (secure := _env_flag("SESSION_COOKIE_SECURE")) is not None:
            self.session_cookie_secure = secure

        # Email
        if app_url := os.environ.get("APP_URL"):
            self.app_url = app_url.rstrip("/")
        if email_from := os.environ.get("RESEND_FROM_EMAIL"):
            self.email_from = email_from
        if contact := os.environ.get("CONTACT_EMAIL"):
            self.contact_email = contact

        # Bookings
        if (enforce := _env_flag("ENFORCE_ENTRY_FEES")) is not None:
            self.enforce_entry_fees = enforce

        # Rate limiting
        if (rate_limit := _env_int("LOGIN_RATE_LIMIT", minimum=1)) is not None:
            self.login_rate_limit_requests = rate_limit
        if (window := _env_int("LOGIN_RATE_WINDOW", minimum=1)) is not None:
            self.login_rate_limit_window_seconds = window
        if rate_db := os.environ.get("RATE_LIMIT_DB_PATH"):
            self.rate_limit_db_path = Path(rate_db)

        # Reverse proxy / headers
        if _env_flag("TRUST_PROXY_HEADERS"):
            self.trust_proxy_headers = True
        if trusted := os.environ.get("TRUSTED_PROXY_IPS", "").strip():
            self.trusted_proxy_ips = {ip.strip() for ip in trusted.split(",") if ip.strip()}

        # CORS
        if cors_origins := os.environ.get("CORS_ALLOW_ORIGINS", "").strip():
            if cors_origins == "*":
                logger.warning(
                    "CORS_ALLOW_ORIGINS set to '*' - allowing all origins. This should only be used in development."
                )
                self.cors_allow_origins = {"*"}
            else:
                origins = {origin.strip().rstrip("/") for origin in cors_origins.split(",") if origin.strip()}
                bad = sorted(o for o in origins if not o.startswith(("http://", "https://")))
                if bad:
                    raise ConfigurationError(
                        "CORS_ALLOW_ORIGINS entries must be http(s) origins",
                        detail=", ".join(bad),
                    )
                self.cors_allow_origins = origins
        if (cors_max_age := _env_int("CORS_MAX_AGE", minimum=0)) is not None:
            self.cors_max_age = cors_max_age

        if _env_flag("DEBUG"):
            self.debug_mode = True

    @property
    def resend_api_key(self) -> str | None:
        """Get the Resend API key from environment (never stored in config)."""
        return os.environ.get("RESEND_API_KEY")


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
        if _settings.debug_mode:
            logger.info("Settings loaded with debug mode enabled")
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from environment."""
    global _settings
    _settings = Settings()
    return _settings


# Convenience alias
settings = get_settings()


# Domain constants
UK_TIMEZONE = "Europe/London"

STAFF_ROLES = frozenset({"admin", "manager", "marshal"})

ANGLER_STATUSES = frozenset({"active", "pending", "blocked"})

SPONSOR_TIERS = frozenset({"platinum", "gold", "silver", "partner"})

COMPETITION_MODES = frozenset({"individual", "team"})

TEAM_PEG_ASSIGNMENT_MODES = frozenset({"team", "members"})

PRIZE_TYPES = frozenset({"pool", "other"})

PAYMENT_STATUSES = frozenset({"pending", "succeeded", "failed", "refunded"})

UPLOAD_TYPES = frozenset(
    {
        "slider",
        "news",
        "gallery",
        "sponsors",
        "logo",
        "competitions",
        "profile",
    }
)

IMAGE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
