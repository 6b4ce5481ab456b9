"""
Tests for pegslam.config.

Covers:
- Default values
- Environment variable overrides
- Rejection of malformed environment values
- The settings singleton
"""

import os
from pathlib import Path
from unittest import mock

import pytest

from pegslam.exceptions import ConfigurationError, exception_to_http_status


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self):
        from pegslam.config import Settings

        with mock.patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        assert settings.db_path == Path("data/pegslam.db")
        assert settings.upload_dir == Path("attached_assets/uploads")
        assert settings.upload_url_prefix == "/attached-assets/uploads"
        assert settings.max_upload_bytes == 8 * 1024 * 1024
        assert settings.session_cookie_name == "pegslam_session"
        assert settings.enforce_entry_fees is True
        assert settings.trust_proxy_headers is False
        assert settings.debug_mode is False
        assert settings.resend_api_key is None

    def test_env_override_paths(self):
        from pegslam.config import Settings

        env = {
            "PEGSLAM_DB_PATH": "/srv/pegslam/live.db",
            "PEGSLAM_UPLOAD_DIR": "/srv/pegslam/uploads",
            "RATE_LIMIT_DB_PATH": "/srv/pegslam/rl.db",
            "MAX_UPLOAD_BYTES": "1024",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings()

        assert settings.db_path == Path("/srv/pegslam/live.db")
        assert settings.upload_dir == Path("/srv/pegslam/uploads")
        assert settings.rate_limit_db_path == Path("/srv/pegslam/rl.db")
        assert settings.max_upload_bytes == 1024

    def test_env_override_flags(self):
        """Boolean flags accept the usual true/false spellings."""
        from pegslam.config import Settings

        env = {
            "ENFORCE_ENTRY_FEES": "false",
            "SESSION_COOKIE_SECURE": "1",
            "TRUST_PROXY_HEADERS": "true",
            "TRUSTED_PROXY_IPS": "10.0.0.1, 10.0.0.2",
            "DEBUG": "yes",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings()

        assert settings.enforce_entry_fees is False
        assert settings.session_cookie_secure is True
        assert settings.trust_proxy_headers is True
        assert settings.trusted_proxy_ips == {"10.0.0.1", "10.0.0.2"}
        assert settings.debug_mode is True

    def test_cors_origins(self):
        from pegslam.config import Settings

        env = {"CORS_ALLOW_ORIGINS": "https://pegslam.com, https://admin.pegslam.com"}
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings()
        assert settings.cors_allow_origins == {"https://pegslam.com", "https://admin.pegslam.com"}

    def test_app_url_trailing_slash_stripped(self):
        from pegslam.config import Settings

        with mock.patch.dict(os.environ, {"APP_URL": "https://pegslam.com/"}, clear=True):
            settings = Settings()
        assert settings.app_url == "https://pegslam.com"

    def test_resend_key_read_from_env(self):
        from pegslam.config import Settings

        with mock.patch.dict(os.environ, {"RESEND_API_KEY": "re_test"}, clear=True):
            settings = Settings()
            assert settings.resend_api_key == "re_test"


class TestSettingsValidation:
    @pytest.mark.parametrize(
        "name,value",
        [
            ("MAX_UPLOAD_BYTES", "8mb"),
            ("MAX_UPLOAD_BYTES", "0"),
            ("SESSION_TTL_SECONDS", "-5"),
            ("LOGIN_RATE_LIMIT", "ten"),
            ("LOGIN_RATE_WINDOW", "0"),
            ("CORS_MAX_AGE", "-1"),
        ],
    )
    def test_bad_integers_rejected(self, name, value):
        from pegslam.config import Settings

        with mock.patch.dict(os.environ, {name: value}, clear=True):
            with pytest.raises(ConfigurationError) as excinfo:
                Settings()

        assert name in excinfo.value.message
        assert exception_to_http_status(excinfo.value) == 500

    def test_zero_cors_max_age_allowed(self):
        from pegslam.config import Settings

        with mock.patch.dict(os.environ, {"CORS_MAX_AGE": "0"}, clear=True):
            settings = Settings()
        assert settings.cors_max_age == 0

    def test_cors_origin_without_scheme_rejected(self):
        from pegslam.config import Settings

        env = {"CORS_ALLOW_ORIGINS": "https://pegslam.com, pegslam.co.uk"}
        with mock.patch.dict(os.environ, env, clear=True):
            with pytest.raises(ConfigurationError) as excinfo:
                Settings()

        assert excinfo.value.detail == "pegslam.co.uk"

    def test_cors_origin_trailing_slash_stripped(self):
        from pegslam.config import Settings

        with mock.patch.dict(os.environ, {"CORS_ALLOW_ORIGINS": "https://pegslam.com/"}, clear=True):
            settings = Settings()
        assert settings.cors_allow_origins == {"https://pegslam.com"}


class TestSettingsSingleton:
    def test_get_settings_caches_and_reload_replaces(self):
        from pegslam.config import get_settings, reload_settings

        first = get_settings()
        assert get_settings() is first
        reloaded = reload_settings()
        assert reloaded is not first
        assert get_settings() is reloaded
