"""Tests for shared/config.py."""

import os
from unittest.mock import patch

from shared.config import Settings, get_settings


class TestSettings:
    def test_default_values(self, monkeypatch):
        """Settings should have sensible defaults."""
        for name in ("JWT_SECRET", "BCRYPT_SALT_ROUNDS", "EMAIL_SERVICE", "DATABASE_URL"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings()
        assert settings.app_name == "ProductivityHub API"
        assert settings.app_version == "0.1.0"
        assert settings.jwt_secret == ""
        assert settings.jwt_algorithm == "HS256"
        assert settings.session_token_expires_days == 7
        assert settings.bcrypt_salt_rounds == 10
        assert settings.email_verification_expires_hours == 24
        assert settings.email_service == "console"
        assert settings.database_url.startswith("postgresql")

    def test_loads_from_env(self):
        """Settings should load from environment variables."""
        with patch.dict(os.environ, {"JWT_SECRET": "s3cret", "BCRYPT_SALT_ROUNDS": "12"}):
            settings = Settings()
            assert settings.jwt_secret == "s3cret"
            assert settings.bcrypt_salt_rounds == 12

    def test_loads_email_config_from_env(self):
        with patch.dict(os.environ, {
            "EMAIL_SERVICE": "smtp",
            "EMAIL_USER": "mailer@productivityhub.app",
            "EMAIL_PASS": "app-password",
        }):
            settings = Settings()
            assert settings.email_service == "smtp"
            assert settings.email_user == "mailer@productivityhub.app"
            assert settings.email_pass == "app-password"


class TestGetSettings:
    def test_returns_cached_instance(self):
        """get_settings should return the same instance until the cache is cleared."""
        assert get_settings() is get_settings()

    def test_cache_clear_reloads(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("SESSION_TOKEN_EXPIRES_DAYS", "3")
        get_settings.cache_clear()
        second = get_settings()
        assert second is not first
        assert second.session_token_expires_days == 3
