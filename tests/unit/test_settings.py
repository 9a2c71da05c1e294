# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from src.core.config.settings import (
    CORSSettings,
    IdentityServiceSettings,
    ProfileDatabaseSettings,
    Settings,
    SMTPSettings,
    clear_settings_cache,
    get_settings,
)


class TestProfileDatabaseSettings:
    """Tests for database URL construction."""

    def test_url_from_components(self):
        settings = ProfileDatabaseSettings(
            user="u", password="p", host="db", port=5433, database="profile"
        )

        assert settings.url == "postgresql+asyncpg://u:p@db:5433/profile"

    def test_url_override_from_env(self, monkeypatch):
        monkeypatch.setenv("PROFILE_DB_URL", "sqlite+aiosqlite:///profile.db")

        assert ProfileDatabaseSettings().url == "sqlite+aiosqlite:///profile.db"


class TestIdentityServiceSettings:
    """Tests for internal request headers."""

    def test_headers_include_secret_when_set(self):
        headers = IdentityServiceSettings(internal_secret="abc").internal_headers

        assert headers["X-Internal-Request"] == "true"
        assert headers["X-Internal-Secret"] == "abc"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("IDENTITY_SERVICE_URL", "http://identity.internal:4000")
        monkeypatch.setenv("IDENTITY_SERVICE_TIMEOUT", "3.5")

        settings = IdentityServiceSettings()

        assert settings.url == "http://identity.internal:4000"
        assert settings.timeout == 3.5


class TestSettings:
    """Tests for the aggregate settings."""

    def test_smtp_is_configured_only_when_complete(self):
        assert not SMTPSettings(host="smtp", username=None).is_configured
        assert SMTPSettings(
            host="smtp", username="u", password="p", from_email="a@example.com"
        ).is_configured

    def test_cors_origins_list(self):
        cors = CORSSettings(origins="http://a.test, http://b.test,")

        assert cors.origins_list == ["http://a.test", "http://b.test"]

    def test_production_requires_internal_secret(self):
        with pytest.raises(ValidationError, match="internal secret"):
            Settings(
                environment="production",
                identity_service=IdentityServiceSettings(internal_secret=""),
            )

    def test_production_with_secret_is_valid(self):
        settings = Settings(
            environment="production",
            identity_service=IdentityServiceSettings(internal_secret="abc"),
        )

        assert settings.is_production
        assert not settings.is_development

    def test_get_settings_is_cached(self):
        clear_settings_cache()
        try:
            assert get_settings() is get_settings()
        finally:
            clear_settings_cache()
