# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the
profile service. Settings are loaded from environment variables with
sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A cached instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.identity_service.url)
    'http://identity-service:3001'
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProfileDatabaseSettings(BaseSettings):
    """Profile database configuration.

    The profile database stores students, guardians, enrollments and
    documents. The (school_id, admission_number) uniqueness constraint
    lives here.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        url_override: Full connection URL, used instead of the components if set.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        run_migrations: Apply pending schema migrations at startup.
    """

    model_config = SettingsConfigDict(
        env_prefix="PROFILE_DB_",
        extra="ignore",
    )

    user: str = "profile"
    password: SecretStr = SecretStr("profile_password")
    host: str = "profile-db"
    port: int = 5432
    database: str = "profile"
    url_override: str | None = Field(
        default=None,
        validation_alias="PROFILE_DB_URL",
    )
    pool_size: int = 10
    max_overflow: int = 20
    run_migrations: bool = True

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class IdentityServiceSettings(BaseSettings):
    """Identity service configuration.

    The identity service owns login credentials. This service calls its
    internal endpoints to create and delete student users.

    Attributes:
        url: Base URL of the identity service.
        timeout: Request timeout in seconds.
        internal_secret: Shared secret sent with every internal request.
        student_role_name: Role assigned to provisioned students.
    """

    model_config = SettingsConfigDict(
        env_prefix="IDENTITY_SERVICE_",
        extra="ignore",
    )

    url: str = "http://identity-service:3001"
    timeout: float = 10.0
    internal_secret: SecretStr = SecretStr("")
    student_role_name: str = "STUDENT"

    @property
    def internal_headers(self) -> dict[str, str]:
        """Build headers that mark a request as internal."""
        headers = {
            "Content-Type": "application/json",
            "X-Internal-Request": "true",
        }
        secret = self.internal_secret.get_secret_value()
        if secret:
            headers["X-Internal-Secret"] = secret
        return headers


class NotificationSettings(BaseSettings):
    """Credentials notification configuration.

    Attributes:
        channel: Delivery channel for credentials emails. "identity_service"
            asks the identity service to send the email, "smtp" sends it
            directly.
        timeout: Upper bound in seconds for a single delivery attempt.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTIFICATION_",
        extra="ignore",
    )

    channel: Literal["identity_service", "smtp"] = "identity_service"
    timeout: float = 15.0


class SMTPSettings(BaseSettings):
    """SMTP configuration for the direct email channel.

    Attributes:
        host: SMTP server hostname.
        port: SMTP server port.
        username: SMTP authentication username.
        password: SMTP authentication password.
        use_tls: Use STARTTLS.
        from_email: Sender email address.
        from_name: Sender display name.
    """

    model_config = SettingsConfigDict(
        env_prefix="SMTP_",
        extra="ignore",
    )

    host: str | None = None
    port: int = 587
    username: str | None = None
    password: SecretStr | None = None
    use_tls: bool = True
    from_email: str | None = None
    from_name: str = "Profile Service"

    @property
    def is_configured(self) -> bool:
        """Check whether enough settings are present to send mail."""
        return all([self.host, self.username, self.password, self.from_email])


class FileStorageSettings(BaseSettings):
    """File storage configuration for uploaded student documents.

    Attributes:
        provider: Storage backend, "local" or "gcs".
        local_dir: Directory used by the local backend.
        bucket_name: Bucket used by the GCS backend.
    """

    model_config = SettingsConfigDict(
        env_prefix="FILE_STORAGE_",
        extra="ignore",
    )

    provider: Literal["local", "gcs"] = "local"
    local_dir: Path = Path("uploads")
    bucket_name: str | None = Field(
        default=None,
        validation_alias="GOOGLE_CLOUD_BUCKET_NAME",
    )


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        profile_db: Profile database settings.
        identity_service: Identity service client settings.
        notification: Credentials notification settings.
        smtp: SMTP settings.
        file_storage: File storage settings.
        cors: CORS settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    profile_db: ProfileDatabaseSettings = Field(default_factory=ProfileDatabaseSettings)
    identity_service: IdentityServiceSettings = Field(default_factory=IdentityServiceSettings)
    notification: NotificationSettings = Field(default_factory=NotificationSettings)
    smtp: SMTPSettings = Field(default_factory=SMTPSettings)
    file_storage: FileStorageSettings = Field(default_factory=FileStorageSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            if not self.identity_service.internal_secret.get_secret_value():
                raise ValueError(
                    "Identity service internal secret must be set in production. "
                    "Set IDENTITY_SERVICE_INTERNAL_SECRET environment variable."
                )
            if self.file_storage.provider == "gcs" and not self.file_storage.bucket_name:
                raise ValueError(
                    "GOOGLE_CLOUD_BUCKET_NAME environment variable is required "
                    "when FILE_STORAGE_PROVIDER is gcs."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
