"""
Application settings loaded from environment variables.

Uses Pydantic Settings for validation and type coercion.
Never log or expose sensitive values.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "LeakWatch"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Database
    database_url: SecretStr = Field(
        ...,
        description="PostgreSQL connection string with asyncpg driver",
    )
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout_seconds: float = 10.0
    db_connect_timeout_seconds: float = 5.0

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Ensure database URL uses asyncpg driver."""
        if v and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    # Redis (optional: login rate limiting and refresh token revocation)
    redis_url: SecretStr | None = Field(
        default=None,
        description="Redis connection string",
    )

    # Security
    jwt_secret: SecretStr = Field(
        ...,
        description="256-bit secret for JWT signing",
        min_length=32,
    )
    jwt_algorithm: str = "HS256"
    jwt_expiry_hours: int = 24
    jwt_refresh_expiry_days: int = 7

    # Rate Limiting
    login_rate_limit: int = 10
    login_rate_limit_window: int = 60

    # Reports
    max_photos_per_report: int = 10
    max_photo_length: int = Field(
        default=8 * 1024 * 1024,
        description="Maximum length of one encoded photo payload, in characters",
    )

    # Status change notifications (EmailJS REST relay)
    emailjs_service_id: str | None = None
    emailjs_template_id: str | None = None
    emailjs_public_key: str | None = None
    emailjs_private_key: SecretStr | None = None
    emailjs_api_url: str = "https://api.emailjs.com/api/v1.0/email/send"
    notification_timeout_seconds: float = 10.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def email_notifications_enabled(self) -> bool:
        """True when every EmailJS identifier needed to send mail is configured."""
        return bool(
            self.emailjs_service_id
            and self.emailjs_template_id
            and self.emailjs_public_key
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings instance loaded from environment variables.
    """
    return Settings()
