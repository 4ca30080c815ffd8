"""Configuration loading for the CinéRoom booking service.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
- Support multiple environments (development, test, production)
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    base_url: str = Field(
        default="http://localhost:3000",
        description="Public base URL used to build checkout return URLs",
    )

    # Mailer configuration
    mailer_from_email: str = Field(
        default="from@example.com",
        description="Default sender address for outgoing mail",
    )
    mailer_default_to: str = Field(
        default="to@example.org",
        description="Recipient used when a mail has no explicit recipient",
    )
    mail_delivery: Literal["stdout", "outbox", "smtp"] = Field(
        default="stdout",
        description="Mail delivery backend type",
    )
    mail_outbox_dir: str = Field(
        default="./tmp/outbox",
        description="Output directory for outbox (.eml) delivery",
    )
    smtp_host: str = Field(
        default="localhost",
        description="SMTP server host",
    )
    smtp_port: int = Field(
        default=587,
        description="SMTP server port",
    )
    smtp_username: str = Field(
        default="",
        description="SMTP login user (empty disables login)",
    )
    smtp_password: str = Field(
        default="",
        description="SMTP login password",
    )
    smtp_starttls: bool = Field(
        default=True,
        description="Upgrade the SMTP connection with STARTTLS",
    )
    mailer_previews_enabled: bool | None = Field(
        default=None,
        description="Serve mailer previews over HTTP (defaults to development only)",
    )

    # Booking store configuration
    store_sqlite_path: str = Field(
        default="./data/cineroom.db",
        description="SQLite database file path",
    )

    # Payment configuration
    stripe_api_key: str = Field(
        default="",
        description="Stripe secret API key",
    )
    stripe_api_base: str = Field(
        default="https://api.stripe.com",
        description="Stripe API base URL",
    )
    stripe_webhook_secret: str = Field(
        default="",
        description="Signing secret for Stripe webhook events",
    )
    stripe_webhook_tolerance_seconds: int = Field(
        default=300,
        description="Maximum age of a signed webhook event",
    )
    stripe_currency: str = Field(
        default="eur",
        description="Currency for checkout line items",
    )
    checkout_max_seats: int = Field(
        default=5,
        description="Maximum number of seats per booking",
    )

    # HTTP server configuration
    http_host: str = Field(
        default="0.0.0.0",
        description="Host to listen on for the HTTP server",
    )
    http_port: int = Field(
        default=3000,
        description="Port to listen on for the HTTP server",
    )
    api_key: str = Field(
        default="",
        description="API key for admin and booking endpoints",
    )
    require_auth: bool = Field(
        default=False,
        description="Require API key authentication for protected endpoints",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    run_mode: Literal["server", "cli"] = Field(
        default="server",
        description="Run mode",
    )

    @field_validator("http_port", "smtp_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Ensure ports are in valid range."""
        if v <= 0 or v > 65535:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("checkout_max_seats")
    @classmethod
    def validate_max_seats(cls, v: int) -> int:
        """Ensure at least one seat can be booked."""
        if v <= 0:
            raise ValueError("checkout_max_seats must be positive")
        return v

    @field_validator("stripe_webhook_tolerance_seconds")
    @classmethod
    def validate_tolerance(cls, v: int) -> int:
        """Ensure webhook tolerance is positive."""
        if v <= 0:
            raise ValueError("stripe_webhook_tolerance_seconds must be positive")
        return v

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def previews_enabled(self) -> bool:
        """Whether mailer previews are served."""
        if self.mailer_previews_enabled is not None:
            return self.mailer_previews_enabled
        return self.environment == "development"


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
