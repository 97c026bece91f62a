"""
Application settings - pydantic-settings configuration.

This module defines application configuration using pydantic-settings
for environment variable loading with validation and defaults.

The database URL and the token signing secret have no defaults: a process
started without them fails while building Settings instead of serving
traffic with a degraded configuration.
"""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database configuration
    database_url: str
    pool_min_size: int = 2  # Minimum connections in pool
    pool_max_size: int = 10  # Maximum connections in pool

    # Session tokens
    jwt_secret: SecretStr
    jwt_algorithm: str = "HS256"
    token_ttl_seconds: int = 3600

    # One-time codes
    otp_ttl_seconds: int = 300
    reset_grant_ttl_seconds: int = 300

    # Security settings
    bcrypt_cost: int = 10  # bcrypt work factor

    # Notifier
    notifier_backend: Literal["console", "smtp"] = "console"
    smtp_host: str = "localhost"
    smtp_port: int = 465
    smtp_username: str = ""
    smtp_password: SecretStr = SecretStr("")
    smtp_encryption: Literal["SSL/TLS", "STARTTLS"] = "SSL/TLS"
    smtp_timeout_seconds: float = 10.0
    mail_from: str = "noreply@localhost"

    # Pagination
    pagination_limit: int = 20
    pagination_max_limit: int = 100

    # Root superadmin provisioned at startup (skipped when incomplete)
    root_admin_name: str = ""
    root_admin_email: str = ""
    root_admin_password: SecretStr = SecretStr("")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("database_url")
    @classmethod
    def database_url_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("database_url must not be empty")
        return value

    @field_validator("jwt_secret")
    @classmethod
    def jwt_secret_not_blank(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("jwt_secret must not be empty")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
