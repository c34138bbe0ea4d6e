"""
Configuration Utility - Environment Variables Management

Centralized configuration loading from .env files using pydantic-settings.
Type-safe access to all environment variables with validation.

Usage:
    from utils.config import get_settings

    settings = get_settings()
    source_url = settings.SOURCE_API_URL
    destination_url = require_destination_url(settings.DESTINATION_API_URL)
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from utils.errors import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    SOURCE_API_URL: str = Field(default="https://jsonplaceholder.typicode.com/users")
    DESTINATION_API_URL: str = Field(default="")
    HTTP_TIMEOUT: float = Field(default=10.0, gt=0)

    # Dispatch Configuration
    EMAIL_SUFFIX: str = Field(default=".biz", min_length=1)
    DELIVERY_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    DELIVERY_RETRY_DELAY: float = Field(default=2.0, ge=0)

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="text")

    # Application Metadata
    APP_NAME: str = Field(default="biz-user-dispatch")
    APP_VERSION: str = Field(default="0.1.0")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Singleton Settings instance
    """
    return Settings()


def require_destination_url(value: str | None) -> str:
    """Return the destination URL or fail fast when it is not configured.

    Args:
        value: Destination URL from the command line or environment

    Raises:
        ConfigError: If the value is missing or blank
    """
    if value is None or not value.strip():
        raise ConfigError(
            "DESTINATION_API_URL not set: pass --destination-url or export DESTINATION_API_URL"
        )
    return value.strip()

