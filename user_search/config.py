"""
Configuration module for the user search service.

This module provides centralized configuration management using Pydantic settings.
All configuration values can be overridden via environment variables or .env file.
"""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings for the user search service.

    All settings can be configured via environment variables.
    Settings are validated on instantiation to ensure correct configuration.

    Attributes:
        USER_API_URL: Search endpoint of the remote user directory
        REQUEST_TIMEOUT: Timeout for remote requests in seconds
        DATABASE_URL: SQLAlchemy URL of the local store
        QUERY_LOG_THRESHOLD_MS: Statements slower than this are logged
        PAGE_SIZE: Default number of users per page
        MAX_PAGE_SIZE: Largest page size accepted by the HTTP API
        KEY_VALUE_BACKEND: Where preferences (the deny-list) are persisted
        PREFERENCES_PATH: JSON file used by the ``file`` backend
        REDIS_URL: Redis server used by the ``redis`` backend
        DENY_LIST_PATH: Replacement for the bundled default deny-list
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_JSON: Render logs as JSON instead of console output
    """

    # Remote directory
    USER_API_URL: str = Field(
        default="https://slack-users.herokuapp.com/search",
        description="Search endpoint of the remote user directory",
    )
    REQUEST_TIMEOUT: float = Field(
        default=30.0,
        gt=0,
        le=120.0,
        description="Timeout for remote requests in seconds",
    )

    # Local store
    DATABASE_URL: str = Field(
        default="sqlite:///./user_search.db",
        description="SQLAlchemy URL of the local store",
    )
    QUERY_LOG_THRESHOLD_MS: int = Field(
        default=100,
        ge=0,
        description="Log statements slower than this many milliseconds",
    )

    # Paging
    PAGE_SIZE: int = Field(default=20, gt=0, description="Default page size")
    MAX_PAGE_SIZE: int = Field(
        default=20000, gt=0, description="Largest page size accepted by the API"
    )

    # Preferences
    KEY_VALUE_BACKEND: Literal["file", "redis", "memory"] = Field(
        default="file",
        description="Backend that persists the deny-list",
    )
    PREFERENCES_PATH: str = Field(
        default="./preferences.json",
        description="Preferences file for the file backend",
    )
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL for the redis backend",
    )
    DENY_LIST_PATH: Optional[str] = Field(
        default=None,
        description="Newline-delimited default deny-list (bundled list if unset)",
    )

    # Logging configuration
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    LOG_JSON: bool = Field(default=True, description="Render logs as JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("USER_API_URL")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """
        Validate that the remote URL is properly formatted.

        Args:
            value: The URL to validate

        Returns:
            The validated URL without trailing slash

        Raises:
            ValueError: If URL is invalid
        """
        if not value:
            raise ValueError("Service URL cannot be empty")

        value = value.rstrip("/")

        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError(
                f"Service URL must start with http:// or https://, got: {value}"
            )

        return value


# Global settings instance
settings = Settings()
