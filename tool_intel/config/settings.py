"""
Application settings and configuration management.

This module handles all environment variables, provider credentials, and
application configuration using Pydantic settings management for type safety
and validation.
"""

import base64
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All sensitive values are stored as SecretStr to prevent accidental logging.
    Settings are validated on load and cached for performance.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # DataForSEO credentials
    dataforseo_api_key: Optional[SecretStr] = Field(default=None, alias="DATAFORSEO_API_KEY")
    dataforseo_username: Optional[str] = Field(default=None, alias="DATAFORSEO_USERNAME")
    dataforseo_password: Optional[SecretStr] = Field(default=None, alias="DATAFORSEO_PASSWORD")

    # Provider Configuration
    dataforseo_base_url: str = Field(
        default="https://api.dataforseo.com/v3",
        alias="DATAFORSEO_BASE_URL",
    )
    dataforseo_location_code: int = Field(default=2840, alias="DATAFORSEO_LOCATION_CODE")
    dataforseo_language_code: str = Field(default="en", alias="DATAFORSEO_LANGUAGE_CODE")

    # Application Configuration
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        alias="APP_ENV"
    )
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL"
    )
    log_json: bool = Field(default=True, alias="LOG_JSON")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")

    # Network budget
    request_timeout_seconds: float = Field(default=30.0, gt=0, alias="REQUEST_TIMEOUT_SECONDS")
    max_retries: int = Field(default=0, ge=0, alias="MAX_RETRIES")

    @field_validator("dataforseo_api_key", "dataforseo_password", "dataforseo_username", mode="before")
    @classmethod
    def empty_as_none(cls, v):
        """Treat blank environment values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("dataforseo_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def get_dataforseo_credentials(self) -> Optional[str]:
        """
        Resolve the Basic auth token for DataForSEO.

        Supports two formats:
            1. DATAFORSEO_API_KEY (already base64 encoded username:password)
            2. DATAFORSEO_USERNAME + DATAFORSEO_PASSWORD (encoded here)

        Returns:
            The base64 token, or None if no credentials are configured.
        """
        if self.dataforseo_api_key:
            return self.dataforseo_api_key.get_secret_value()

        if self.dataforseo_username and self.dataforseo_password:
            raw = f"{self.dataforseo_username}:{self.dataforseo_password.get_secret_value()}"
            return base64.b64encode(raw.encode("utf-8")).decode("ascii")

        return None

    @property
    def has_dataforseo_credentials(self) -> bool:
        return self.get_dataforseo_credentials() is not None


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
