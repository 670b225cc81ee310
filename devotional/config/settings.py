"""
Configuration Management for Pauline Devotional

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini content generation configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    content_model_name: str = Field(
        default="gemini-1.5-pro",
        description="Model used for the daily reading material"
    )
    image_model_name: str = Field(
        default="gemini-2.0-flash-exp-image-generation",
        description="Model used for the symbolic context image"
    )
    max_tokens: int = Field(
        default=8192,
        ge=256,
        le=32768,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    default_locale: Literal["ko", "en"] = Field(
        default="ko",
        description="Locale used when the caller does not pick one"
    )

    # Storage
    storage_backend: Literal["memory", "sqlite"] = Field(
        default="sqlite",
        description="Key/value backend used for on-device persistence"
    )
    storage_path: str = Field(
        default="devotional.sqlite3",
        description="Database file for the sqlite backend"
    )
    storage_quota_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=0,
        description="Byte budget for the whole keyspace (0 disables the quota)"
    )
    simulated_latency_ms: int = Field(
        default=100,
        ge=0,
        le=5000,
        description="Fixed delay applied to every storage operation"
    )

    # Generated content
    content_cache_version: int = Field(
        default=9,
        ge=1,
        description="Version marker of the transient reading-content cache"
    )
    max_generation_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts before giving up on malformed generated content"
    )

    @field_validator('storage_path')
    @classmethod
    def validate_storage_path(cls, v: str) -> str:
        """Reject an empty database path."""
        if not v.strip():
            raise ValueError("storage_path must not be empty")
        return v.strip()

    @property
    def simulated_latency_seconds(self) -> float:
        """Get the simulated latency in seconds."""
        return self.simulated_latency_ms / 1000


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.gemini
        results["gemini"] = True
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
