"""
Configuration Management for Finance Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The tracker has one external dependency (the REST backend) and one
timing knob (the save debounce), both validated at startup.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def split_names(value: str) -> list[str]:
    """Split a comma-separated list of names, dropping blanks."""
    return [name.strip() for name in value.split(",") if name.strip()]


class ApiSettings(BaseSettings):
    """REST backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRACKER_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:5001/api",
        description="Base URL of the tracker API (including the /api prefix)"
    )
    token: Optional[str] = Field(
        default=None,
        description="Bearer token obtained from the login/register flow"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Per-request timeout"
    )

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {v!r}")
        return v.rstrip("/")


class SyncSettings(BaseSettings):
    """Debounced persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRACKER_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    debounce_seconds: float = Field(
        default=1.5,
        gt=0,
        le=60,
        description="Quiet period after the last edit before the record is saved"
    )
    enabled: bool = Field(
        default=True,
        description="Disable to keep all edits local (nothing is pushed)"
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

    # Defaults offered when a new year is created
    default_categories: str = Field(
        default=(
            "Rent, Subscriptions, Entertainment, Food & Drink, "
            "Groceries, Shopping, Transport, Travel"
        ),
        description="Comma-separated expense categories for a new year"
    )
    default_income_sources: str = Field(
        default="Salary, Freelance, Business, Other",
        description="Comma-separated income sources for a new year"
    )

    @property
    def default_categories_list(self) -> list[str]:
        """Get default categories as a list."""
        return split_names(self.default_categories)

    @property
    def default_income_sources_list(self) -> list[str]:
        """Get default income sources as a list."""
        return split_names(self.default_income_sources)


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def api(self) -> ApiSettings:
        return ApiSettings()

    @property
    def sync(self) -> SyncSettings:
        return SyncSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for each failure. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("api", "sync", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
