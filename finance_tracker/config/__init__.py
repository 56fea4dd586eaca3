"""Configuration package."""

from finance_tracker.config.settings import (
    ApiSettings,
    AppSettings,
    Settings,
    SyncSettings,
    get_settings,
    split_names,
    validate_all_settings,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "Settings",
    "SyncSettings",
    "get_settings",
    "split_names",
    "validate_all_settings",
]
