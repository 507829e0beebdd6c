"""Configuration package."""

from mzfinance.config.settings import (
    AppSettings,
    Settings,
    SupabaseSettings,
    SyncSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "Settings",
    "SupabaseSettings",
    "SyncSettings",
    "get_settings",
    "validate_all_settings",
]
