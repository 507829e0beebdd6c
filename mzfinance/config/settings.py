"""
Configuration Management for Mz Finance

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here. The Supabase connection is optional:
when it is missing or still holds a placeholder value the application runs
in offline mode, keeping everything in memory without persistence.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Example URL shipped in setup guides; never a real project.
PLACEHOLDER_HOST = "seu-projeto.supabase.co"


class SupabaseSettings(BaseSettings):
    """Supabase connection parameters (service endpoint and public API key)."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: Optional[str] = Field(
        default=None,
        description="Supabase project URL"
    )
    anon_key: Optional[str] = Field(
        default=None,
        description="Supabase public (anon) API key"
    )

    @field_validator('url', 'anon_key')
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty strings from .env files as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @property
    def is_configured(self) -> bool:
        """True when both parameters are present and the URL is usable."""
        if not self.url or not self.anon_key:
            return False
        parsed = urlparse(self.url)
        if not parsed.scheme.startswith("http") or not parsed.netloc:
            return False
        return PLACEHOLDER_HOST not in self.url


class SyncSettings(BaseSettings):
    """Remote synchronization behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    remote_attempts: int = Field(
        default=1,
        ge=1,
        le=5,
        description="Attempts per remote call (1 means no retries)"
    )
    profiles_table: str = Field(
        default="profiles",
        description="Table holding user profile rows"
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

    # Local persisted state (session marker, language preference)
    state_dir: Path = Field(
        default=Path(".mzfinance"),
        description="Directory for locally persisted state"
    )
    default_language: str = Field(
        default="pt",
        pattern="^(pt|en)$",
        description="Display language used until the user picks one"
    )

    # Registration rules
    min_password_length: int = Field(
        default=6,
        ge=6,
        le=128,
        description="Minimum accepted password length"
    )


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

    # Sub-settings are built on access so a partial environment still loads

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

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

    Returns a dict of {setting_name: is_valid}, plus an "<name>_error"
    entry for each section that failed to load. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        results["supabase"] = settings.supabase.is_configured
    except Exception as e:
        results["supabase"] = False
        results["supabase_error"] = str(e)

    try:
        _ = settings.sync
        results["sync"] = True
    except Exception as e:
        results["sync"] = False
        results["sync_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
