"""
Configuration Management for the Finance Tracker Store

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: The store itself only needs two things from its host:
the snapshot file path and the refresh interval. Everything is centralized
here so the host validates it once at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Embedded collection store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    snapshot_path: Path = Field(
        default=Path("data/db.json"),
        description="Path of the on-disk snapshot file"
    )
    refresh_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        le=3600,
        description="How often the background refresh reloads the snapshot"
    )
    watch_external_changes: bool = Field(
        default=True,
        description="Treat a changed snapshot file signature as stale"
    )
    password_hash_rounds: int = Field(
        default=10,
        ge=4,
        le=31,
        description="bcrypt cost factor for user passwords"
    )

    @field_validator('snapshot_path')
    @classmethod
    def validate_snapshot_path(cls, v: Path) -> Path:
        """Reject paths pointing at an existing directory."""
        if v.exists() and v.is_dir():
            raise ValueError(f"Snapshot path is a directory: {v}")
        return v


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
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for structured logs"
    )

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


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

    @property
    def store(self) -> StoreSettings:
        return StoreSettings()

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

    Returns a dict of {setting_name: is_valid}, plus an
    ``<name>_error`` entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("store", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
