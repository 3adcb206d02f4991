"""Configuration for hwprofiles.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".config" / "hwprofiles"


class AppConfig(BaseSettings):
    """Application configuration.

    Values are loaded from environment variables with the HWPROF_ prefix.
    CLI flags can override these at runtime. When ``settings_file`` or
    ``profiles_file`` is not set explicitly it is placed inside
    ``config_dir``.
    """

    model_config = SettingsConfigDict(
        env_prefix="HWPROF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    config_dir: Path = Field(
        default_factory=_default_config_dir,
        description="Directory holding the settings and profiles files",
    )
    settings_file: Path | None = Field(
        default=None,
        description="Settings document path (defaults to <config_dir>/settings.json)",
    )
    profiles_file: Path | None = Field(
        default=None,
        description="Profiles document path (defaults to <config_dir>/profiles.json)",
    )

    # Permissions
    file_mode: int = Field(
        default=0o644,
        ge=0,
        le=0o777,
        description="Permission bits applied to written files",
    )
    dir_mode: int = Field(
        default=0o755,
        ge=0,
        le=0o777,
        description="Permission bits applied to created directories",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level",
    )

    @model_validator(mode="after")
    def _fill_file_paths(self) -> "AppConfig":
        if self.settings_file is None:
            self.settings_file = self.config_dir / "settings.json"
        if self.profiles_file is None:
            self.profiles_file = self.config_dir / "profiles.json"
        return self


def get_config() -> AppConfig:
    """Get the application configuration.

    Returns:
        AppConfig instance loaded from environment.
    """
    return AppConfig()


def print_config_json(config: AppConfig | None = None) -> str:
    """Render effective configuration as JSON.

    Args:
        config: Optional config instance; uses default if not provided.

    Returns:
        JSON string of effective configuration.
    """
    if config is None:
        config = get_config()
    return config.model_dump_json(indent=2)


__all__ = ["AppConfig", "get_config", "print_config_json"]
