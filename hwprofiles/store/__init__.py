"""Persistent configuration store.

This module handles:
- Pydantic schemas for the settings and profile documents
- JSON read/write of both documents with directory and file modes
"""

from hwprofiles.store.io import (
    ConfigStore,
    ensure_directory,
    parse_profiles_data,
    parse_settings_data,
    profiles_to_json_string,
    settings_to_json_string,
    write_text_file,
)
from hwprofiles.store.schema import (
    DEFAULT_PROFILE_ID,
    CpuSchema,
    DisplaySchema,
    FanSchema,
    ProfileSchema,
    SettingsSchema,
    WebcamSchema,
    default_profile,
)

__all__ = [
    # Schema
    "DEFAULT_PROFILE_ID",
    "CpuSchema",
    "DisplaySchema",
    "FanSchema",
    "ProfileSchema",
    "SettingsSchema",
    "WebcamSchema",
    "default_profile",
    # IO
    "ConfigStore",
    "ensure_directory",
    "parse_profiles_data",
    "parse_settings_data",
    "profiles_to_json_string",
    "settings_to_json_string",
    "write_text_file",
]
