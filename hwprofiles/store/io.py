"""Durable read/write of the settings and profiles documents.

Both documents are stored as JSON text. A write creates any missing
parent directories with mode 0755 and sets the written file to 0644.
Modes are applied with an explicit chmod after creation, so the result
does not depend on the process umask.

The store keeps no state between calls and takes no locks. A failed
write may leave a partially written file behind; callers that need
durability should read the file back.
"""

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from hwprofiles.config import AppConfig, get_config
from hwprofiles.errors import NotFoundError, ParseError, StoreIOError
from hwprofiles.store.schema import ProfileSchema, SettingsSchema

logger = logging.getLogger(__name__)

DIR_MODE = 0o755
FILE_MODE = 0o644


def ensure_directory(path: Path, mode: int = DIR_MODE) -> list[Path]:
    """Create ``path`` and any missing ancestors.

    Each directory created here gets exactly ``mode``; directories that
    already exist are left alone.

    Args:
        path: Directory that must exist afterwards.
        mode: Permission bits for newly created directories.

    Returns:
        The directories that were created, outermost first.

    Raises:
        StoreIOError: If a directory cannot be created or chmod fails.
    """
    missing: list[Path] = []
    current = path
    while not current.exists():
        missing.append(current)
        if current.parent == current:
            break
        current = current.parent

    created: list[Path] = []
    for directory in reversed(missing):
        try:
            directory.mkdir(mode=mode)
            directory.chmod(mode)
        except FileExistsError:
            # Another writer got there first; not ours to chmod.
            continue
        except OSError as e:
            raise StoreIOError(f"Failed to create directory {directory}: {e}") from e
        logger.debug("Created directory %s (mode %o)", directory, mode)
        created.append(directory)
    return created


def write_text_file(
    path: Path,
    text: str,
    mode: int = FILE_MODE,
    dir_mode: int = DIR_MODE,
) -> None:
    """Write ``text`` to ``path`` and set its permission bits.

    Args:
        path: Target file.
        text: Content to write (UTF-8).
        mode: Permission bits for the file.
        dir_mode: Permission bits for any parent directory created.

    Raises:
        StoreIOError: If directory creation, the write or chmod fails.
    """
    ensure_directory(path.parent, mode=dir_mode)
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        path.chmod(mode)
    except OSError as e:
        raise StoreIOError(f"Failed to write {path}: {e}") from e
    logger.debug("Wrote %d characters to %s", len(text), path)


def read_text_file(path: Path) -> str:
    """Read a UTF-8 text file.

    Raises:
        NotFoundError: If the file does not exist.
        StoreIOError: If the file cannot be read.
    """
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError as e:
        raise NotFoundError(f"File not found: {path}") from e
    except UnicodeDecodeError as e:
        raise ParseError(f"File is not valid UTF-8 text: {path}") from e
    except OSError as e:
        raise StoreIOError(f"Failed to read {path}: {e}") from e


def settings_to_json_string(settings: SettingsSchema) -> str:
    """Convert a settings document to a JSON string."""
    return json.dumps(settings.to_document(), indent=2, ensure_ascii=False) + "\n"


def profiles_to_json_string(profiles: Sequence[ProfileSchema]) -> str:
    """Convert an ordered profile collection to a JSON array string."""
    data = [profile.to_document() for profile in profiles]
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def parse_settings_data(data: Any) -> SettingsSchema:
    """Validate decoded settings data.

    Raises:
        ParseError: If data is not a valid settings document.
    """
    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object, got {type(data).__name__}")
    try:
        return SettingsSchema.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Invalid settings document: {e}") from e


def parse_profiles_data(data: Any) -> list[ProfileSchema]:
    """Validate decoded profile collection data.

    Raises:
        ParseError: If data is not a list of valid profile documents.
    """
    if not isinstance(data, list):
        raise ParseError(f"Expected a JSON array, got {type(data).__name__}")
    profiles: list[ProfileSchema] = []
    for index, item in enumerate(data):
        try:
            profiles.append(ProfileSchema.model_validate(item))
        except ValidationError as e:
            raise ParseError(f"Invalid profile at index {index}: {e}") from e
    return profiles


def _load_json(path: Path) -> Any:
    text = read_text_file(path)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in {path}: {e}") from e


class ConfigStore:
    """Read and write the settings and profiles files.

    Every operation accepts an optional path that overrides the
    configured location for that call only.

    Args:
        settings_path: Default settings file location.
        profiles_path: Default profiles file location.
        config: Application configuration supplying defaults and modes.
    """

    def __init__(
        self,
        settings_path: Path | None = None,
        profiles_path: Path | None = None,
        config: AppConfig | None = None,
    ) -> None:
        if config is None:
            config = get_config()
        self.settings_path = Path(settings_path or config.settings_file)
        self.profiles_path = Path(profiles_path or config.profiles_file)
        self.file_mode = config.file_mode
        self.dir_mode = config.dir_mode

    def write_settings(
        self, settings: SettingsSchema, path: Path | None = None
    ) -> None:
        """Serialize the settings document to disk.

        Raises:
            StoreIOError: If a directory, the file or its mode cannot be written.
        """
        target = Path(path) if path is not None else self.settings_path
        write_text_file(
            target,
            settings_to_json_string(settings),
            mode=self.file_mode,
            dir_mode=self.dir_mode,
        )
        logger.info("Wrote settings to %s", target)

    def read_settings(self, path: Path | None = None) -> SettingsSchema:
        """Read the settings document from disk.

        Raises:
            NotFoundError: If the file does not exist.
            ParseError: If the content is not a valid settings document.
        """
        target = Path(path) if path is not None else self.settings_path
        settings = parse_settings_data(_load_json(target))
        logger.debug("Read settings from %s", target)
        return settings

    def read_settings_or_default(self, path: Path | None = None) -> SettingsSchema:
        """Read the settings document, or return defaults on first run."""
        try:
            return self.read_settings(path)
        except NotFoundError:
            logger.info("No settings file yet, using defaults")
            return SettingsSchema()

    def write_profiles(
        self, profiles: Sequence[ProfileSchema], path: Path | None = None
    ) -> None:
        """Serialize an ordered profile collection to disk.

        Raises:
            StoreIOError: If a directory, the file or its mode cannot be written.
        """
        target = Path(path) if path is not None else self.profiles_path
        write_text_file(
            target,
            profiles_to_json_string(profiles),
            mode=self.file_mode,
            dir_mode=self.dir_mode,
        )
        logger.info("Wrote %d profile(s) to %s", len(profiles), target)

    def read_profiles(self, path: Path | None = None) -> list[ProfileSchema]:
        """Read an ordered profile collection from disk.

        Optional fields absent from the file stay ``None``.

        Raises:
            NotFoundError: If the file does not exist.
            ParseError: If the content is not a valid profile collection.
        """
        target = Path(path) if path is not None else self.profiles_path
        profiles = parse_profiles_data(_load_json(target))
        logger.debug("Read %d profile(s) from %s", len(profiles), target)
        return profiles

    def read_profiles_or_empty(self, path: Path | None = None) -> list[ProfileSchema]:
        """Read the profile collection, or return an empty list on first run."""
        try:
            return self.read_profiles(path)
        except NotFoundError:
            logger.info("No profiles file yet, starting empty")
            return []


__all__ = [
    "DIR_MODE",
    "FILE_MODE",
    "ConfigStore",
    "ensure_directory",
    "parse_profiles_data",
    "parse_settings_data",
    "profiles_to_json_string",
    "read_text_file",
    "settings_to_json_string",
    "write_text_file",
]
