"""Profile import/export payloads.

This module decodes import sources into profile collections and writes
export files. The format is chosen from the file extension: .json for
JSON, .yaml or .yml for YAML. Exports use the same on-disk layout as the
profiles file, so an export can be imported back unchanged.

A payload that cannot be decoded or validated is rejected as a whole.
"""

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Literal

import yaml

from hwprofiles.errors import FormatError, ParseError
from hwprofiles.store.io import (
    DIR_MODE,
    FILE_MODE,
    parse_profiles_data,
    profiles_to_json_string,
    read_text_file,
    write_text_file,
)
from hwprofiles.store.schema import ProfileSchema

PayloadFormat = Literal["json", "yaml"]


def format_for_path(path: Path) -> PayloadFormat:
    """Return the payload format implied by a file extension.

    Raises:
        ValueError: If the extension is not supported.
    """
    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return "yaml"
    elif suffix == ".json":
        return "json"
    else:
        raise ValueError(
            f"Unsupported file extension '{suffix}'. Use .yaml, .yml, or .json"
        )


def profiles_to_yaml_string(profiles: Sequence[ProfileSchema]) -> str:
    """Convert an ordered profile collection to a YAML string."""
    data = [profile.to_document() for profile in profiles]
    result: str = yaml.dump(
        data, default_flow_style=False, allow_unicode=True, sort_keys=False
    )
    return result


def _decode(text: str, fmt: PayloadFormat) -> Any:
    if fmt == "yaml":
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise FormatError(f"Not a valid YAML document: {e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise FormatError(f"Not a valid JSON document: {e}") from e


def parse_import_text(text: str, fmt: PayloadFormat = "json") -> list[ProfileSchema]:
    """Decode an import payload into a profile collection.

    Args:
        text: Raw payload.
        fmt: Payload format.

    Returns:
        Validated profiles in payload order.

    Raises:
        FormatError: If the payload is not a valid profile collection.
    """
    data = _decode(text, fmt)
    try:
        return parse_profiles_data(data)
    except ParseError as e:
        raise FormatError(str(e)) from e


def load_import_source(path: Path) -> list[ProfileSchema]:
    """Read and decode an import file.

    Raises:
        NotFoundError: If the file does not exist.
        FormatError: If the content is not a valid profile collection or
            the extension is not supported.
    """
    try:
        fmt = format_for_path(path)
    except ValueError as e:
        raise FormatError(str(e)) from e
    try:
        text = read_text_file(path)
    except ParseError as e:
        raise FormatError(str(e)) from e
    return parse_import_text(text, fmt)


def export_profiles_to_file(
    profiles: Sequence[ProfileSchema],
    path: Path,
    mode: int = FILE_MODE,
    dir_mode: int = DIR_MODE,
) -> None:
    """Write a profile collection verbatim to an export file.

    Raises:
        ValueError: If the extension is not supported.
        StoreIOError: If the file cannot be written.
    """
    if format_for_path(path) == "yaml":
        text = profiles_to_yaml_string(profiles)
    else:
        text = profiles_to_json_string(profiles)
    write_text_file(path, text, mode=mode, dir_mode=dir_mode)


__all__ = [
    "export_profiles_to_file",
    "format_for_path",
    "load_import_source",
    "parse_import_text",
    "profiles_to_yaml_string",
]
