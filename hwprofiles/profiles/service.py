"""Profile service for CRUD, state assignment and import/export.

This module provides the high-level API used by the CLI. Each function
reads what it needs from a ``ConfigStore``, applies one change and writes
the affected document back. Nothing is cached between calls.
"""

import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from hwprofiles.errors import ImportCancelledError
from hwprofiles.profiles.io import export_profiles_to_file, load_import_source
from hwprofiles.profiles.reconcile import (
    AsyncDecisionSource,
    DecisionSource,
    generate_profile_id,
    merge_into_existing,
    reconcile_profiles,
    reconcile_profiles_async,
)
from hwprofiles.store.io import ConfigStore
from hwprofiles.store.schema import DEFAULT_PROFILE_ID, ProfileSchema, default_profile
from hwprofiles.types import ProfileFilter

logger = logging.getLogger(__name__)


class ProfileNotFoundError(Exception):
    """Raised when a profile is not found."""

    def __init__(self, profile_id: str) -> None:
        self.profile_id = profile_id
        super().__init__(f"Profile not found: {profile_id}")


class ProfileInUseError(Exception):
    """Raised when deleting a profile that settings still reference."""

    def __init__(self, profile_id: str, states: Sequence[str]) -> None:
        self.profile_id = profile_id
        self.states = list(states)
        where = ", ".join(self.states) if self.states else "active profile"
        super().__init__(f"Profile {profile_id} is in use ({where})")


class ProfileImportResult(BaseModel):
    """Result of an import operation.

    Attributes:
        total: Number of profiles in the import source.
        imported: Profiles added under a new or non-colliding id.
        replaced: Existing profiles superseded by an incoming one.
        skipped: Incoming profiles discarded (``keepOld``, or superseded
            by a later ``keepNew`` for the same id).
        cancelled: True if the decision process was aborted.
        profile_ids: Ids of the profiles written, in import order.
    """

    model_config = ConfigDict(extra="forbid")

    total: int
    imported: int = 0
    replaced: int = 0
    skipped: int = 0
    cancelled: bool = False
    profile_ids: list[str] = []


def list_profiles(
    store: ConfigStore, profile_filter: ProfileFilter = ProfileFilter.ALL
) -> list[ProfileSchema]:
    """List profiles, built-in default first, then custom ones in stored order.

    A custom profile stored under ``DEFAULT_PROFILE_ID`` shadows the
    built-in one, as in ``get_profile``.

    Args:
        store: Configuration store.
        profile_filter: ``ALL`` (default and custom), ``DEFAULT``,
            ``CUSTOM`` or ``USED`` (any of them assigned to some state).
    """
    custom = store.read_profiles_or_empty()
    defaults: list[ProfileSchema] = []
    if not any(p.id == DEFAULT_PROFILE_ID for p in custom):
        defaults.append(default_profile())

    if profile_filter is ProfileFilter.DEFAULT:
        return defaults
    if profile_filter is ProfileFilter.CUSTOM:
        return custom
    profiles = [*defaults, *custom]
    if profile_filter is ProfileFilter.USED:
        used = set(store.read_settings_or_default().state_map.values())
        profiles = [p for p in profiles if p.id in used]
    return profiles


def get_profile_or_none(store: ConfigStore, profile_id: str) -> ProfileSchema | None:
    """Get a custom profile by id, or None if it does not exist."""
    for profile in store.read_profiles_or_empty():
        if profile.id == profile_id:
            return profile
    return None


def get_profile(store: ConfigStore, profile_id: str) -> ProfileSchema:
    """Get a profile by id.

    The built-in default profile is returned for ``DEFAULT_PROFILE_ID``
    unless a custom profile uses that id.

    Raises:
        ProfileNotFoundError: If no such profile exists.
    """
    profile = get_profile_or_none(store, profile_id)
    if profile is not None:
        return profile
    if profile_id == DEFAULT_PROFILE_ID:
        return default_profile()
    raise ProfileNotFoundError(profile_id)


def profile_name_exists(store: ConfigStore, name: str) -> bool:
    """Return True if any custom profile already uses ``name``."""
    return any(p.name == name for p in store.read_profiles_or_empty())


def get_profile_states(store: ConfigStore, profile_id: str) -> list[str]:
    """Return the states whose assigned profile is ``profile_id``."""
    settings = store.read_settings_or_default()
    return [state for state, pid in settings.state_map.items() if pid == profile_id]


def create_profile(
    store: ConfigStore, name: str, source_id: str | None = None
) -> ProfileSchema:
    """Create a custom profile as a copy of another one.

    Args:
        store: Configuration store.
        name: Name of the new profile.
        source_id: Profile to copy; the built-in default when omitted.

    Returns:
        The new profile, already written.

    Raises:
        ProfileNotFoundError: If ``source_id`` does not exist.
        pydantic.ValidationError: If ``name`` is not a valid profile name.
    """
    profiles = store.read_profiles_or_empty()
    source = default_profile() if source_id is None else get_profile(store, source_id)
    taken = {p.id for p in profiles} | {DEFAULT_PROFILE_ID}
    data = source.to_document()
    data.update(id=generate_profile_id(taken), name=name)
    profile = ProfileSchema.model_validate(data)
    store.write_profiles([*profiles, profile])
    logger.info("Created profile %s (%s)", profile.id, profile.name)
    return profile


def rename_profile(store: ConfigStore, profile_id: str, name: str) -> ProfileSchema:
    """Rename a custom profile.

    Raises:
        ProfileNotFoundError: If the profile does not exist.
        pydantic.ValidationError: If ``name`` is not a valid profile name.
    """
    profiles = store.read_profiles_or_empty()
    for index, profile in enumerate(profiles):
        if profile.id == profile_id:
            data = profile.to_document()
            data["name"] = name
            profiles[index] = ProfileSchema.model_validate(data)
            store.write_profiles(profiles)
            logger.info("Renamed profile %s to %s", profile_id, name)
            return profiles[index]
    raise ProfileNotFoundError(profile_id)


def delete_profile(store: ConfigStore, profile_id: str) -> None:
    """Delete a custom profile.

    Raises:
        ProfileNotFoundError: If the profile does not exist.
        ProfileInUseError: If settings reference the profile.
    """
    profiles = store.read_profiles_or_empty()
    remaining = [p for p in profiles if p.id != profile_id]
    if len(remaining) == len(profiles):
        raise ProfileNotFoundError(profile_id)

    settings = store.read_settings_or_default()
    states = [s for s, pid in settings.state_map.items() if pid == profile_id]
    if states or settings.active_profile_name == profile_id:
        raise ProfileInUseError(profile_id, states)

    store.write_profiles(remaining)
    logger.info("Deleted profile %s", profile_id)


def set_active_profile(store: ConfigStore, profile_id: str, state_id: str) -> None:
    """Assign a profile to a device/power state.

    Raises:
        ProfileNotFoundError: If the profile does not exist.
    """
    get_profile(store, profile_id)
    settings = store.read_settings_or_default()
    settings.state_map[state_id] = profile_id
    store.write_settings(settings)
    logger.info("Assigned profile %s to state %s", profile_id, state_id)


def export_profiles(store: ConfigStore, path: Path) -> int:
    """Export the custom profile collection to ``path``.

    Returns:
        Number of profiles exported.

    Raises:
        ValueError: If the file extension is not supported.
        StoreIOError: If the file cannot be written.
    """
    profiles = store.read_profiles_or_empty()
    export_profiles_to_file(
        profiles, path, mode=store.file_mode, dir_mode=store.dir_mode
    )
    logger.info("Exported %d profile(s) to %s", len(profiles), path)
    return len(profiles)


def _commit_import(
    store: ConfigStore,
    existing: list[ProfileSchema],
    incoming: list[ProfileSchema],
    reconciled: list[ProfileSchema],
) -> ProfileImportResult:
    existing_ids = {p.id for p in existing}
    replaced = sum(1 for p in reconciled if p.id in existing_ids)
    if reconciled:
        store.write_profiles(merge_into_existing(existing, reconciled))
    result = ProfileImportResult(
        total=len(incoming),
        imported=len(reconciled) - replaced,
        replaced=replaced,
        skipped=len(incoming) - len(reconciled),
        profile_ids=[p.id for p in reconciled],
    )
    logger.info(
        "Imported %d, replaced %d, skipped %d profile(s)",
        result.imported,
        result.replaced,
        result.skipped,
    )
    return result


def import_profiles(
    store: ConfigStore, path: Path, decide: DecisionSource
) -> ProfileImportResult:
    """Import profiles from a file, resolving id conflicts via ``decide``.

    The source is decoded before anything else happens. If the decision
    process is cancelled, nothing is written.

    Raises:
        NotFoundError: If the import file does not exist.
        FormatError: If the import file is not a valid profile collection.
        pydantic.ValidationError: If a ``newName`` decision carries an
            invalid name. Nothing is written.
    """
    incoming = load_import_source(path)
    existing = store.read_profiles_or_empty()
    try:
        reconciled = reconcile_profiles(existing, incoming, decide)
    except ImportCancelledError:
        logger.info("Import from %s cancelled, nothing written", path)
        return ProfileImportResult(total=len(incoming), cancelled=True)
    return _commit_import(store, existing, incoming, reconciled)


async def import_profiles_async(
    store: ConfigStore, path: Path, decide: AsyncDecisionSource
) -> ProfileImportResult:
    """Asynchronous variant of ``import_profiles``.

    Task cancellation propagates after discarding the partial merge.
    """
    incoming = load_import_source(path)
    existing = store.read_profiles_or_empty()
    try:
        reconciled = await reconcile_profiles_async(existing, incoming, decide)
    except ImportCancelledError:
        logger.info("Import from %s cancelled, nothing written", path)
        return ProfileImportResult(total=len(incoming), cancelled=True)
    return _commit_import(store, existing, incoming, reconciled)


__all__ = [
    "ProfileImportResult",
    "ProfileInUseError",
    "ProfileNotFoundError",
    "create_profile",
    "delete_profile",
    "export_profiles",
    "get_profile",
    "get_profile_or_none",
    "get_profile_states",
    "import_profiles",
    "import_profiles_async",
    "list_profiles",
    "profile_name_exists",
    "rename_profile",
    "set_active_profile",
]
