"""Profile management module.

This module handles:
- Import conflict reconciliation between profile collections
- Import/export payloads (JSON/YAML)
- Profile CRUD and state assignment over the configuration store
"""

from hwprofiles.profiles.io import (
    export_profiles_to_file,
    format_for_path,
    load_import_source,
    parse_import_text,
    profiles_to_yaml_string,
)
from hwprofiles.profiles.reconcile import (
    generate_profile_id,
    merge_into_existing,
    reconcile_profiles,
    reconcile_profiles_async,
)
from hwprofiles.profiles.service import (
    ProfileImportResult,
    ProfileInUseError,
    ProfileNotFoundError,
    create_profile,
    delete_profile,
    export_profiles,
    get_profile,
    get_profile_or_none,
    get_profile_states,
    import_profiles,
    import_profiles_async,
    list_profiles,
    profile_name_exists,
    rename_profile,
    set_active_profile,
)

__all__ = [
    # Reconciliation
    "generate_profile_id",
    "merge_into_existing",
    "reconcile_profiles",
    "reconcile_profiles_async",
    # IO functions
    "export_profiles_to_file",
    "format_for_path",
    "load_import_source",
    "parse_import_text",
    "profiles_to_yaml_string",
    # Service functions
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
