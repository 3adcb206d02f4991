"""Thin CLI wrapper for hwprofiles.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from hwprofiles import __version__
from hwprofiles.config import get_config, print_config_json
from hwprofiles.errors import HwProfilesError, ImportCancelledError
from hwprofiles.store.io import ConfigStore
from hwprofiles.store.schema import PROFILE_NAME_MAX_LENGTH, ProfileSchema
from hwprofiles.types import ConflictAction, ConflictDecision, ProfileFilter

app = typer.Typer(
    name="hwprofiles",
    help="Hardware profile store - manage settings, profiles and imports",
    no_args_is_help=True,
)
console = Console()

CANCEL_CHOICE = "cancel"
CONFLICT_CHOICES = [action.value for action in ConflictAction] + [CANCEL_CHOICE]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"hwprofiles version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Override the configured log level"),
    ] = None,
) -> None:
    """Hardware profile store - manage settings, profiles and imports."""
    level = (log_level or get_config().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _get_store() -> ConfigStore:
    return ConfigStore(config=get_config())


def _fail(message: str) -> NoReturn:
    console.print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(code=1)


def _print_json(text: str) -> None:
    console.print(text, soft_wrap=True, markup=False)


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    cfg = get_config()
    if json_output:
        _print_json(print_config_json(cfg))
    else:
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Paths:[/bold]")
        console.print(f"  Config directory:    {cfg.config_dir}")
        console.print(f"  Settings file:       {cfg.settings_file}")
        console.print(f"  Profiles file:       {cfg.profiles_file}")
        console.print()
        console.print("[bold]Permissions:[/bold]")
        console.print(f"  File mode:           {cfg.file_mode:04o}")
        console.print(f"  Directory mode:      {cfg.dir_mode:04o}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  Log level:           {cfg.log_level}")


settings_app = typer.Typer(help="Show and change global settings")
app.add_typer(settings_app, name="settings")


@settings_app.command("show")
def settings_show(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show the settings document."""
    try:
        settings = _get_store().read_settings_or_default()
    except HwProfilesError as e:
        _fail(f"Error: {e}")

    if json_output:
        _print_json(json.dumps(settings.to_document(), indent=2))
        return
    console.print(f"[bold]Active profile:[/bold] {settings.active_profile_name}")
    console.print("[bold]State assignments:[/bold]")
    for state, profile_id in settings.state_map.items():
        console.print(f"  {state}: {profile_id}")


@settings_app.command("activate")
def settings_activate(
    profile_id: Annotated[str, typer.Argument(help="Profile ID to assign")],
    state_id: Annotated[str, typer.Argument(help="State ID, e.g. power_ac")],
) -> None:
    """Assign a profile to a device/power state."""
    from hwprofiles.profiles.service import ProfileNotFoundError, set_active_profile

    try:
        set_active_profile(_get_store(), profile_id, state_id)
    except ProfileNotFoundError:
        _fail(f"Profile not found: {profile_id}")
    except HwProfilesError as e:
        _fail(f"Error: {e}")
    console.print(f"[green]Assigned {profile_id} to {state_id}[/green]")


profiles_app = typer.Typer(help="Manage custom profiles")
app.add_typer(profiles_app, name="profiles")


def _print_profile_summary(profile: ProfileSchema, states: list[str]) -> None:
    console.print(f"  [green]{profile.id}[/green]")
    console.print(f"    Name: {escape(profile.name)}")
    if profile.description:
        console.print(f"    Description: {escape(profile.description)}")
    if states:
        console.print(f"    States: {', '.join(states)}")
    console.print()


@profiles_app.command("list")
def profiles_list(
    profile_filter: Annotated[
        ProfileFilter,
        typer.Option(
            "--filter",
            "-f",
            help="all (default and custom), default, custom or used",
        ),
    ] = ProfileFilter.ALL,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List profiles."""
    from hwprofiles.profiles.service import list_profiles

    store = _get_store()
    try:
        profiles = list_profiles(store, profile_filter)
        settings = store.read_settings_or_default()
    except HwProfilesError as e:
        _fail(f"Error: {e}")

    if not profiles:
        if json_output:
            _print_json("[]")
        else:
            console.print("[yellow]No profiles found[/yellow]")
        return

    if json_output:
        _print_json(json.dumps([p.to_document() for p in profiles], indent=2))
        return

    console.print(f"[bold]Found {len(profiles)} profile(s):[/bold]")
    console.print()
    for p in profiles:
        states = [s for s, pid in settings.state_map.items() if pid == p.id]
        _print_profile_summary(p, states)


@profiles_app.command("show")
def profiles_show(
    profile_id: Annotated[str, typer.Argument(help="Profile ID to show")],
) -> None:
    """Show details of a specific profile as JSON."""
    from hwprofiles.profiles.service import ProfileNotFoundError, get_profile

    try:
        profile = get_profile(_get_store(), profile_id)
    except ProfileNotFoundError:
        _fail(f"Profile not found: {profile_id}")
    except HwProfilesError as e:
        _fail(f"Error: {e}")
    _print_json(json.dumps(profile.to_document(), indent=2))


@profiles_app.command("create")
def profiles_create(
    name: Annotated[str, typer.Argument(help="Name of the new profile")],
    source_id: Annotated[
        str | None,
        typer.Option("--from", help="Profile ID to copy (default template if unset)"),
    ] = None,
) -> None:
    """Create a new profile from the default template or a copy."""
    from hwprofiles.profiles.service import ProfileNotFoundError, create_profile

    try:
        profile = create_profile(_get_store(), name, source_id=source_id)
    except ProfileNotFoundError as e:
        _fail(f"Profile not found: {e.profile_id}")
    except ValidationError as e:
        _fail(f"Invalid profile: {e}")
    except HwProfilesError as e:
        _fail(f"Error: {e}")
    console.print(f"[green]Created profile {profile.id} ({profile.name})[/green]")


@profiles_app.command("rename")
def profiles_rename(
    profile_id: Annotated[str, typer.Argument(help="Profile ID to rename")],
    name: Annotated[str, typer.Argument(help="New name")],
) -> None:
    """Rename a custom profile."""
    from hwprofiles.profiles.service import ProfileNotFoundError, rename_profile

    try:
        rename_profile(_get_store(), profile_id, name)
    except ProfileNotFoundError:
        _fail(f"Profile not found: {profile_id}")
    except ValidationError as e:
        _fail(f"Invalid profile: {e}")
    except HwProfilesError as e:
        _fail(f"Error: {e}")
    console.print(f"[green]Renamed {profile_id} to {name}[/green]")


@profiles_app.command("delete")
def profiles_delete(
    profile_id: Annotated[str, typer.Argument(help="Profile ID to delete")],
) -> None:
    """Delete a custom profile that is not in use."""
    from hwprofiles.profiles.service import (
        ProfileInUseError,
        ProfileNotFoundError,
        delete_profile,
    )

    try:
        delete_profile(_get_store(), profile_id)
    except ProfileNotFoundError:
        _fail(f"Profile not found: {profile_id}")
    except ProfileInUseError as e:
        _fail(str(e))
    except HwProfilesError as e:
        _fail(f"Error: {e}")
    console.print(f"[green]Deleted profile {profile_id}[/green]")


@profiles_app.command("export")
def profiles_export(
    path: Annotated[str, typer.Argument(help="Output file (.json, .yaml, .yml)")],
) -> None:
    """Export all custom profiles to a file."""
    from hwprofiles.profiles.service import export_profiles

    try:
        count = export_profiles(_get_store(), Path(path))
    except (HwProfilesError, ValueError) as e:
        _fail(f"Error: {e}")
    console.print(f"[green]Exported {count} profile(s) to {path}[/green]")


def _prompt_decision(
    existing: ProfileSchema, incoming: ProfileSchema
) -> ConflictDecision:
    """Ask on the terminal how to resolve one id conflict."""
    console.print(f"[yellow]Profile id conflict: {incoming.id}[/yellow]")
    console.print(f"  Existing: {escape(existing.name)}")
    console.print(f"  Incoming: {escape(incoming.name)}")
    try:
        while True:
            choice = typer.prompt(f"Resolve ({'/'.join(CONFLICT_CHOICES)})")
            if choice == CANCEL_CHOICE:
                raise ImportCancelledError()
            if choice == ConflictAction.NEW_NAME.value:
                new_name = typer.prompt("New name", default=incoming.name)
                if len(new_name) > PROFILE_NAME_MAX_LENGTH:
                    limit = PROFILE_NAME_MAX_LENGTH
                    console.print(f"[red]Name longer than {limit} characters[/red]")
                    continue
                return ConflictDecision(ConflictAction.NEW_NAME, new_name=new_name)
            if choice in CONFLICT_CHOICES:
                return ConflictDecision(ConflictAction(choice))
            console.print(f"[red]Invalid choice: {choice}[/red]")
    except typer.Abort:
        raise ImportCancelledError() from None


@profiles_app.command("import")
def profiles_import(
    path: Annotated[str, typer.Argument(help="Import file (.json, .yaml, .yml)")],
    on_conflict: Annotated[
        str | None,
        typer.Option(
            "--on-conflict",
            help="Resolve every conflict with keepNew, keepOld or keepBoth",
        ),
    ] = None,
) -> None:
    """Import profiles from a file, asking how to resolve id conflicts."""
    from hwprofiles.profiles.service import import_profiles

    decide = _prompt_decision
    if on_conflict is not None:
        fixed_choices = [
            ConflictAction.KEEP_NEW.value,
            ConflictAction.KEEP_OLD.value,
            ConflictAction.KEEP_BOTH.value,
        ]
        if on_conflict not in fixed_choices:
            _fail(f"Invalid --on-conflict value: {on_conflict}")
        fixed = ConflictDecision(ConflictAction(on_conflict))

        def fixed_decision(
            existing: ProfileSchema, incoming: ProfileSchema
        ) -> ConflictDecision:
            return fixed

        decide = fixed_decision

    file_path = Path(path)
    try:
        result = import_profiles(_get_store(), file_path, decide)
    except HwProfilesError as e:
        _fail(f"Import failed: {e}")
    except ValidationError as e:
        _fail(f"Import failed, invalid profile: {e}")

    if result.cancelled:
        console.print("[yellow]Import cancelled, no profiles changed[/yellow]")
        raise typer.Exit(code=1)

    console.print("[bold]Import results:[/bold]")
    console.print(f"  Total: {result.total}")
    console.print(f"  [green]Imported: {result.imported}[/green]")
    console.print(f"  Replaced: {result.replaced}")
    console.print(f"  Skipped: {result.skipped}")
