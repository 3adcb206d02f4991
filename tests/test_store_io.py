"""Tests for the configuration store file IO.

These tests verify reading and writing the settings and profiles
documents, directory/file permission handling and the round-trip
contract for optional profile fields.
"""

import json
import os
import stat
from pathlib import Path

import pytest

from hwprofiles.config import AppConfig
from hwprofiles.errors import NotFoundError, ParseError, StoreIOError
from hwprofiles.store.io import (
    ConfigStore,
    ensure_directory,
    parse_profiles_data,
    write_text_file,
)
from hwprofiles.store.schema import (
    CpuSchema,
    FanSchema,
    ProfileSchema,
    SettingsSchema,
)


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


@pytest.fixture
def store(tmp_path):
    """Create a store rooted in a not-yet-existing directory."""
    config = AppConfig(config_dir=tmp_path / "etc" / "hwprofiles")
    return ConfigStore(config=config)


@pytest.fixture
def restrictive_umask():
    """Run the test under a umask that would strip group/other bits."""
    old = os.umask(0o077)
    try:
        yield
    finally:
        os.umask(old)


class TestEnsureDirectory:
    """Test directory chain creation."""

    def test_creates_full_chain_with_mode(self, tmp_path, restrictive_umask):
        """Should create every missing directory with mode 0755."""
        target = tmp_path / "a" / "b" / "c"
        created = ensure_directory(target)

        assert created == [tmp_path / "a", tmp_path / "a" / "b", target]
        for directory in created:
            assert directory.is_dir()
            assert _mode(directory) == 0o755

    def test_existing_directory_untouched(self, tmp_path):
        """Should not change the mode of directories that already exist."""
        existing = tmp_path / "existing"
        existing.mkdir()
        existing.chmod(0o700)

        created = ensure_directory(existing / "child")

        assert created == [existing / "child"]
        assert _mode(existing) == 0o700

    def test_nothing_to_create(self, tmp_path):
        """Should return an empty list when the directory exists."""
        assert ensure_directory(tmp_path) == []

    def test_parent_is_a_file(self, tmp_path):
        """Should raise StoreIOError when a path component is a file."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        with pytest.raises(StoreIOError):
            ensure_directory(blocker / "sub")


class TestWriteTextFile:
    """Test low-level file writing."""

    def test_sets_file_mode(self, tmp_path, restrictive_umask):
        """Should set 0644 regardless of umask."""
        path = tmp_path / "file.conf"
        write_text_file(path, "content")

        assert path.read_text() == "content"
        assert _mode(path) == 0o644

    def test_resets_mode_of_existing_file(self, tmp_path):
        """Should reset the mode of a file that already exists."""
        path = tmp_path / "file.conf"
        path.write_text("old")
        path.chmod(0o600)

        write_text_file(path, "new")

        assert path.read_text() == "new"
        assert _mode(path) == 0o644

    def test_target_is_directory(self, tmp_path):
        """Should raise StoreIOError when the target is a directory."""
        with pytest.raises(StoreIOError):
            write_text_file(tmp_path, "content")


class TestSettingsIO:
    """Test settings document read/write."""

    def test_write_settings_mode_644(self, store, tmp_path, restrictive_umask):
        """Should write settings with mode 0644."""
        settings = SettingsSchema(active_profile_name="some profile")
        target = tmp_path / "test.conf"

        store.write_settings(settings, target)

        assert target.exists()
        assert _mode(target) == 0o644

    def test_write_settings_creates_folders(self, store, tmp_path, restrictive_umask):
        """Should create missing folders with mode 0755."""
        settings = SettingsSchema(active_profile_name="some profile")
        target = tmp_path / "test1" / "test2" / "test3" / "test.conf"

        store.write_settings(settings, target)

        assert target.exists()
        for directory in (
            tmp_path / "test1",
            tmp_path / "test1" / "test2",
            tmp_path / "test1" / "test2" / "test3",
        ):
            assert _mode(directory) == 0o755

    def test_read_written_settings(self, store):
        """Should read back settings from the default location."""
        settings = SettingsSchema(
            active_profile_name="profile1",
            state_map={"power_ac": "profile1", "power_bat": "profile2"},
        )
        store.write_settings(settings)

        loaded = store.read_settings()

        assert loaded.active_profile_name == "profile1"
        assert loaded.state_map == {"power_ac": "profile1", "power_bat": "profile2"}

    def test_on_disk_keys_are_camel_case(self, store):
        """Should store keys as activeProfileName/stateMap."""
        store.write_settings(SettingsSchema(active_profile_name="p"))

        data = json.loads(store.settings_path.read_text())

        assert data["activeProfileName"] == "p"
        assert "stateMap" in data

    def test_read_missing_settings(self, store):
        """Should raise NotFoundError for a missing file."""
        with pytest.raises(NotFoundError):
            store.read_settings()

    def test_not_found_is_file_not_found(self, store):
        """NotFoundError should also be a FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            store.read_settings()

    def test_read_invalid_json(self, store, tmp_path):
        """Should raise ParseError for invalid JSON."""
        path = tmp_path / "bad.conf"
        path.write_text("{invalid json}")

        with pytest.raises(ParseError):
            store.read_settings(path)

    def test_read_wrong_document_type(self, store, tmp_path):
        """Should raise ParseError when the content is not an object."""
        path = tmp_path / "list.conf"
        path.write_text("[]")

        with pytest.raises(ParseError) as exc_info:
            store.read_settings(path)
        assert "Expected a JSON object" in str(exc_info.value)

    def test_read_bad_state_map(self, store, tmp_path):
        """Should raise ParseError when stateMap is not a string mapping."""
        path = tmp_path / "bad.conf"
        path.write_text(json.dumps({"activeProfileName": "a", "stateMap": [1, 2]}))

        with pytest.raises(ParseError):
            store.read_settings(path)

    def test_read_settings_or_default(self, store):
        """Should return defaults on first run."""
        settings = store.read_settings_or_default()
        assert settings == SettingsSchema()
        assert not store.settings_path.exists()


class TestProfilesIO:
    """Test profiles document read/write."""

    def test_write_empty_profiles_mode_644(self, store, tmp_path, restrictive_umask):
        """Should write an empty collection with mode 0644."""
        target = tmp_path / "test.conf"
        store.write_profiles([], target)

        assert json.loads(target.read_text()) == []
        assert _mode(target) == 0o644

    def test_write_and_read_multiple_profiles(self, store):
        """Should preserve values and order of several profiles."""
        profiles = [
            ProfileSchema(
                id="p1",
                name="some profile",
                keyboard_brightness=50,
                screen_brightness=12,
            ),
            ProfileSchema(
                id="p2",
                name="some other profile",
                keyboard_brightness=30,
                screen_brightness=100,
            ),
        ]
        store.write_profiles(profiles)
        assert store.profiles_path.exists()

        loaded = store.read_profiles()

        assert [p.name for p in loaded] == ["some profile", "some other profile"]
        assert loaded[0].keyboard_brightness == 50
        assert loaded[0].screen_brightness == 12
        assert loaded[1].keyboard_brightness == 30
        assert loaded[1].screen_brightness == 100

    def test_missing_values_stay_missing(self, store):
        """Should not back-fill optional fields that were not set."""
        profiles = [
            ProfileSchema(id="p1", name="some profile", screen_brightness=15),
            ProfileSchema(id="p2", name="some other profile", keyboard_brightness=25),
        ]
        store.write_profiles(profiles)

        loaded = store.read_profiles()

        assert loaded[0].keyboard_brightness is None
        assert loaded[0].screen_brightness == 15
        assert loaded[1].keyboard_brightness == 25
        assert loaded[1].screen_brightness is None

    def test_absent_fields_not_written(self, store):
        """Unset optional fields should not appear in the file."""
        store.write_profiles([ProfileSchema(id="p1", name="sparse")])

        data = json.loads(store.profiles_path.read_text())

        assert data == [{"id": "p1", "name": "sparse"}]

    def test_zero_is_not_absent(self, store):
        """A zero value should survive and stay distinct from unset."""
        store.write_profiles(
            [ProfileSchema(id="p1", name="zero", keyboard_brightness=0)]
        )

        loaded = store.read_profiles()

        assert loaded[0].keyboard_brightness == 0
        assert loaded[0].screen_brightness is None

    def test_nested_sections_round_trip(self, store):
        """Nested sections should keep defined and undefined fields."""
        original = [
            ProfileSchema(
                id="p1",
                name="nested",
                cpu=CpuSchema(governor="performance", no_turbo=False),
                fan=FanSchema(offset_fanspeed=-5),
            )
        ]
        store.write_profiles(original)

        loaded = store.read_profiles()

        assert loaded[0].model_dump() == original[0].model_dump()
        assert loaded[0].cpu is not None
        assert loaded[0].cpu.online_cores is None
        assert loaded[0].cpu.no_turbo is False
        assert loaded[0].display is None

    def test_read_missing_profiles(self, store):
        """Should raise NotFoundError for a missing file."""
        with pytest.raises(NotFoundError):
            store.read_profiles()

    def test_read_profiles_or_empty(self, store):
        """Should return an empty list on first run."""
        assert store.read_profiles_or_empty() == []

    def test_read_profiles_not_array(self, store, tmp_path):
        """Should raise ParseError when content is not an array."""
        path = tmp_path / "profiles.conf"
        path.write_text(json.dumps({"id": "p1", "name": "x"}))

        with pytest.raises(ParseError) as exc_info:
            store.read_profiles(path)
        assert "Expected a JSON array" in str(exc_info.value)

    def test_read_profiles_invalid_entry(self, store, tmp_path):
        """Should raise ParseError naming the invalid entry."""
        path = tmp_path / "profiles.conf"
        path.write_text(json.dumps([{"id": "p1", "name": "ok"}, {"name": "no id"}]))

        with pytest.raises(ParseError) as exc_info:
            store.read_profiles(path)
        assert "index 1" in str(exc_info.value)

    def test_write_failure_raises_store_io_error(self, store, tmp_path):
        """Should raise StoreIOError when the parent path is a file."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        with pytest.raises(StoreIOError):
            store.write_profiles([], blocker / "profiles.conf")


class TestParseProfilesData:
    """Test validation of decoded profile data."""

    def test_parse_camel_case(self):
        """Should accept camelCase keys."""
        profiles = parse_profiles_data(
            [{"id": "a", "name": "A", "keyboardBrightness": 10}]
        )
        assert profiles[0].keyboard_brightness == 10

    def test_rejects_unknown_keys(self):
        """Should reject keys that are not part of the profile document."""
        with pytest.raises(ParseError):
            parse_profiles_data([{"id": "a", "name": "A", "turbo": True}])


class TestStoreDefaults:
    """Test store path defaults."""

    def test_paths_from_config(self, tmp_path):
        """Should take default paths from the configuration."""
        config = AppConfig(config_dir=tmp_path)
        store = ConfigStore(config=config)

        assert store.settings_path == tmp_path / "settings.json"
        assert store.profiles_path == tmp_path / "profiles.json"

    def test_explicit_paths_override(self, tmp_path):
        """Explicit paths should take precedence over configuration."""
        config = AppConfig(config_dir=tmp_path)
        store = ConfigStore(
            settings_path=tmp_path / "s.conf",
            profiles_path=tmp_path / "p.conf",
            config=config,
        )

        assert store.settings_path == tmp_path / "s.conf"
        assert store.profiles_path == tmp_path / "p.conf"
