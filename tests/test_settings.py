"""
Tests for provkit.config.settings module.

This test suite covers:
- Default settings initialization
- Settings persistence to JSON file
- Error handling for corrupted settings files
- Path settings with '~' expansion
"""

import json
from pathlib import Path

import pytest

from provkit.config import settings


@pytest.fixture
def settings_file(tmp_path, monkeypatch):
    path = tmp_path / "provkit" / "settings.json"
    monkeypatch.setattr("provkit.config.settings.SETTINGS_PATH", path)
    yield path
    settings.settings_store.values = dict(settings.DEFAULT_SETTINGS)


class TestLoadSettings:
    """Tests for load_settings() function."""

    def test_load_defaults_when_no_file(self, settings_file):
        settings.settings_store.values = {}
        settings.load_settings()

        assert settings.get_setting("fstab_path") == "/etc/fstab"
        assert settings.get_setting("default_filesystem_type") == "ext4"
        assert settings.get_setting("postgresql_service_name") == "mydb"

    def test_file_overrides_defaults(self, settings_file):
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text(json.dumps({"fstab_path": "/tmp/fstab"}))

        settings.load_settings()

        assert settings.get_setting("fstab_path") == "/tmp/fstab"
        assert settings.get_setting("hosts_file_path") == "/etc/hosts"

    def test_corrupted_file_falls_back_to_defaults(self, settings_file):
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text("{not json")

        settings.load_settings()

        assert settings.settings_store.values == settings.DEFAULT_SETTINGS

    def test_non_object_is_ignored(self, settings_file):
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text("[1, 2]")

        settings.load_settings()

        assert settings.settings_store.values == settings.DEFAULT_SETTINGS


class TestSaveSettings:
    """Tests for set_setting() persistence."""

    def test_set_setting_persists(self, settings_file):
        settings.load_settings()

        settings.set_setting("log_dir", "/var/log/provkit")

        saved = json.loads(settings_file.read_text())
        assert saved["log_dir"] == "/var/log/provkit"
        assert saved["fstab_path"] == "/etc/fstab"


class TestGetPath:
    def test_expands_user(self, settings_file):
        settings.load_settings()

        assert settings.get_path("mysql_options_file_path") == Path("~/.my.cnf").expanduser()

    def test_unset_path_is_none(self, settings_file):
        settings.load_settings()

        assert settings.get_path("log_dir") is None
