"""Tests for domain models.

Pure value objects: no subprocess or filesystem access beyond tmp paths.
"""
from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import date
from pathlib import Path

import pytest

from provkit.domain import (
    BackupFile,
    BlockDevice,
    ConfigLine,
    FstabEntry,
    ParameterSet,
    Tier,
)


# ==============================================================================
# ConfigLine Tests
# ==============================================================================


class TestConfigLine:
    def test_unique(self):
        assert ConfigLine("memory_limit", 1, "memory_limit = 1G\n", 3).is_unique

    def test_not_found(self):
        line = ConfigLine("memory_limit", 0)

        assert not line.is_unique
        assert line.line_index == -1


# ==============================================================================
# BlockDevice Tests
# ==============================================================================


class TestBlockDevice:
    def test_from_lsblk_dict(self):
        device = BlockDevice.from_lsblk_dict(
            {"name": "sdc", "size": "128G", "fstype": "ext4", "uuid": "9f8e"}
        )

        assert device == BlockDevice("sdc", "128G", "ext4", "9f8e")
        assert device.sys_path == "/dev/sdc"

    def test_blank_values_become_none(self):
        device = BlockDevice.from_lsblk_dict({"name": "sdc", "size": " 128G ", "fstype": ""})

        assert device.size_label == "128G"
        assert device.fs_type is None
        assert device.fs_uuid is None

    def test_name_required(self):
        with pytest.raises(KeyError):
            BlockDevice.from_lsblk_dict({"size": "128G"})


# ==============================================================================
# FstabEntry Tests
# ==============================================================================


def test_fstab_entry_format():
    entry = FstabEntry("9f8e", "/data", "ext4")

    assert entry.format() == "UUID=9f8e\t/data\text4\tdefaults,nofail\t0\t2\n"


# ==============================================================================
# ParameterSet Tests
# ==============================================================================


class TestParameterSet:
    def test_mapping_behaviour(self):
        parameters = ParameterSet({"a": "1", "b": "2"})

        assert parameters == {"a": "1", "b": "2"}
        assert sorted(parameters) == ["a", "b"]
        assert len(parameters) == 2
        assert parameters.get("c") is None

    def test_source_dict_is_copied(self):
        source = {"a": "1"}
        parameters = ParameterSet(source)
        source["a"] = "2"

        assert parameters["a"] == "1"

    def test_frozen(self):
        parameters = ParameterSet({"a": "1"})

        with pytest.raises(FrozenInstanceError):
            parameters.values = {}


# ==============================================================================
# BackupFile Tests
# ==============================================================================


class TestBackupFile:
    def test_names(self):
        backup = BackupFile("srv.db", date(2025, 1, 5), Tier.WEEKLY)

        assert backup.base_name == "srv.db.20250105.weekly"
        assert backup.filename == "srv.db.20250105.weekly.sql"
        assert backup.path("/backups") == Path("/backups/srv.db.20250105.weekly.sql")

    @pytest.mark.parametrize(
        "name",
        ["srv.db.2025010.daily.sql", "srv.db.20250105.yearly.sql", "srv.db.20251399.daily.sql"],
    )
    def test_parse_rejects(self, name):
        assert BackupFile.parse(name) is None

    def test_tier_values(self):
        assert [tier.value for tier in Tier] == ["monthly", "weekly", "daily"]
