"""Value objects for provisioning operations.

These replace the loose strings and associative arrays of ad-hoc provisioning
scripts with typed, mostly immutable objects.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator


# ==============================================================================
# Configuration Files
# ==============================================================================


@dataclass(frozen=True)
class ConfigLine:
    """Result of scanning a configuration file for one key.

    ``raw_line`` and ``line_index`` describe the first matching line; they are
    empty/-1 when nothing matched. Callers only act on them when
    ``match_count == 1``.
    """

    key: str
    match_count: int
    raw_line: str = ""
    line_index: int = -1

    @property
    def is_unique(self) -> bool:
        return self.match_count == 1


# ==============================================================================
# Storage Domain
# ==============================================================================


@dataclass(frozen=True)
class BlockDevice:
    """A block device as reported by lsblk.

    Never cached: every resolution lists devices again.
    """

    name: str  # e.g., "sdc"
    size_label: str  # human readable, e.g., "128G"
    fs_type: str | None = None  # e.g., "ext4", None when unformatted
    fs_uuid: str | None = None

    @property
    def sys_path(self) -> str:
        """Device node path (e.g., /dev/sdc)."""
        return f"/dev/{self.name}"

    @classmethod
    def from_lsblk_dict(cls, device: dict[str, Any]) -> BlockDevice:
        """Convert one lsblk JSON entry to a BlockDevice.

        Raises:
            KeyError: If the name key is missing
        """
        return cls(
            name=device["name"],
            size_label=str(device.get("size") or "").strip(),
            fs_type=(device.get("fstype") or "").strip() or None,
            fs_uuid=(device.get("uuid") or "").strip() or None,
        )


@dataclass(frozen=True)
class FstabEntry:
    """A persistent mount table entry keyed by filesystem UUID."""

    uuid: str
    mount_point: str
    fs_type: str
    options: str = "defaults,nofail"
    dump: int = 0
    passno: int = 2

    def format(self) -> str:
        return (
            f"UUID={self.uuid}\t{self.mount_point}\t{self.fs_type}"
            f"\t{self.options}\t{self.dump}\t{self.passno}\n"
        )


# ==============================================================================
# Script Parameters
# ==============================================================================


@dataclass(frozen=True, eq=False)
class ParameterSet(Mapping):
    """Validated script parameters.

    Built once by provkit.params.parse_parameters and read-only afterwards.
    """

    values: Mapping[str, str]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __getitem__(self, key: str) -> str:
        return self.values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return f"ParameterSet({dict(self.values)!r})"


# ==============================================================================
# Backup Domain
# ==============================================================================


class Tier(str, Enum):
    """Backup retention class, by decreasing priority."""

    MONTHLY = "monthly"
    WEEKLY = "weekly"
    DAILY = "daily"


_BACKUP_NAME_RE = re.compile(
    r"^(?P<prefix>.+)\.(?P<stamp>\d{8})\.(?P<tier>monthly|weekly|daily)\.(?P<ext>sql|log)$"
)


@dataclass(frozen=True)
class BackupFile:
    """A dump or dump log named ``<prefix>.<YYYYMMDD>.<tier>.<extension>``."""

    prefix: str  # "<resource name>.<database name>"
    date_stamp: date
    tier: Tier
    extension: str = "sql"

    @property
    def base_name(self) -> str:
        return f"{self.prefix}.{self.date_stamp:%Y%m%d}.{self.tier.value}"

    @property
    def filename(self) -> str:
        return f"{self.base_name}.{self.extension}"

    def path(self, directory: Path | str) -> Path:
        return Path(directory) / self.filename

    def with_extension(self, extension: str) -> BackupFile:
        return BackupFile(self.prefix, self.date_stamp, self.tier, extension)

    @classmethod
    def parse(cls, filename: str) -> BackupFile | None:
        """Parse a backup filename, returning None when it does not match."""
        match = _BACKUP_NAME_RE.match(filename)
        if not match:
            return None
        try:
            stamp = datetime.strptime(match.group("stamp"), "%Y%m%d").date()
        except ValueError:
            return None
        return cls(
            prefix=match.group("prefix"),
            date_stamp=stamp,
            tier=Tier(match.group("tier")),
            extension=match.group("ext"),
        )
