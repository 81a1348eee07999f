"""Domain models for provisioning operations.

This package contains the small value objects passed between the
configuration editor, the block device resolver, the backup planner and the
parameter store.
"""

from __future__ import annotations

from .models import (
    BackupFile,
    BlockDevice,
    ConfigLine,
    FstabEntry,
    ParameterSet,
    Tier,
)


__all__ = [
    "BackupFile",
    "BlockDevice",
    "ConfigLine",
    "FstabEntry",
    "ParameterSet",
    "Tier",
]
