"""Block device discovery using lsblk.

Data disks attached to a virtual machine get unpredictable device names, so a
data disk is identified by its human readable size instead (the SIZE column of
``lsblk``, e.g. ``128G``). Sizes are compared as strings, exactly as lsblk
prints them. Exactly one device must match; zero or several matches are fatal
and are never retried.

Device listings are taken fresh on every call and never cached.

Example:
    >>> from provkit.storage.devices import resolve_device_by_size
    >>> device = resolve_device_by_size("128G")
    >>> device.sys_path
    '/dev/sdc'
"""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Optional

from provkit.commands import run_command
from provkit.domain.models import BlockDevice
from provkit.exceptions import (
    CommandError,
    DeviceQueryError,
    MultipleMatchingDevicesError,
    NoMatchingDeviceError,
)
from provkit.logging import LoggerFactory, action


log = LoggerFactory.for_storage()

LSBLK_COLUMNS = "NAME,SIZE,FSTYPE,UUID"


def _run_lsblk(extra_args: Iterable[str]) -> List[dict[str, Any]]:
    command = ["lsblk", "-J", "-o", LSBLK_COLUMNS, *extra_args]
    try:
        result = run_command(command, log_output=False)
        data = json.loads(result.stdout)
    except CommandError as error:
        raise DeviceQueryError(str(error)) from error
    except json.JSONDecodeError as error:
        raise DeviceQueryError(f"invalid lsblk output: {error}") from error
    return data.get("blockdevices", []) or []


def _flatten(entries: Iterable[dict[str, Any]]) -> Iterable[dict[str, Any]]:
    for entry in entries:
        yield entry
        yield from _flatten(entry.get("children", []) or [])


def list_block_devices() -> List[BlockDevice]:
    """List every block device, partitions included."""
    return [BlockDevice.from_lsblk_dict(entry) for entry in _flatten(_run_lsblk([]))]


def find_devices_by_size(size_label: str) -> List[BlockDevice]:
    return [device for device in list_block_devices() if device.size_label == size_label]


def resolve_device_by_size(size_label: str) -> BlockDevice:
    """Return the only block device whose size label equals size_label.

    Raises:
        NoMatchingDeviceError: If no device has this size
        MultipleMatchingDevicesError: If several devices have this size
    """
    action(log, "Retrieving data disk block device path using data disk size as index...")
    matches = find_devices_by_size(size_label)
    if not matches:
        raise NoMatchingDeviceError(size_label)
    if len(matches) > 1:
        raise MultipleMatchingDevicesError(size_label, [device.name for device in matches])
    device = matches[0]
    log.info(f"Unique block device found: {device.name}")
    return device


def query_block_device(device_path: str) -> Optional[BlockDevice]:
    """Read the current state of a single device node (children excluded)."""
    entries = _run_lsblk(["--nodeps", device_path])
    if not entries:
        return None
    return BlockDevice.from_lsblk_dict(entries[0])


def get_filesystem_type(device_path: str) -> Optional[str]:
    device = query_block_device(device_path)
    return device.fs_type if device else None


def get_filesystem_uuid(device_path: str) -> Optional[str]:
    device = query_block_device(device_path)
    return device.fs_uuid if device else None
