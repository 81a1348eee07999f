"""Data disk formatting and persistent mounting.

mount_data_disk_by_size() runs the whole sequence:

    1. resolve the data disk by its size label (exactly one device)
    2. create an ext4 filesystem when the device has none
    3. wait for the filesystem UUID, once per second for up to 60 seconds
    4. create the mount point directory
    5. append a UUID based entry to /etc/fstab unless the UUID is present
    6. mount everything listed in /etc/fstab

Filesystem creation is destructive and irreversible: the caller must make sure
the device holds no data it still needs. A failed resolution stops before any
of these mutations.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Optional, Union

from provkit.commands import run_command
from provkit.config import settings
from provkit.domain.models import FstabEntry
from provkit.exceptions import ConfigFileNotFoundError, FilesystemUUIDTimeoutError
from provkit.logging import LoggerFactory, action
from provkit.polling import poll

from .devices import get_filesystem_type, get_filesystem_uuid, resolve_device_by_size


log = LoggerFactory.for_storage()

PathLike = Union[str, Path]

UUID_POLL_INTERVAL_SECONDS = 1
UUID_TIMEOUT_SECONDS = 60


def create_filesystem(device_path: str, fs_type: str) -> None:
    action(log, f"Creating file system of type {fs_type} on {device_path}...")
    run_command([f"mkfs.{fs_type}", device_path])


def ensure_filesystem(device_path: str, default_fs_type: Optional[str] = None) -> str:
    """Return the device's filesystem type, creating one if it has none."""
    action(log, "Creating file system on data disk block if none exists...")
    fs_type = get_filesystem_type(device_path)
    if fs_type:
        log.warning(f"Skipped: File system {fs_type} already exist on {device_path}.")
        return fs_type
    log.info(f"No file system detected on {device_path}.")
    fs_type = default_fs_type or settings.get_setting("default_filesystem_type")
    create_filesystem(device_path, fs_type)
    return fs_type


def wait_for_filesystem_uuid(
    device_path: str,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Wait until lsblk reports a filesystem UUID for the device.

    A freshly created filesystem does not expose its UUID immediately.

    Raises:
        FilesystemUUIDTimeoutError: If no UUID shows up within 60 seconds
    """
    action(log, "Retrieving data disk file system UUID...")
    uuid = poll(
        lambda: get_filesystem_uuid(device_path),
        timeout=UUID_TIMEOUT_SECONDS,
        interval=UUID_POLL_INTERVAL_SECONDS,
        sleep=sleep,
        on_wait=lambda _elapsed: log.info("Waiting for 1 second..."),
    )
    if not uuid:
        raise FilesystemUUIDTimeoutError(device_path, UUID_TIMEOUT_SECONDS)
    log.info(f"Data disk file system UUID: {uuid}")
    return uuid


def ensure_fstab_entry(entry: FstabEntry, fstab_path: Optional[PathLike] = None) -> bool:
    """Append the entry unless the mount table already mentions its UUID.

    Returns:
        True when the entry was appended
    """
    path = Path(fstab_path or settings.get_setting("fstab_path"))
    action(log, f"Updating {path} file to automount the data disk using its UUID...")
    if not path.is_file():
        raise ConfigFileNotFoundError(path)
    content = path.read_text(encoding="utf-8")
    if entry.uuid in content:
        log.warning("Skipped: already set up.")
        return False
    separator = "" if not content or content.endswith("\n") else "\n"
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(separator + entry.format())
    return True


def mount_all() -> None:
    action(log, "Mounting all drives...")
    run_command(["mount", "-a"])


def mount_data_disk_by_size(
    size_label: str,
    mount_point: PathLike,
    fstab_path: Optional[PathLike] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> FstabEntry:
    """Format (if needed) and persistently mount the data disk of a given size.

    Args:
        size_label: Size as printed by ``lsblk --output NAME,SIZE`` (e.g. "128G")
        mount_point: Directory to mount the disk on, created if missing
        fstab_path: Mount table to update (defaults to the fstab_path setting)
        sleep: Sleep function used while waiting for the UUID

    Returns:
        The mount table entry describing the disk

    Raises:
        NoMatchingDeviceError: If no device has this size
        MultipleMatchingDevicesError: If several devices have this size
        FilesystemUUIDTimeoutError: If the UUID never becomes available
        CommandError: If mkfs or mount fails
    """
    device = resolve_device_by_size(size_label)
    fs_type = ensure_filesystem(device.sys_path)
    uuid = wait_for_filesystem_uuid(device.sys_path, sleep=sleep)

    mount_point = Path(mount_point)
    action(log, f"Creating data disk mount point at {mount_point}...")
    mount_point.mkdir(parents=True, exist_ok=True)

    entry = FstabEntry(uuid=uuid, mount_point=str(mount_point), fs_type=fs_type)
    ensure_fstab_entry(entry, fstab_path)
    mount_all()
    return entry
