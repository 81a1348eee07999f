"""Custom exceptions for provisioning operations.

Every fatal condition raised by provkit derives from ProvisioningError. Helpers
never terminate the process themselves; the script entry points in
provkit.main translate any ProvisioningError into an ERROR log line and a
non-zero exit status.

Exception Hierarchy:
    ProvisioningError (base)
        ├── ConfigEditError
        │   ├── ConfigFileNotFoundError
        │   ├── NoMatchingLineError
        │   ├── MultipleMatchingLinesError
        │   └── InsertionPointNotFoundError
        ├── DeviceError
        │   ├── DeviceQueryError
        │   ├── NoMatchingDeviceError
        │   ├── MultipleMatchingDevicesError
        │   └── FilesystemUUIDTimeoutError
        ├── CommandError
        ├── ParameterError
        ├── BackupError
        │   └── BackupValidationError
        └── ServiceUnavailableError

Usage:
    from provkit.exceptions import NoMatchingLineError

    if match_count == 0:
        raise NoMatchingLineError(key, path)
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class ProvisioningError(Exception):
    """Base exception for all provisioning operations."""



class ConfigEditError(ProvisioningError):
    """Base exception for configuration file edits."""



class ConfigFileNotFoundError(ConfigEditError):
    """The configuration file to edit does not exist."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        super().__init__(f"Configuration file not found: {self.path}")


class NoMatchingLineError(ConfigEditError):
    """No line matched the search criteria in update-only mode."""

    def __init__(self, key: str, path: Path | str):
        self.key = key
        self.path = Path(path)
        super().__init__(
            f"No line matched the search criteria for \"{key}\" in {self.path}. Aborting."
        )


class MultipleMatchingLinesError(ConfigEditError):
    """More than one line matched the search criteria."""

    def __init__(self, key: str, path: Path | str, match_count: int):
        self.key = key
        self.path = Path(path)
        self.match_count = match_count
        super().__init__(
            f"More than one line matched the search criteria for \"{key}\" "
            f"in {self.path} ({match_count} lines). Aborting."
        )


class InsertionPointNotFoundError(ConfigEditError):
    """The anchor line used as insertion point is missing."""

    def __init__(self, anchor: str, path: Path | str):
        self.anchor = anchor
        self.path = Path(path)
        super().__init__(
            f"Insertion point not found: no line matches /{anchor}/ in {self.path}. Aborting."
        )


class DeviceError(ProvisioningError):
    """Base exception for block device errors."""



class DeviceQueryError(DeviceError):
    """The block device listing could not be obtained or parsed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Unable to list block devices: {reason}")


class NoMatchingDeviceError(DeviceError):
    """No block device has the requested size."""

    def __init__(self, size_label: str):
        self.size_label = size_label
        super().__init__(
            f"No block device matches the given data disk size ({size_label}). Aborting."
        )


class MultipleMatchingDevicesError(DeviceError):
    """More than one block device has the requested size."""

    def __init__(self, size_label: str, device_names: Sequence[str]):
        self.size_label = size_label
        self.device_names = list(device_names)
        super().__init__(
            f"More than one block devices match the given data disk size "
            f"({size_label}): {', '.join(self.device_names)}. Aborting."
        )


class FilesystemUUIDTimeoutError(DeviceError):
    """The filesystem UUID did not become available in time."""

    def __init__(self, device_path: str, timeout_seconds: int):
        self.device_path = device_path
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Could not retrieve the file system UUID of {device_path} "
            f"within {timeout_seconds} seconds. Aborting."
        )


class CommandError(ProvisioningError):
    """An external command exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        msg = f"\"{' '.join(self.command)}\" command failed with exit code {returncode}."
        if stderr:
            msg += f" {stderr.strip()}"
        super().__init__(msg)


class ParameterError(ProvisioningError):
    """Script parameters were unexpected or missing."""

    def __init__(
        self,
        unexpected: Sequence[str],
        missing: Sequence[str],
        usage: str,
    ):
        self.unexpected = list(unexpected)
        self.missing = list(missing)
        self.usage = usage
        super().__init__("Execution aborted due to missing or extra parameters.")


class BackupError(ProvisioningError):
    """Base exception for backup operations."""



class BackupValidationError(BackupError):
    """The dump output does not end with the expected completion marker."""

    def __init__(self, dump_path: Path | str, marker: str):
        self.dump_path = Path(dump_path)
        self.marker = marker
        super().__init__(
            f"Backup validation failed: {self.dump_path} does not end with "
            f"\"{marker}\". Dump and log files are left in place."
        )


class ServiceUnavailableError(ProvisioningError):
    """A service did not become ready within the allowed waiting time."""

    def __init__(self, service: str, waited_seconds: int):
        self.service = service
        self.waited_seconds = waited_seconds
        super().__init__(
            f"The service {service} did not start within {waited_seconds} s. Aborting."
        )
