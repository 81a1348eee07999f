"""Tests for provisioning exception classes."""

from pathlib import Path

import pytest

from provkit.exceptions import (
    BackupError,
    BackupValidationError,
    CommandError,
    ConfigEditError,
    ConfigFileNotFoundError,
    DeviceError,
    DeviceQueryError,
    FilesystemUUIDTimeoutError,
    InsertionPointNotFoundError,
    MultipleMatchingDevicesError,
    MultipleMatchingLinesError,
    NoMatchingDeviceError,
    NoMatchingLineError,
    ParameterError,
    ProvisioningError,
    ServiceUnavailableError,
)


class TestExceptionHierarchy:
    """Test exception inheritance hierarchy."""

    @pytest.mark.parametrize(
        "error, parent",
        [
            (ConfigFileNotFoundError("/etc/php.ini"), ConfigEditError),
            (NoMatchingLineError("key", "/f"), ConfigEditError),
            (MultipleMatchingLinesError("key", "/f", 2), ConfigEditError),
            (InsertionPointNotFoundError("^\\[PHP\\]$", "/f"), ConfigEditError),
            (DeviceQueryError("boom"), DeviceError),
            (NoMatchingDeviceError("128G"), DeviceError),
            (MultipleMatchingDevicesError("128G", ["sdc", "sdd"]), DeviceError),
            (FilesystemUUIDTimeoutError("/dev/sdc", 60), DeviceError),
            (BackupValidationError("/b/x.sql", "-- Dump completed"), BackupError),
            (CommandError(["mount", "-a"], 32), ProvisioningError),
            (ParameterError([], ["a"], "USAGE: x --a $a"), ProvisioningError),
            (ServiceUnavailableError("pg01:5432", 15), ProvisioningError),
        ],
    )
    def test_parents(self, error, parent):
        assert isinstance(error, parent)
        assert isinstance(error, ProvisioningError)


class TestMessages:
    def test_no_matching_line(self):
        error = NoMatchingLineError("memory_limit", "/etc/php.ini")

        assert error.path == Path("/etc/php.ini")
        assert "memory_limit" in str(error)

    def test_multiple_matching_devices_lists_names(self):
        error = MultipleMatchingDevicesError("128G", ["sdc", "sdd"])

        assert "sdc, sdd" in str(error)

    def test_command_error_without_stderr(self):
        assert str(CommandError(["mount", "-a"], 32)) == '"mount -a" command failed with exit code 32.'

    def test_parameter_error_keeps_details(self):
        error = ParameterError(["--x"], ["a"], "USAGE: s --a $a")

        assert error.unexpected == ["--x"]
        assert error.missing == ["a"]
        assert error.usage == "USAGE: s --a $a"
        assert str(error) == "Execution aborted due to missing or extra parameters."
