"""Tests for --key value parameter parsing."""

import pytest

from provkit import params
from provkit.exceptions import ParameterError


EXPECTED = ("data_disk_size", "data_disk_mount_point_path")


class TestParseParameters:
    def test_all_keys_present(self):
        parameters = params.parse_parameters(
            ["--data_disk_size", "128G", "--data_disk_mount_point_path", "/data"],
            EXPECTED,
            "mount-data-disk",
        )

        assert parameters == {"data_disk_size": "128G", "data_disk_mount_point_path": "/data"}

    def test_order_does_not_matter(self):
        parameters = params.parse_parameters(
            ["--data_disk_mount_point_path", "/data", "--data_disk_size", "128G"], EXPECTED
        )

        assert parameters["data_disk_size"] == "128G"

    def test_missing_key(self, log_records):
        with pytest.raises(ParameterError) as excinfo:
            params.parse_parameters(["--data_disk_size", "128G"], EXPECTED, "mount-data-disk")

        assert excinfo.value.missing == ["data_disk_mount_point_path"]
        assert excinfo.value.unexpected == []
        errors = log_records.messages("ERROR")
        assert "Missing parameter: data_disk_mount_point_path." in errors
        assert errors[-2] == "Execution aborted due to missing or extra parameters."
        assert errors[-1] == (
            "USAGE: mount-data-disk --data_disk_mount_point_path $data_disk_mount_point_path"
            " --data_disk_size $data_disk_size"
        )

    def test_unexpected_key(self, log_records):
        with pytest.raises(ParameterError) as excinfo:
            params.parse_parameters(
                [
                    "--data_disk_size",
                    "128G",
                    "--data_disk_mount_point_path",
                    "/data",
                    "--fs",
                    "xfs",
                ],
                EXPECTED,
            )

        assert excinfo.value.unexpected == ["--fs"]
        assert excinfo.value.missing == []
        assert "Unexpected parameter: --fs" in log_records.messages("ERROR")

    def test_all_problems_reported_together(self):
        with pytest.raises(ParameterError) as excinfo:
            params.parse_parameters(["size", "128G", "--other", "x"], EXPECTED)

        assert excinfo.value.unexpected == ["size", "--other"]
        assert excinfo.value.missing == sorted(EXPECTED)

    def test_trailing_key_without_value_is_missing(self):
        with pytest.raises(ParameterError) as excinfo:
            params.parse_parameters(
                ["--data_disk_size", "128G", "--data_disk_mount_point_path"], EXPECTED
            )

        assert excinfo.value.missing == ["data_disk_mount_point_path"]

    def test_empty_value_is_missing(self):
        with pytest.raises(ParameterError):
            params.parse_parameters(
                ["--data_disk_size", "", "--data_disk_mount_point_path", "/data"], EXPECTED
            )

    def test_parameters_are_read_only(self):
        parameters = params.parse_parameters(
            ["--data_disk_size", "128G", "--data_disk_mount_point_path", "/data"], EXPECTED
        )

        with pytest.raises(TypeError):
            parameters["data_disk_size"] = "256G"
        with pytest.raises(TypeError):
            parameters.values["data_disk_size"] = "256G"

    def test_secret_values_are_masked_in_log(self, log_records):
        params.parse_parameters(["--admin_password", "hunter2", "--username", "app"],
                                ("admin_password", "username"))

        infos = log_records.messages("INFO")
        assert 'admin_password = "********"' in infos
        assert 'username = "app"' in infos
        assert not any("hunter2" in m for m in log_records.messages())


def test_build_usage_sorts_keys():
    assert params.build_usage("script", ["b", "a"]) == "USAGE: script --a $a --b $b"
