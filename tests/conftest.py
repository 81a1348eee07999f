"""
Pytest configuration and shared fixtures for provkit tests.

This module provides common fixtures and utilities used across all test modules.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from provkit import logging as logging_module


# ==============================================================================
# Block Device Fixtures
# ==============================================================================


@pytest.fixture
def lsblk_devices() -> List[Dict[str, Any]]:
    """
    Fixture providing a typical cloud VM block device tree.

    Returns:
        List of lsblk JSON entries: an OS disk with partitions, a resource disk
        and an unformatted 128G data disk.
    """
    return [
        {
            "name": "sda",
            "size": "30G",
            "fstype": None,
            "uuid": None,
            "children": [
                {"name": "sda1", "size": "29.9G", "fstype": "ext4", "uuid": "0a1b2c3d-root"},
                {"name": "sda15", "size": "106M", "fstype": "vfat", "uuid": "ABCD-1234"},
            ],
        },
        {"name": "sdb", "size": "16G", "fstype": "ext4", "uuid": "5e6f7a8b-resource"},
        {"name": "sdc", "size": "128G", "fstype": None, "uuid": None},
    ]


@pytest.fixture
def lsblk_output(lsblk_devices) -> str:
    """Fixture providing lsblk JSON output for the device tree."""
    return json.dumps({"blockdevices": lsblk_devices})


@pytest.fixture
def make_lsblk_output():
    """Fixture building lsblk JSON output from device entries."""

    def build(*entries: Dict[str, Any]) -> str:
        return json.dumps({"blockdevices": list(entries)})

    return build


# ==============================================================================
# Configuration File Fixtures
# ==============================================================================


@pytest.fixture
def php_ini(tmp_path) -> Path:
    path = tmp_path / "php.ini"
    path.write_text(
        "[PHP]\n"
        "; Maximum amount of memory a script may consume\n"
        "memory_limit = 128M\n"
        "upload_max_filesize = 2M\n"
        ";post_max_size = 8M\n"
        "max_execution_time = 30\n"
    )
    return path


@pytest.fixture
def apache_security_conf(tmp_path) -> Path:
    path = tmp_path / "security.conf"
    path.write_text(
        "# Changing the following options will not really affect the security\n"
        "#ServerTokens Minimal\n"
        "ServerTokens OS\n"
        "#ServerTokens Full\n"
        "\n"
        "#ServerSignature Off\n"
        "ServerSignature On\n"
        "\n"
        "<Directory />\n"
        "    TraceEnable On\n"
        "</Directory>\n"
    )
    return path


@pytest.fixture
def nginx_conf(tmp_path) -> Path:
    path = tmp_path / "nginx.conf"
    path.write_text(
        "http {\n"
        "\tsendfile on;\n"
        "\t# server_tokens off;\n"
        "\tserver_tokens on;\n"
        "}\n"
    )
    return path


@pytest.fixture
def fstab(tmp_path) -> Path:
    path = tmp_path / "fstab"
    path.write_text("UUID=0a1b2c3d-root\t/\text4\tdefaults\t0\t1\n")
    return path


# ==============================================================================
# Logging Fixtures
# ==============================================================================


class CapturedRecords(list):
    """Loguru records captured by a test sink."""

    def messages(self, level: str | None = None) -> List[str]:
        return [
            record["message"]
            for record in self
            if level is None or record["level"].name == level
        ]


@pytest.fixture
def log_records():
    """Capture loguru records emitted during a test."""
    records = CapturedRecords()

    def sink(message):
        records.append(message.record)

    handler_id = logging_module.logger.add(sink, level="DEBUG", enqueue=False)
    yield records
    try:
        logging_module.logger.remove(handler_id)
    except ValueError:
        # setup_logging() already dropped every handler
        pass
