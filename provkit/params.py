"""Script parameter parsing and validation.

Provisioning scripts receive their inputs as ``--key value`` pairs. Every
expected key is mandatory; unknown keys and missing values are collected (not
reported one at a time), logged together with a usage line, and then raised as
a single ParameterError. A successful parse yields a read-only ParameterSet.
"""

from __future__ import annotations

import os
import sys
from typing import Iterable, Optional, Sequence

from provkit.domain.models import ParameterSet
from provkit.exceptions import ParameterError
from provkit.logging import LoggerFactory, action


KEY_PREFIX = "--"
SECRET_KEY_MARKERS = ("password", "secret", "token")

log = LoggerFactory.for_system()


def build_usage(script_name: str, expected_keys: Iterable[str]) -> str:
    usage = f"USAGE: {script_name}"
    for key in sorted(expected_keys):
        usage += f" {KEY_PREFIX}{key} ${key}"
    return usage


def _display_value(key: str, value: str) -> str:
    if any(marker in key.lower() for marker in SECRET_KEY_MARKERS):
        return "********"
    return value


def parse_parameters(
    argv: Sequence[str],
    expected_keys: Iterable[str],
    script_name: Optional[str] = None,
) -> ParameterSet:
    """Map ``--key value`` pairs onto the expected keys.

    Tokens are consumed two at a time. A trailing key without a value keeps an
    empty value and is therefore reported as missing.

    Args:
        argv: Command line arguments without the program name
        expected_keys: Every key the script requires, without the prefix
        script_name: Name shown in the usage line (defaults to argv[0] basename)

    Returns:
        The frozen parameter set

    Raises:
        ParameterError: If any key is unexpected or any expected key is empty
    """
    values = {key: "" for key in expected_keys}
    sorted_keys = sorted(values)
    unexpected: list[str] = []

    action(log, "Mapping input parameter values and checking for unexpected parameters...")
    for index in range(0, len(argv), 2):
        key = argv[index]
        value = argv[index + 1] if index + 1 < len(argv) else ""
        name = key[len(KEY_PREFIX):] if key.startswith(KEY_PREFIX) else None
        if name is not None and name in values:
            values[name] = value
        else:
            log.error(f"Unexpected parameter: {key}")
            unexpected.append(key)

    action(log, "Checking for missing parameters...")
    missing = [key for key in sorted_keys if not values[key]]
    for key in missing:
        log.error(f"Missing parameter: {key}.")

    if unexpected or missing:
        usage = build_usage(script_name or os.path.basename(sys.argv[0]), sorted_keys)
        log.error("Execution aborted due to missing or extra parameters.")
        log.error(usage)
        raise ParameterError(unexpected, missing, usage)

    action(log, "Printing input parameter values for debugging purposes...")
    for key in sorted_keys:
        log.info(f"{key} = \"{_display_value(key, values[key])}\"")

    action(log, "Locking down parameters...")
    return ParameterSet(values)
