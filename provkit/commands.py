"""External command execution.

Every external tool (lsblk, mkfs, mount, mysql, psql, pg_isready, dump tools)
is invoked through run_command with an argument vector, never through a shell
string, so parameter values cannot be interpreted by a shell.
"""

from __future__ import annotations

import subprocess
from typing import IO, Mapping, Optional, Sequence

from provkit.exceptions import CommandError
from provkit.logging import LoggerFactory


log = LoggerFactory.for_system()


def run_command(
    command: Sequence[str],
    check: bool = True,
    input_text: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    log_output: bool = True,
    log_command: bool = True,
) -> subprocess.CompletedProcess:
    """Run a command and capture its output.

    Args:
        command: Argument vector, program first
        check: Raise CommandError when the exit status is non-zero
        input_text: Text sent to the command's stdin
        env: Full environment for the child process
        log_output: Log captured stdout/stderr at DEBUG level
        log_command: Log the command line at DEBUG level and show it in
            errors (only the program name is shown otherwise)

    Returns:
        The completed process with text stdout and stderr

    Raises:
        CommandError: If check is True and the command fails or is missing
    """
    command = list(command)
    shown = command if log_command else command[:1]
    if log_command:
        log.debug(f"Running command: {' '.join(command)}")
    try:
        result = subprocess.run(
            command,
            input=input_text,
            env=dict(env) if env is not None else None,
            text=True,
            capture_output=True,
        )
    except FileNotFoundError as error:
        raise CommandError(shown, 127, str(error)) from error
    if result.stdout and (log_output or result.returncode != 0):
        log.debug(f"stdout: {result.stdout.strip()}")
    if result.stderr and (log_output or result.returncode != 0):
        log.debug(f"stderr: {result.stderr.strip()}")
    if check and result.returncode != 0:
        raise CommandError(shown, result.returncode, result.stderr or "")
    return result


def run_to_files(
    command: Sequence[str],
    stdout: IO[str],
    stderr: IO[str],
    env: Optional[Mapping[str, str]] = None,
) -> int:
    """Run a command with stdout and stderr redirected to open files.

    Returns:
        The command's exit status
    """
    command = list(command)
    log.debug(f"Running command: {' '.join(command)}")
    try:
        result = subprocess.run(
            command,
            stdout=stdout,
            stderr=stderr,
            env=dict(env) if env is not None else None,
            text=True,
        )
    except FileNotFoundError as error:
        raise CommandError(command, 127, str(error)) from error
    log.debug(f"Command completed with return code {result.returncode}")
    return result.returncode
