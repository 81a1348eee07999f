"""Database dump execution.

A backup run is a fixed three step sequence:

    1. dump the database to ``<prefix>.<YYYYMMDD>.<tier>.sql`` (stdout) and
       ``<prefix>.<YYYYMMDD>.<tier>.log`` (stderr)
    2. check that the dump ends with the tool's completion marker
    3. only then, delete expired backups

A failed dump or a missing marker stops the run before retention and leaves
both files in place for inspection.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Union

from provkit.commands import run_to_files
from provkit.config import settings
from provkit.domain.models import Tier
from provkit.exceptions import BackupValidationError, CommandError
from provkit.logging import LoggerFactory, action

from .rotation import apply_retention, backup_prefix, plan_base_filename


log = LoggerFactory.for_backup()

PathLike = Union[str, Path]

TAIL_BYTES = 4096
TAIL_LINES = 5


def _no_env(_credentials_file: Path) -> Dict[str, str]:
    return {}


@dataclass(frozen=True)
class DumpEngine:
    """A dump tool and the marker it writes after a complete dump."""

    name: str
    completion_marker: str  # regular expression matched against tail lines
    build_command: Callable[[str, Path], List[str]]
    build_env: Callable[[Path], Dict[str, str]] = field(default=_no_env)


def _mysqldump_command(database: str, credentials_file: Path) -> List[str]:
    return [
        "mysqldump",
        f"--defaults-extra-file={credentials_file}",
        "--single-transaction",
        "--routines",
        "--triggers",
        database,
    ]


def _conninfo_value(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _pg_dump_command(database: str, credentials_file: Path) -> List[str]:
    service = settings.get_setting("postgresql_service_name")
    return ["pg_dump", f"--dbname=service={service} dbname={_conninfo_value(database)}"]


def _pg_dump_env(credentials_file: Path) -> Dict[str, str]:
    return {"PGSERVICEFILE": str(credentials_file)}


ENGINES: Dict[str, DumpEngine] = {
    "mysql": DumpEngine(
        name="mysql",
        completion_marker=r"^-- Dump completed",
        build_command=_mysqldump_command,
    ),
    "postgresql": DumpEngine(
        name="postgresql",
        completion_marker=r"^-- PostgreSQL database dump complete",
        build_command=_pg_dump_command,
        build_env=_pg_dump_env,
    ),
}


@dataclass
class BackupResult:
    """Result of a backup run."""
    dump_path: Path
    log_path: Path
    tier: Tier
    deleted: List[Path]


def read_tail(path: PathLike, max_lines: int = TAIL_LINES) -> List[str]:
    """Return the last non-empty lines of a file."""
    with open(path, "rb") as handle:
        handle.seek(0, os.SEEK_END)
        size = handle.tell()
        handle.seek(max(0, size - TAIL_BYTES))
        data = handle.read().decode("utf-8", errors="replace")
    lines = [line for line in data.splitlines() if line.strip()]
    return lines[-max_lines:]


def validate_dump(dump_path: PathLike, completion_marker: str) -> None:
    """Check that one of the dump's last lines matches the completion marker.

    Raises:
        BackupValidationError: If the marker is absent
    """
    action(log, f"Validating backup file {dump_path}...")
    pattern = re.compile(completion_marker)
    if not any(pattern.search(line) for line in read_tail(dump_path)):
        raise BackupValidationError(dump_path, completion_marker)
    log.info("Backup completed successfully.")


def run_backup(
    engine: Union[str, DumpEngine],
    resource_name: str,
    database: str,
    backup_dir: PathLike,
    credentials_file: PathLike,
    monthly_day: int,
    weekly_day_name: str,
    retention_days_by_tier: Mapping[Tier, int],
    today: Optional[date] = None,
    now: Optional[float] = None,
) -> BackupResult:
    """Dump a database, validate the dump, then sweep expired backups.

    Raises:
        CommandError: If the dump tool exits with a non-zero status
        BackupValidationError: If the dump lacks the completion marker
    """
    if isinstance(engine, str):
        engine = ENGINES[engine]
    backup_dir = Path(backup_dir)
    credentials_file = Path(credentials_file).expanduser()
    today = today or date.today()
    prefix = backup_prefix(resource_name, database)

    backup_file = plan_base_filename(today, monthly_day, weekly_day_name, prefix)
    dump_path = backup_file.path(backup_dir)
    log_path = backup_file.with_extension("log").path(backup_dir)
    log.info(f"Backup tier for {today:%Y-%m-%d}: {backup_file.tier.value}")

    action(log, f"Backing up {engine.name} database {database} to {dump_path}...")
    backup_dir.mkdir(parents=True, exist_ok=True)
    command = engine.build_command(database, credentials_file)
    env = {**os.environ, **engine.build_env(credentials_file)}
    with open(dump_path, "w", encoding="utf-8") as stdout, open(
        log_path, "w", encoding="utf-8"
    ) as stderr:
        returncode = run_to_files(command, stdout=stdout, stderr=stderr, env=env)
    if returncode != 0:
        raise CommandError(command, returncode, f"See {log_path} for details.")

    validate_dump(dump_path, engine.completion_marker)

    deleted = apply_retention(backup_dir, prefix, retention_days_by_tier, now=now)
    return BackupResult(
        dump_path=dump_path,
        log_path=log_path,
        tier=backup_file.tier,
        deleted=deleted,
    )


def engine_names() -> List[str]:
    return sorted(ENGINES)
