"""Backup tier planning and retention sweeps.

Each run produces one backup whose tier is decided by the calendar:

    day of month == monthly_day       -> monthly
    else weekday name == weekly_day   -> weekly
    else                              -> daily

Retention is accounted per tier suffix: a ``.daily.`` file is only ever
compared with the daily retention window, whatever today's tier is. Only names
that parse back to the same prefix, an 8 digit date stamp and the tier are
swept. A file is deleted when its age is strictly greater than the window.
"""

from __future__ import annotations

import glob
import time
from datetime import date
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Union

from provkit.domain.models import BackupFile, Tier
from provkit.logging import LoggerFactory, action


log = LoggerFactory.for_backup()

PathLike = Union[str, Path]

SECONDS_PER_DAY = 86400

# Locale independent, matches date.weekday() indexes.
WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def plan_tier(today: date, monthly_day: int, weekly_day_name: str) -> Tier:
    """Classify a date into exactly one backup tier, monthly first."""
    if today.day == monthly_day:
        return Tier.MONTHLY
    if weekday_name(today).lower() == weekly_day_name.strip().lower():
        return Tier.WEEKLY
    return Tier.DAILY


def backup_prefix(resource_name: str, database_name: str) -> str:
    return f"{resource_name}.{database_name}"


def plan_base_filename(
    today: date,
    monthly_day: int,
    weekly_day_name: str,
    prefix: str,
) -> BackupFile:
    """Describe today's dump file, ``<prefix>.<YYYYMMDD>.<tier>.sql``."""
    tier = plan_tier(today, monthly_day, weekly_day_name)
    return BackupFile(prefix=prefix, date_stamp=today, tier=tier, extension="sql")


def apply_retention(
    directory: PathLike,
    prefix: str,
    retention_days_by_tier: Mapping[Tier, int],
    now: Optional[float] = None,
    extensions: Sequence[str] = ("sql", "log"),
) -> List[Path]:
    """Delete backup files older than their tier's retention window.

    Args:
        directory: Directory holding the backup files
        prefix: ``<resource name>.<database name>``
        retention_days_by_tier: Days to keep, per tier
        now: Reference timestamp (defaults to the current time)
        extensions: File extensions swept for each tier

    Returns:
        The deleted paths
    """
    directory = Path(directory)
    now = time.time() if now is None else now
    deleted: List[Path] = []

    for tier, retention_days in retention_days_by_tier.items():
        tier = Tier(tier)
        max_age = retention_days * SECONDS_PER_DAY
        action(
            log,
            f"Deleting {tier.value} backups older than {retention_days} days in {directory}...",
        )
        for extension in extensions:
            pattern = f"{glob.escape(prefix)}.*.{tier.value}.{extension}"
            for path in sorted(directory.glob(pattern)):
                if not path.is_file():
                    continue
                parsed = BackupFile.parse(path.name)
                if (
                    parsed is None
                    or parsed.prefix != prefix
                    or parsed.tier is not tier
                    or parsed.extension != extension
                ):
                    continue
                age = now - path.stat().st_mtime
                if age > max_age:
                    path.unlink()
                    deleted.append(path)
                    log.info(f"Deleted {path.name}")
    if not deleted:
        log.info("No expired backup found.")
    return deleted
