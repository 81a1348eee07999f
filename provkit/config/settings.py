"""Settings storage for provisioning defaults."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


SETTINGS_PATH = Path(
    os.environ.get(
        "PROVKIT_SETTINGS_PATH",
        Path.home() / ".config" / "provkit" / "settings.json",
    )
)

# Default values - use these constants instead of hardcoding values elsewhere
DEFAULT_FSTAB_PATH = "/etc/fstab"
DEFAULT_HOSTS_FILE_PATH = "/etc/hosts"
DEFAULT_FILESYSTEM_TYPE = "ext4"
DEFAULT_POSTGRESQL_SERVICE_NAME = "mydb"

DEFAULT_SETTINGS: dict[str, Any] = {
    "fstab_path": DEFAULT_FSTAB_PATH,
    "hosts_file_path": DEFAULT_HOSTS_FILE_PATH,
    "default_filesystem_type": DEFAULT_FILESYSTEM_TYPE,
    "mysql_options_file_path": "~/.my.cnf",
    "postgresql_service_file_path": "~/.pg_service.conf",
    "postgresql_service_name": DEFAULT_POSTGRESQL_SERVICE_NAME,
    "log_dir": None,
}


@dataclass
class SettingsStore:
    values: dict[str, Any] = field(default_factory=dict)


settings_store = SettingsStore()


def load_settings() -> None:
    settings_store.values = dict(DEFAULT_SETTINGS)
    if not SETTINGS_PATH.exists():
        return
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return
    if isinstance(data, dict):
        settings_store.values.update(data)


def save_settings() -> None:
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(settings_store.values, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def get_setting(key: str, default: Any | None = None) -> Any:
    return settings_store.values.get(key, default)


def set_setting(key: str, value: Any) -> None:
    settings_store.values[key] = value
    save_settings()


def get_path(key: str) -> Path | None:
    """Return a path setting with '~' expanded, or None when unset."""
    value = get_setting(key)
    if not value:
        return None
    return Path(value).expanduser()


load_settings()
