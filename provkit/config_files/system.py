"""Operating system configuration helpers (hosts file, unattended upgrades)."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from provkit.config import settings
from provkit.exceptions import ConfigFileNotFoundError
from provkit.logging import LoggerFactory, action

from .editor import DECLARATION, EditMode, upsert


PathLike = Union[str, Path]

log = LoggerFactory.for_system()


def add_hosts_file_entry(
    ip: str,
    fqdn: str,
    comment: str,
    hosts_file_path: Optional[PathLike] = None,
) -> bool:
    """Append a commented ``ip fqdn`` entry unless the fqdn is already listed.

    Returns:
        True when the entry was added
    """
    path = Path(hosts_file_path or settings.get_setting("hosts_file_path"))
    action(log, f"Adding entry for {fqdn} in {path}...")
    if not path.is_file():
        raise ConfigFileNotFoundError(path)

    content = path.read_text(encoding="utf-8")
    if fqdn in content:
        log.warning(f"Skipped: {path} already contains entry for {fqdn}.")
        return False

    separator = "" if not content or content.endswith("\n") else "\n"
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(f"{separator}# {comment}\n{ip} {fqdn}\n")
    return True


def _apt_bool(value: bool) -> str:
    return '"true"' if value else '"false"'


def configure_unattended_upgrades(
    config_file_path: PathLike,
    automatic_reboot: bool = False,
    automatic_reboot_time: Optional[str] = None,
    remove_unused_dependencies: bool = True,
) -> bool:
    """Converge the unattended-upgrades options of an apt configuration file.

    Options are declaration lines such as
    ``Unattended-Upgrade::Automatic-Reboot "true";``; missing ones are
    appended.
    """
    options = [
        ("Unattended-Upgrade::Remove-Unused-Dependencies", _apt_bool(remove_unused_dependencies)),
        ("Unattended-Upgrade::Automatic-Reboot", _apt_bool(automatic_reboot)),
    ]
    if automatic_reboot_time:
        options.append(
            ("Unattended-Upgrade::Automatic-Reboot-Time", f'"{automatic_reboot_time}"')
        )

    changed = False
    for key, value in options:
        changed = upsert(
            key, value, config_file_path, EditMode.APPEND_IF_MISSING, DECLARATION
        ) or changed
    return changed


def enable_periodic_upgrades(config_file_path: PathLike) -> bool:
    """Turn on the daily package list refresh and unattended upgrade run."""
    changed = False
    for key in ("APT::Periodic::Update-Package-Lists", "APT::Periodic::Unattended-Upgrade"):
        changed = upsert(
            key, '"1"', config_file_path, EditMode.APPEND_IF_MISSING, DECLARATION
        ) or changed
    return changed
