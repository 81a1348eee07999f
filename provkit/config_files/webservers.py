"""Apache2, Nginx and PHP configuration helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from .editor import (
    APACHE_DIRECTIVE,
    INI_ASSIGNMENT,
    NGINX_DIRECTIVE,
    EditMode,
    upsert,
)


PathLike = Union[str, Path]

APACHE2_HARDENING = (
    ("ServerTokens", "Prod"),
    ("ServerSignature", "Off"),
)

NGINX_HARDENING = (
    ("server_tokens", "off"),
    ("add_header X-Frame-Options", '"SAMEORIGIN"'),
    ("add_header X-XSS-Protection", '"1; mode=block"'),
)


def update_php_config_file(parameter: str, value: str, config_file_path: PathLike) -> bool:
    """Update an existing, enabled ``parameter = value`` line of a php.ini file."""
    return upsert(parameter, value, config_file_path, EditMode.UPDATE_ONLY, INI_ASSIGNMENT)


def update_apache2_config_file(
    parameter: str, value: str, config_file_path: PathLike
) -> bool:
    """Update an existing, enabled Apache2 directive, keeping its indentation."""
    return upsert(parameter, value, config_file_path, EditMode.UPDATE_ONLY, APACHE_DIRECTIVE)


def upsert_nginx_config_file(
    parameter: str, value: str, config_file_path: PathLike
) -> bool:
    """Update an Nginx directive, or insert it before the file's closing line."""
    return upsert(
        parameter,
        value,
        config_file_path,
        EditMode.INSERT_BEFORE_LAST_LINE,
        NGINX_DIRECTIVE,
    )


def harden_apache2(config_file_path: PathLike) -> bool:
    changed = False
    for parameter, value in APACHE2_HARDENING:
        changed = update_apache2_config_file(parameter, value, config_file_path) or changed
    return changed


def harden_nginx(config_file_path: PathLike) -> bool:
    changed = False
    for parameter, value in NGINX_HARDENING:
        changed = upsert_nginx_config_file(parameter, value, config_file_path) or changed
    return changed
