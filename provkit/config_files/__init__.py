"""Configuration file reconciliation."""

from .editor import (
    APACHE_DIRECTIVE,
    DECLARATION,
    INI_ASSIGNMENT,
    NGINX_DIRECTIVE,
    EditMode,
    LineSyntax,
    enable_directive,
    find_config_line,
    upsert,
)


__all__ = [
    "APACHE_DIRECTIVE",
    "DECLARATION",
    "INI_ASSIGNMENT",
    "NGINX_DIRECTIVE",
    "EditMode",
    "LineSyntax",
    "enable_directive",
    "find_config_line",
    "upsert",
]
