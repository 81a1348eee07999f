"""Idempotent single-line edits of configuration files.

A configuration parameter is located by a key pattern that depends on the
file's syntax (``key = value`` assignments, ``key value`` directives,
``key value;`` declarations). The number of matching lines decides the action:

    0 lines   UPDATE_ONLY              -> NoMatchingLineError
              APPEND_IF_MISSING        -> new line at end of file
              INSERT_AFTER_ANCHOR      -> new line after the first anchor match,
                                          InsertionPointNotFoundError without one
              INSERT_BEFORE_LAST_LINE  -> new line before the file's last line
    1 line    any mode                 -> line replaced in place
    2+ lines  any mode                 -> MultipleMatchingLinesError

Ambiguity is never resolved automatically and a failed edit never touches the
file. Lines that are not edited keep their exact bytes, line endings included.
There is no locking: callers must not edit the same file concurrently.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from provkit.domain.models import ConfigLine
from provkit.exceptions import (
    ConfigFileNotFoundError,
    InsertionPointNotFoundError,
    MultipleMatchingLinesError,
    NoMatchingLineError,
)
from provkit.logging import LoggerFactory, action


log = LoggerFactory.for_config()

PathLike = Union[str, Path]


class EditMode(Enum):
    UPDATE_ONLY = "update-only"
    APPEND_IF_MISSING = "append-if-missing"
    INSERT_AFTER_ANCHOR = "insert-after-anchor"
    INSERT_BEFORE_LAST_LINE = "insert-before-last-line"


@dataclass(frozen=True)
class LineSyntax:
    """How a parameter line is matched and rendered in one kind of file.

    ``pattern`` is a regular expression template where ``{key}`` stands for
    the escaped key. Optional named groups ``indent`` and ``sep`` capture the
    leading whitespace and the key/value separator of an existing line so
    that updates keep them.
    """

    name: str
    pattern: str
    separator: str
    terminator: str = ""
    inserted_indent: str = ""

    def compile(self, key: str) -> re.Pattern:
        return re.compile(self.pattern.replace("{key}", re.escape(key)))

    def render(self, key: str, value: str, match: Optional[re.Match] = None) -> str:
        if match is None:
            indent = self.inserted_indent
            separator = self.separator
        else:
            groups = match.groupdict()
            indent = groups.get("indent") or ""
            separator = groups.get("sep") or self.separator
        return f"{indent}{key}{separator}{value}{self.terminator}"


# PHP ini style: "key = value", key at column 0.
INI_ASSIGNMENT = LineSyntax(
    name="ini",
    pattern=r"^{key}[ \t]*=.*$",
    separator=" = ",
)

# Apache2 style: "key value", enabled directive with any indentation.
APACHE_DIRECTIVE = LineSyntax(
    name="apache2",
    pattern=r"^(?P<indent>[ \t]*){key}[ \t].*$",
    separator=" ",
)

# Nginx style: "key value;", new directives indented inside the closing block.
NGINX_DIRECTIVE = LineSyntax(
    name="nginx",
    pattern=r"^(?P<indent>[ \t]*){key}(?![\w-])(?P<sep>[ \t]*).*$",
    separator=" ",
    terminator=";",
    inserted_indent="    ",
)

# apt.conf style: 'Name::Option "value";', key at column 0.
DECLARATION = LineSyntax(
    name="declaration",
    pattern=r"^{key}(?![\w:-]).*$",
    separator=" ",
    terminator=";",
)


def _read_lines(path: Path) -> List[str]:
    if not path.is_file():
        raise ConfigFileNotFoundError(path)
    with open(path, encoding="utf-8", newline="") as handle:
        return handle.readlines()


def _write_lines(path: Path, lines: List[str]) -> None:
    with open(path, "w", encoding="utf-8", newline="") as handle:
        handle.write("".join(lines))


def _line_ending(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    if line.endswith("\n"):
        return "\n"
    return ""


def _strip_ending(line: str) -> str:
    return line.rstrip("\r\n")


def _default_ending(lines: List[str]) -> str:
    for line in lines:
        ending = _line_ending(line)
        if ending:
            return ending
    return "\n"


def _scan(key: str, lines: List[str], pattern: re.Pattern) -> ConfigLine:
    match_count = 0
    first_index = -1
    for index, line in enumerate(lines):
        if pattern.match(_strip_ending(line)):
            match_count += 1
            if first_index < 0:
                first_index = index
    if first_index < 0:
        return ConfigLine(key=key, match_count=0)
    return ConfigLine(
        key=key,
        match_count=match_count,
        raw_line=lines[first_index],
        line_index=first_index,
    )


def find_config_line(
    key: str, file_path: PathLike, syntax: LineSyntax = INI_ASSIGNMENT
) -> ConfigLine:
    """Count the lines of a file matching a key in the given syntax."""
    path = Path(file_path)
    lines = _read_lines(path)
    return _scan(key, lines, syntax.compile(key))


def _terminate_last_line(lines: List[str], ending: str) -> None:
    if lines and not _line_ending(lines[-1]):
        lines[-1] = lines[-1] + ending


def upsert(
    key: str,
    value: str,
    file_path: PathLike,
    mode: EditMode = EditMode.UPDATE_ONLY,
    syntax: LineSyntax = INI_ASSIGNMENT,
    anchor: Optional[str] = None,
) -> bool:
    """Converge one parameter line of a configuration file.

    Args:
        key: Parameter name, matched literally
        value: Value to set, rendered verbatim
        file_path: Configuration file to edit in place
        mode: Action taken when no line matches
        syntax: Line grammar of the file
        anchor: Regular expression locating the insertion point, required by
            INSERT_AFTER_ANCHOR

    Returns:
        True when the file content changed

    Raises:
        ConfigFileNotFoundError: If the file does not exist
        NoMatchingLineError: If no line matches in UPDATE_ONLY mode
        MultipleMatchingLinesError: If more than one line matches
        InsertionPointNotFoundError: If the anchor (or a last line) is missing
    """
    if mode is EditMode.INSERT_AFTER_ANCHOR and not anchor:
        raise ValueError("INSERT_AFTER_ANCHOR requires an anchor pattern")

    path = Path(file_path)
    action(log, f"Setting \"{key}\" to \"{value}\" in {path}...")

    lines = _read_lines(path)
    pattern = syntax.compile(key)
    config_line = _scan(key, lines, pattern)
    ending = _default_ending(lines)

    if config_line.match_count > 1:
        raise MultipleMatchingLinesError(key, path, config_line.match_count)

    updated = list(lines)
    if config_line.is_unique:
        log.info("One line matched the search criteria.")
        match = pattern.match(_strip_ending(config_line.raw_line))
        updated[config_line.line_index] = (
            syntax.render(key, value, match) + _line_ending(config_line.raw_line)
        )
    elif mode is EditMode.UPDATE_ONLY:
        raise NoMatchingLineError(key, path)
    elif mode is EditMode.APPEND_IF_MISSING:
        log.info("Parameter not found. Appending it at the end of the file...")
        _terminate_last_line(updated, ending)
        updated.append(syntax.render(key, value) + ending)
    elif mode is EditMode.INSERT_AFTER_ANCHOR:
        anchor_pattern = re.compile(anchor)
        anchor_index = next(
            (
                index
                for index, line in enumerate(updated)
                if anchor_pattern.search(_strip_ending(line))
            ),
            None,
        )
        if anchor_index is None:
            raise InsertionPointNotFoundError(anchor, path)
        log.info(f"Parameter not found. Inserting it after line {anchor_index + 1}...")
        if not _line_ending(updated[anchor_index]):
            updated[anchor_index] += ending
        updated.insert(anchor_index + 1, syntax.render(key, value) + ending)
    else:
        if not updated:
            raise InsertionPointNotFoundError("last line", path)
        log.info("Parameter not found. Inserting it before the last line...")
        updated.insert(len(updated) - 1, syntax.render(key, value) + ending)

    if updated == lines:
        log.info("Skipped: already set up.")
        return False
    _write_lines(path, updated)
    return True


def enable_directive(
    key: str,
    file_path: PathLike,
    comment_prefix: str = "#",
) -> bool:
    """Uncomment the single commented-out line starting with a directive.

    An already enabled directive (exactly one enabled line) is left alone,
    even when commented copies of it remain in the file.

    Returns:
        True when the file content changed

    Raises:
        NoMatchingLineError: If the directive is neither commented nor enabled
        MultipleMatchingLinesError: If several commented or enabled lines match
    """
    path = Path(file_path)
    action(log, f"Enabling \"{key}\" in {path}...")

    lines = _read_lines(path)
    escaped_key = re.escape(key)
    enabled = _scan(key, lines, re.compile(rf"^[ \t]*{escaped_key}(?![\w-]).*$"))
    if enabled.is_unique:
        log.info("Skipped: directive already enabled.")
        return False
    if enabled.match_count > 1:
        raise MultipleMatchingLinesError(key, path, enabled.match_count)

    commented = re.compile(
        rf"^(?P<indent>[ \t]*)(?:{re.escape(comment_prefix)})+[ \t]*"
        rf"(?P<body>{escaped_key}(?![\w-]).*)$"
    )
    config_line = _scan(key, lines, commented)
    if config_line.match_count > 1:
        raise MultipleMatchingLinesError(key, path, config_line.match_count)
    if config_line.match_count == 0:
        raise NoMatchingLineError(key, path)

    match = commented.match(_strip_ending(config_line.raw_line))
    updated = list(lines)
    updated[config_line.line_index] = (
        match.group("indent") + match.group("body") + _line_ending(config_line.raw_line)
    )
    log.info("One line matched the search criteria.")
    _write_lines(path, updated)
    return True
