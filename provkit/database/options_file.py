"""Owner-only client option files holding database credentials."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from provkit.logging import LoggerFactory, action


log = LoggerFactory.for_database()

PathLike = Union[str, Path]

PRIVATE_FILE_MODE = 0o600


def write_private_file(file_path: PathLike, content: str) -> Path:
    """Write a file readable and writable by its owner only.

    An existing file is overwritten with a WARN entry.
    """
    path = Path(file_path).expanduser()
    action(log, f"Creating options file: {path}...")
    if path.exists():
        log.warning("File already exists. Overwriting content.")
    path.parent.mkdir(parents=True, exist_ok=True)
    descriptor = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, PRIVATE_FILE_MODE)
    with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
        handle.write(content)
    os.chmod(path, PRIVATE_FILE_MODE)
    return path


def delete_file(file_path: PathLike) -> bool:
    path = Path(file_path).expanduser()
    action(log, f"Deleting options file: {path}...")
    if not path.is_file():
        log.warning("Options file not found.")
        return False
    path.unlink()
    return True
