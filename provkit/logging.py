from __future__ import annotations

import os
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, TextIO

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger

ENV_LOG_DIR = "PROVKIT_LOG_DIR"

# Custom severities sit between INFO (20) and WARNING (30) so they reach stdout.
ACTION_LEVEL = "ACTION"
ACTION_LEVEL_NO = 22
TITLE_LEVEL = "TITLE"
TITLE_LEVEL_NO = 23

TITLE_RULE = "#" * 79
CONSOLE_TIME_FORMAT = "{time:YYYY-MM-DD HH:mm:ss (zz)}"

LEVEL_LABELS = {
    "WARNING": "WARN",
    "CRITICAL": "ERROR",
    "SUCCESS": "INFO",
}


def _register_levels() -> None:
    for name, number in ((ACTION_LEVEL, ACTION_LEVEL_NO), (TITLE_LEVEL, TITLE_LEVEL_NO)):
        try:
            logger.level(name)
        except ValueError:
            logger.level(name, no=number)


_register_levels()


def format_console_record(record) -> str:
    """Build the console template for one record.

    ACTION entries are preceded by a blank line, TITLE entries are framed by
    two rules of '#' characters, everything else is a single line of the form
    ``<timestamp> | <LEVEL> - <message>``.
    """
    level = record["level"].name
    if level == TITLE_LEVEL:
        return "\n" + TITLE_RULE + "\n{message}\n" + TITLE_RULE + "\n"
    label = LEVEL_LABELS.get(level, level)
    prefix = "\n" if level == ACTION_LEVEL else ""
    return prefix + CONSOLE_TIME_FORMAT + f" | {label: <6} - " + "{message}\n{exception}"


def _is_standard_stream_record(record) -> bool:
    return record["level"].no < logger.level("WARNING").no


def _is_error_stream_record(record) -> bool:
    return record["level"].no >= logger.level("WARNING").no


def setup_logging(
    *,
    debug: bool = False,
    log_dir: Path | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> Logger:
    """
    Setup console logging and the optional persistent log file.

    Sinks:
    - stdout: DEBUG/INFO/ACTION/TITLE entries (DEBUG only when debug=True)
    - stderr: WARN and ERROR entries
    - provisioning.log: every INFO+ entry, rotated at 5 MB and kept 7 days,
      written only when a log directory is given or PROVKIT_LOG_DIR is set

    Args:
        debug: Enable DEBUG level console output
        log_dir: Directory for provisioning.log
        stdout: Stream for normal entries (defaults to sys.stdout)
        stderr: Stream for warnings and errors (defaults to sys.stderr)
    """
    logger.remove()
    logger.configure(extra={"source": "provkit", "tags": []})

    console_level = "DEBUG" if debug else "INFO"

    logger.add(
        stdout or sys.stdout,
        level=console_level,
        colorize=False,
        backtrace=False,
        diagnose=False,
        filter=_is_standard_stream_record,
        format=format_console_record,
    )
    logger.add(
        stderr or sys.stderr,
        level="WARNING",
        colorize=False,
        backtrace=False,
        diagnose=False,
        filter=_is_error_stream_record,
        format=format_console_record,
    )

    if log_dir is None and os.environ.get(ENV_LOG_DIR):
        log_dir = Path(os.environ[ENV_LOG_DIR])
    if log_dir is not None:
        log_dir = Path(log_dir).expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "provisioning.log",
            level="INFO",
            rotation="5 MB",
            retention="7 days",
            compression="zip",
            backtrace=False,
            diagnose=False,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{extra[source]: <12} | "
                "{message}"
            ),
        )

    return logger


def get_logger(
    *,
    tags: Iterable[str] | None = None,
    source: str | None = None,
) -> Logger:
    """
    Get a logger with bound context.

    Args:
        tags: Tags for filtering (e.g., ["config", "apache2"])
        source: Source component (e.g., "storage", "backup")

    Returns:
        Logger with bound context
    """
    extras: dict[str, object] = {}
    if tags is not None:
        extras["tags"] = list(tags)
    if source is not None:
        extras["source"] = source
    return logger.bind(**extras)


def action(log: Logger, message: str) -> None:
    """Log the start of a provisioning step."""
    log.log(ACTION_LEVEL, message)


def title(log: Logger, message: str) -> None:
    """Log a section banner."""
    log.log(TITLE_LEVEL, message)


def warn_lines(log: Logger, text: str | None) -> None:
    """Log a multi-line text as one WARN entry per non-empty line."""
    if not text:
        return
    for line in text.splitlines():
        line = line.strip()
        if line:
            log.warning(line)


@contextmanager
def script_context(script_name: str):
    """
    Context manager wrapping one provisioning script run.

    Logs a title banner on entry and the outcome with its duration on exit.

    Yields:
        Logger bound to the script name
    """
    log = logger.bind(source="script", tags=["script"], script=script_name)
    title(log, script_name)
    start_time = time.time()
    try:
        yield log
    except Exception:
        duration = time.time() - start_time
        log.debug(f"{script_name} failed after {duration:.2f} s")
        raise
    duration = time.time() - start_time
    log.info(f"{script_name} completed in {duration:.2f} s")


class LoggerFactory:
    """
    Factory for creating domain-specific loggers with automatic context.
    """

    @staticmethod
    def for_config() -> Logger:
        """Logger for configuration file edits."""
        return logger.bind(source="config", tags=["config"])

    @staticmethod
    def for_storage() -> Logger:
        """Logger for block device and mount operations."""
        return logger.bind(source="storage", tags=["storage", "disk"])

    @staticmethod
    def for_backup() -> Logger:
        """Logger for database dumps and retention sweeps."""
        return logger.bind(source="backup", tags=["backup"])

    @staticmethod
    def for_database() -> Logger:
        """Logger for database server administration."""
        return logger.bind(source="database", tags=["database"])

    @staticmethod
    def for_system() -> Logger:
        """Logger for system operations (parameters, commands, hosts file)."""
        return logger.bind(source="system", tags=["system"])
