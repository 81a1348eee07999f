"""Provisioning script entry points.

Each console script validates its parameters, runs one provisioning routine,
and maps the outcome to an exit status: 0 on success, 1 after any failure.
Failures are reported as ERROR log entries; helpers never exit on their own.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from provkit.backup.rotation import WEEKDAY_NAMES
from provkit.backup.runner import engine_names, run_backup
from provkit.config import settings
from provkit.config_files.webservers import (
    harden_apache2,
    harden_nginx,
    update_php_config_file,
)
from provkit.database import mysql, postgresql
from provkit.domain.models import ParameterSet, Tier
from provkit.exceptions import ParameterError, ProvisioningError
from provkit.logging import LoggerFactory, script_context, setup_logging
from provkit.params import parse_parameters
from provkit.storage.mount import mount_data_disk_by_size


log = LoggerFactory.for_system()

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


@dataclass(frozen=True)
class Script:
    name: str
    expected_keys: Tuple[str, ...]
    handler: Callable[[ParameterSet], None]


def _execute(script_name: str, body: Callable[[], None]) -> int:
    try:
        with script_context(script_name):
            body()
    except ParameterError:
        # Already reported, one entry per offending key plus the usage line.
        return EXIT_FAILURE
    except ProvisioningError as error:
        log.error(str(error))
        return EXIT_FAILURE
    except Exception as error:
        log.opt(exception=error).error(f"Unexpected failure: {error}")
        return EXIT_FAILURE
    return EXIT_SUCCESS


def run_script(script: Script, argv: Optional[Sequence[str]] = None) -> int:
    """Parse ``--key value`` parameters and run the script's handler."""
    argv = list(sys.argv[1:] if argv is None else argv)
    setup_logging(log_dir=settings.get_path("log_dir"))

    def body() -> None:
        parameters = parse_parameters(argv, script.expected_keys, script.name)
        script.handler(parameters)

    return _execute(script.name, body)


MOUNT_DATA_DISK = Script(
    name="provkit-mount-data-disk",
    expected_keys=("data_disk_size", "data_disk_mount_point_path"),
    handler=lambda p: mount_data_disk_by_size(
        p["data_disk_size"], p["data_disk_mount_point_path"]
    ),
)

HARDEN_APACHE2 = Script(
    name="provkit-harden-apache2",
    expected_keys=("config_file_path",),
    handler=lambda p: harden_apache2(p["config_file_path"]),
)

HARDEN_NGINX = Script(
    name="provkit-harden-nginx",
    expected_keys=("config_file_path",),
    handler=lambda p: harden_nginx(p["config_file_path"]),
)

UPDATE_PHP_CONFIG = Script(
    name="provkit-update-php-config",
    expected_keys=("config_file_path", "parameter", "value"),
    handler=lambda p: update_php_config_file(
        p["parameter"], p["value"], p["config_file_path"]
    ),
)

CREATE_MYSQL_DATABASE = Script(
    name="provkit-create-mysql-database",
    expected_keys=(
        "host",
        "port",
        "admin_username",
        "admin_password",
        "username",
        "password",
        "database",
    ),
    handler=lambda p: mysql.create_database_and_credentials(
        p["host"],
        p["port"],
        p["admin_username"],
        p["admin_password"],
        p["username"],
        p["password"],
        p["database"],
    ),
)


def _create_postgresql_database(p: ParameterSet) -> None:
    postgresql.wait_for_database_service_availability(p["host"])
    postgresql.create_database_and_credentials(
        p["host"],
        p["admin_username"],
        p["admin_password"],
        p["username"],
        p["password"],
        p["database"],
    )


CREATE_POSTGRESQL_DATABASE = Script(
    name="provkit-create-postgresql-database",
    expected_keys=(
        "host",
        "admin_username",
        "admin_password",
        "username",
        "password",
        "database",
    ),
    handler=_create_postgresql_database,
)


def mount_data_disk_main(argv=None) -> int:
    return run_script(MOUNT_DATA_DISK, argv)


def harden_apache2_main(argv=None) -> int:
    return run_script(HARDEN_APACHE2, argv)


def harden_nginx_main(argv=None) -> int:
    return run_script(HARDEN_NGINX, argv)


def update_php_config_main(argv=None) -> int:
    return run_script(UPDATE_PHP_CONFIG, argv)


def create_mysql_database_main(argv=None) -> int:
    return run_script(CREATE_MYSQL_DATABASE, argv)


def create_postgresql_database_main(argv=None) -> int:
    return run_script(CREATE_POSTGRESQL_DATABASE, argv)


# ==============================================================================
# Typed backup script
# ==============================================================================


class ScriptArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports errors through the log instead of exiting 2."""

    def error(self, message):
        log.error(message)
        usage = self.format_usage().strip()
        log.error(usage)
        raise ParameterError([], [], usage)


def int_in_range(low: int, high: int) -> Callable[[str], int]:
    def parse(text: str) -> int:
        try:
            value = int(text)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid integer: {text!r}")
        if not low <= value <= high:
            raise argparse.ArgumentTypeError(f"{value} is not between {low} and {high}")
        return value

    return parse


def build_backup_parser() -> ScriptArgumentParser:
    parser = ScriptArgumentParser(
        prog="provkit-backup",
        description="Dump a database into a daily/weekly/monthly rotation",
    )
    parser.add_argument("--engine", required=True, choices=engine_names())
    parser.add_argument("--resource-name", required=True, help="Server or resource name used as file prefix")
    parser.add_argument("--database", required=True)
    parser.add_argument("--backup-dir", required=True)
    parser.add_argument(
        "--credentials-file",
        required=True,
        help="mysql option file or PostgreSQL connection service file",
    )
    parser.add_argument("--monthly-day", type=int_in_range(1, 28), default=1)
    parser.add_argument(
        "--weekly-day",
        type=str.capitalize,
        choices=WEEKDAY_NAMES,
        default="Sunday",
    )
    parser.add_argument("--daily-retention", type=int_in_range(1, 31), default=7)
    parser.add_argument("--weekly-retention", type=int_in_range(1, 366), default=35)
    parser.add_argument("--monthly-retention", type=int_in_range(1, 3660), default=365)
    parser.add_argument("-d", "--debug", action="store_true", help="Enable verbose debug output")
    return parser


def backup_main(argv=None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    log_dir = settings.get_path("log_dir")
    setup_logging(log_dir=log_dir)
    parser = build_backup_parser()

    def body() -> None:
        args = parser.parse_args(argv)
        if args.debug:
            setup_logging(debug=True, log_dir=log_dir)
        run_backup(
            engine=args.engine,
            resource_name=args.resource_name,
            database=args.database,
            backup_dir=args.backup_dir,
            credentials_file=args.credentials_file,
            monthly_day=args.monthly_day,
            weekly_day_name=args.weekly_day,
            retention_days_by_tier={
                Tier.DAILY: args.daily_retention,
                Tier.WEEKLY: args.weekly_retention,
                Tier.MONTHLY: args.monthly_retention,
            },
        )

    return _execute(parser.prog, body)


if __name__ == "__main__":
    sys.exit(backup_main())
