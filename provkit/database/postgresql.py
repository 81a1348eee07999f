"""PostgreSQL server administration through psql.

Connections go through a named service of a connection service file
(``~/.pg_service.conf`` by default), pointed to with PGSERVICEFILE. Values are
never spliced into SQL text: they are passed as psql variables (``-v``) and
referenced as ``:'name'`` (literal) or ``:"name"`` (identifier), with
``\\gexec`` for the conditional CREATE statements.
"""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Callable, Mapping, Optional, Union

from provkit.commands import run_command
from provkit.config import settings
from provkit.exceptions import ServiceUnavailableError
from provkit.logging import LoggerFactory
from provkit.polling import poll

from .options_file import delete_file, write_private_file


log = LoggerFactory.for_database()

PathLike = Union[str, Path]

DEFAULT_PORT = 5432
DEFAULT_MAXIMUM_WAIT_SECONDS = 15

CREATE_DATABASE_SQL = """\
SELECT format('CREATE DATABASE %I WITH ENCODING = %L', :'database', 'UTF8')
WHERE NOT EXISTS (SELECT FROM pg_database WHERE datname = :'database')\\gexec
"""

CREATE_USER_SQL = """\
SELECT format('CREATE USER %I WITH ENCRYPTED PASSWORD %L', :'username', :'password')
WHERE NOT EXISTS (SELECT FROM pg_catalog.pg_roles WHERE rolname = :'username')\\gexec
"""

SET_PASSWORD_SQL = """\
ALTER USER :"username" WITH ENCRYPTED PASSWORD :'password';
"""

GRANT_ALL_SQL = """\
GRANT ALL PRIVILEGES ON DATABASE :"database" TO :"username";
"""


def _service_file_path(file_path: Optional[PathLike]) -> Path:
    return Path(
        file_path or settings.get_setting("postgresql_service_file_path")
    ).expanduser()


def _service_name(service_name: Optional[str]) -> str:
    return service_name or settings.get_setting("postgresql_service_name")


def create_service_file(
    username: str,
    password: str,
    host: str,
    port: Union[int, str],
    database: str,
    file_path: Optional[PathLike] = None,
    service_name: Optional[str] = None,
) -> Path:
    """Write a connection service file with a single named service."""
    content = (
        f"[{_service_name(service_name)}]\n"
        f"host={host}\n"
        f"port={port}\n"
        f"user={username}\n"
        f"password={password}\n"
        f"dbname={database}\n"
        "sslmode=prefer\n"
    )
    return write_private_file(_service_file_path(file_path), content)


def delete_service_file(file_path: Optional[PathLike] = None) -> bool:
    return delete_file(_service_file_path(file_path))


def run_psql(
    sql: str,
    variables: Mapping[str, str],
    service_file: Optional[PathLike] = None,
    service_name: Optional[str] = None,
) -> str:
    """Feed a script to psql on stdin with the given psql variables."""
    command = [
        "psql",
        f"service={_service_name(service_name)}",
        "--no-psqlrc",
        "--quiet",
        "--set=ON_ERROR_STOP=1",
    ]
    for name, value in variables.items():
        command.extend(["-v", f"{name}={value}"])
    env = {**os.environ, "PGSERVICEFILE": str(_service_file_path(service_file))}
    result = run_command(
        command, input_text=sql, env=env, log_output=False, log_command=False
    )
    if result.stdout.strip():
        log.debug(result.stdout.strip())
    return result.stdout


def create_database_if_not_exists(database: str, service_file: Optional[PathLike] = None) -> None:
    log.info("Creating PostgreSQL database if not existing...")
    run_psql(CREATE_DATABASE_SQL, {"database": database}, service_file)


def create_user_if_not_exists(
    username: str, password: str, service_file: Optional[PathLike] = None
) -> None:
    log.info("Creating PostgreSQL database user if not existing...")
    run_psql(CREATE_USER_SQL, {"username": username, "password": password}, service_file)


def set_user_password(
    username: str, password: str, service_file: Optional[PathLike] = None
) -> None:
    log.info("Setting PostgreSQL user's password...")
    run_psql(SET_PASSWORD_SQL, {"username": username, "password": password}, service_file)


def grant_all_privileges(
    database: str, username: str, service_file: Optional[PathLike] = None
) -> None:
    log.info("Granting all privileges on PostgreSQL database objects to user...")
    run_psql(GRANT_ALL_SQL, {"database": database, "username": username}, service_file)


def create_database_and_credentials(
    server_fqdn: str,
    admin_username: str,
    admin_password: str,
    username: str,
    password: str,
    database: Optional[str] = None,
    service_file: Optional[PathLike] = None,
) -> None:
    """Create a database and its user, (re)setting the user's password.

    The database name defaults to the new user name. The admin service file is
    deleted once the statements ran.
    """
    database = database or username
    path = create_service_file(
        admin_username, admin_password, server_fqdn, DEFAULT_PORT, "postgres", service_file
    )
    try:
        create_database_if_not_exists(database, path)
        create_user_if_not_exists(username, password, path)
        set_user_password(username, password, path)
        grant_all_privileges(database, username, path)
    finally:
        delete_service_file(path)


def is_service_ready(host: str, port: int = DEFAULT_PORT) -> bool:
    result = run_command(
        ["pg_isready", f"--host={host}", f"--port={port}", "--quiet"],
        check=False,
        log_output=False,
    )
    return result.returncode == 0


def wait_for_database_service_availability(
    host: str,
    maximum_wait: int = DEFAULT_MAXIMUM_WAIT_SECONDS,
    port: int = DEFAULT_PORT,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Ping the database service once per second until it accepts connections.

    Raises:
        ServiceUnavailableError: If it is still not ready after maximum_wait seconds
    """
    log.info(
        f"Pinging database service {host}:{port} until readiness "
        f"for a maximum of {maximum_wait} seconds..."
    )
    ready = poll(
        lambda: is_service_ready(host, port),
        timeout=maximum_wait,
        interval=1,
        sleep=sleep,
        check_first=True,
        on_wait=lambda elapsed: log.info(
            f"Waiting for the database service to start ({elapsed} s)..."
        ),
    )
    if not ready:
        raise ServiceUnavailableError(f"{host}:{port}", maximum_wait)
    log.info("Database service is up and running.")
