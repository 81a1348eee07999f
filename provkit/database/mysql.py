"""MySQL server administration through the mysql command line client.

Statements are passed to ``mysql --execute`` as a single argument (no shell),
and every identifier or literal they contain goes through quote_identifier or
quote_literal. Statements are prefixed with ``WARNINGS;`` so that the client
prints server warnings, which are relayed as WARN log entries.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from provkit.commands import run_command
from provkit.config import settings
from provkit.logging import LoggerFactory, action, warn_lines

from .options_file import delete_file, write_private_file


log = LoggerFactory.for_database()

PathLike = Union[str, Path]


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


# Backslash escaping requires NO_BACKSLASH_ESCAPES to be absent from sql_mode.
def quote_literal(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"


def quote_account(username: str, host: str = "%") -> str:
    return f"{quote_literal(username)}@{quote_literal(host)}"


def _option_value(value: str) -> str:
    return '"' + str(value).replace("\\", "\\\\").replace('"', '\\"') + '"'


def _credentials_path(file_path: Optional[PathLike]) -> Path:
    return Path(file_path or settings.get_setting("mysql_options_file_path")).expanduser()


def create_credentials_file(
    username: str,
    password: str,
    host: str,
    port: Union[int, str],
    database: str,
    file_path: Optional[PathLike] = None,
    qualify_user_with_host: bool = True,
) -> Path:
    """Write a ``[client]`` option file for the mysql client tools.

    Managed servers that expect ``user@server`` logins get the user name
    suffixed with the first label of the host name when
    qualify_user_with_host is set.
    """
    user = f"{username}@{host.split('.')[0]}" if qualify_user_with_host else username
    content = (
        "[client]\n"
        f"host={_option_value(host)}\n"
        f"port={_option_value(str(port))}\n"
        f"user={_option_value(user)}\n"
        f"password={_option_value(password)}\n"
        f"database={_option_value(database)}\n"
    )
    return write_private_file(_credentials_path(file_path), content)


def delete_credentials_file(file_path: Optional[PathLike] = None) -> bool:
    return delete_file(_credentials_path(file_path))


def execute(statement: str, credentials_file: Optional[PathLike] = None) -> str:
    """Run one or more SQL statements and return the client output."""
    command = [
        "mysql",
        f"--defaults-extra-file={_credentials_path(credentials_file)}",
        "--execute",
        f"WARNINGS; {statement}",
    ]
    result = run_command(command, log_command=False)
    output = "\n".join(part for part in (result.stdout, result.stderr) if part)
    warn_lines(log, output)
    return output


def create_database_if_not_exists(
    database: str, credentials_file: Optional[PathLike] = None
) -> None:
    action(log, f"Creating MySQL database if not existing: {database}...")
    execute(f"CREATE DATABASE IF NOT EXISTS {quote_identifier(database)};", credentials_file)


def create_user_if_not_exists(
    username: str,
    password: str,
    credentials_file: Optional[PathLike] = None,
    host: str = "%",
) -> None:
    action(log, f"Creating MySQL database user if not existing: {username}...")
    execute(
        f"CREATE USER IF NOT EXISTS {quote_account(username, host)} "
        f"IDENTIFIED BY {quote_literal(password)};",
        credentials_file,
    )


def grant_all_privileges(
    database: str,
    username: str,
    credentials_file: Optional[PathLike] = None,
    host: str = "%",
) -> None:
    action(
        log,
        f"Granting all privileges on MySQL '{database}' database objects to user '{username}'...",
    )
    execute(
        f"GRANT ALL PRIVILEGES ON {quote_identifier(database)}.* "
        f"TO {quote_account(username, host)}; FLUSH PRIVILEGES;",
        credentials_file,
    )


def create_database_and_credentials(
    server_host: str,
    server_port: Union[int, str],
    admin_username: str,
    admin_password: str,
    username: str,
    password: str,
    database: Optional[str] = None,
    credentials_file: Optional[PathLike] = None,
) -> None:
    """Create a database and a user owning all its privileges.

    The admin option file only lives for the duration of the call.
    """
    database = database or username
    path = create_credentials_file(
        admin_username, admin_password, server_host, server_port, "mysql", credentials_file
    )
    try:
        create_database_if_not_exists(database, path)
        create_user_if_not_exists(username, password, path)
        grant_all_privileges(database, username, path)
    finally:
        delete_credentials_file(path)
