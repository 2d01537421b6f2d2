"""
MySQL credential issuance — one database plus one user per install.

A credential is created with ``create()`` and compensated with
``rollback()``. Rollback drops only the pieces this handle actually
created, so a half-finished ``create()`` can be undone safely.
"""

from __future__ import annotations

import logging
import re
import secrets
from typing import Callable, Protocol

from bedrock_webapp.adapters.base import ToolAdapter
from bedrock_webapp.adapters.shell.command import CommandRunner, CommandTemplate
from bedrock_webapp.core.models.command import CommandResult
from bedrock_webapp.core.services.passwords import generate_password

logger = logging.getLogger(__name__)

EXECUTE = CommandTemplate("-e", "{sql}")

# MySQL identifier limits
MAX_DATABASE_NAME = 64
MAX_USER_NAME = 32

_IDENT_SAFE = re.compile(r"^[A-Za-z0-9_]+$")
_NON_IDENT = re.compile(r"[^A-Za-z0-9]")


def db_ident(text: str) -> str:
    """Fold arbitrary text into a MySQL-safe identifier fragment."""
    return _NON_IDENT.sub("_", text).strip("_").lower()


def _quote_literal(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


class CredentialHandle(Protocol):
    """Database credential owned by one install attempt."""

    database: str
    user: str
    password: str
    host: str
    error: str

    def create(self) -> bool: ...

    def rollback(self) -> bool: ...


class MysqlClient(ToolAdapter):
    """Execute single SQL statements with the ``mysql`` client."""

    @property
    def name(self) -> str:
        return "mysql"

    def execute(self, sql: str) -> CommandResult:
        return self.run(EXECUTE, {"sql": sql})


class MysqlCredential:
    """A database and a user granted all privileges on it."""

    def __init__(
        self,
        client: MysqlClient,
        database: str,
        user: str,
        password: str,
        host: str = "localhost",
    ):
        for ident in (database, user):
            if not _IDENT_SAFE.match(ident):
                raise ValueError(f"Unsafe MySQL identifier: {ident!r}")
        if len(database) > MAX_DATABASE_NAME:
            raise ValueError(f"Database name too long: {database!r}")
        if len(user) > MAX_USER_NAME:
            raise ValueError(f"Database user name too long: {user!r}")

        self._client = client
        self.database = database
        self.user = user
        self.password = password
        self.host = host
        self.error = ""
        self._created_db = False
        self._created_user = False

    @property
    def _account(self) -> str:
        return f"{_quote_literal(self.user)}@{_quote_literal(self.host)}"

    def _execute(self, sql: str) -> bool:
        result = self._client.execute(sql)
        if result.failed:
            self.error = result.message
            return False
        return True

    def create(self) -> bool:
        """Create the database, the user and the grant."""
        self.error = ""
        if not self._execute(f"CREATE DATABASE `{self.database}`"):
            return False
        self._created_db = True

        if not self._execute(
            f"CREATE USER {self._account} IDENTIFIED BY {_quote_literal(self.password)}"
        ):
            return False
        self._created_user = True

        if not self._execute(f"GRANT ALL PRIVILEGES ON `{self.database}`.* TO {self._account}"):
            return False

        logger.info("Created database %s for %s@%s", self.database, self.user, self.host)
        return True

    def rollback(self) -> bool:
        """Drop whatever ``create()`` managed to create."""
        ok = True
        if self._created_user:
            if self._execute(f"DROP USER IF EXISTS {self._account}"):
                self._created_user = False
            else:
                ok = False
        if self._created_db:
            if self._execute(f"DROP DATABASE IF EXISTS `{self.database}`"):
                self._created_db = False
            else:
                ok = False
        if ok:
            logger.warning("Rolled back database credential %s", self.database)
        else:
            logger.error("Rollback of database credential %s incomplete: %s", self.database, self.error)
        return ok

    def __repr__(self) -> str:
        return f"<MysqlCredential db={self.database!r} user={self.user!r}>"


class MysqlCredentialFactory:
    """Build per-hostname credentials with account-prefixed names.

    Names look like ``<prefix><hostname>_<suffix>``; the random suffix
    keeps reinstalls of the same hostname from colliding.
    """

    def __init__(
        self,
        runner: CommandRunner,
        binary: str = "mysql",
        host: str = "localhost",
        prefix: str = "",
        password_factory: Callable[[], str] = generate_password,
    ):
        self._client = MysqlClient(runner, binary)
        self._host = host
        self._prefix = db_ident(prefix) + "_" if db_ident(prefix) else ""
        self._password_factory = password_factory

    def _name(self, hostname: str, limit: int) -> str:
        suffix = secrets.token_hex(3)
        room = limit - len(self._prefix) - len(suffix) - 1
        base = db_ident(hostname)[:max(room, 1)].rstrip("_") or "wp"
        return f"{self._prefix}{base}_{suffix}"

    def for_hostname(self, hostname: str) -> MysqlCredential:
        return MysqlCredential(
            self._client,
            database=self._name(hostname, MAX_DATABASE_NAME),
            user=self._name(hostname, MAX_USER_NAME),
            password=self._password_factory(),
            host=self._host,
        )
