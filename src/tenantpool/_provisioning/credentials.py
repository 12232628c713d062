from __future__ import annotations

import logging
import re
from uuid import uuid4

from tenantpool.connection_string import DEFAULT_SQL_PORT, ConnectionString
from tenantpool.errors import OrphanedLoginError
from tenantpool.models import TenantCredential
from tenantpool.ports.sql import SqlExecutorPort

logger = logging.getLogger(__name__)

LOGIN_PREFIX = "User_"
DATA_ROLES: tuple[str, ...] = ("db_datareader", "db_datawriter")
CONNECTION_TIMEOUT_SECONDS = 30

_SAFE_IDENTIFIER = re.compile(r"^[A-Za-z0-9_]+$")


def generate_login_name() -> str:
    return f"{LOGIN_PREFIX}{uuid4()}".replace("-", "_")


def generate_password() -> str:
    return str(uuid4()).replace("-", "_")


def _bracket(identifier: str) -> str:
    if not _SAFE_IDENTIFIER.match(identifier):
        raise ValueError(f"Unsafe SQL identifier: {identifier!r}")
    return f"[{identifier}]"


def create_login_statement(login_name: str, password: str) -> str:
    if not _SAFE_IDENTIFIER.match(password):
        raise ValueError("Generated password contains unsupported characters.")
    return f"CREATE LOGIN {_bracket(login_name)} WITH PASSWORD = '{password}';"


def create_user_statement(login_name: str) -> str:
    login = _bracket(login_name)
    lines = [f"CREATE USER {login} FOR LOGIN {login};"]
    lines.extend(f"ALTER ROLE {role} ADD MEMBER {login};" for role in DATA_ROLES)
    return "\n".join(lines)


def compose_tenant_connection_string(
    *,
    host: str,
    database_name: str,
    login_name: str,
    password: str,
) -> str:
    return (
        f"Server=tcp:{host},{DEFAULT_SQL_PORT};"
        f"Initial Catalog={database_name};"
        "Persist Security Info=False;"
        f"User ID={login_name};"
        f"Password={password};"
        "MultipleActiveResultSets=False;"
        "Encrypt=True;"
        "TrustServerCertificate=False;"
        f"Connection Timeout={CONNECTION_TIMEOUT_SECONDS};"
    )


async def issue_credential(
    sql: SqlExecutorPort,
    admin_connection_string: str,
    database_name: str,
) -> TenantCredential:
    admin = ConnectionString.parse(admin_connection_string)
    host = admin.host
    if host is None:
        raise ValueError("Administrative connection string does not name a server.")
    scoped = admin.with_catalog(database_name)

    login_name = generate_login_name()
    password = generate_password()

    await sql.execute(admin_connection_string, create_login_statement(login_name, password))
    try:
        await sql.execute(scoped.render(), create_user_statement(login_name))
    except Exception as exc:
        logger.error(
            "Login %s has no user on database %s and must be dropped manually",
            login_name,
            database_name,
        )
        raise OrphanedLoginError(login_name=login_name, database_name=database_name) from exc

    return TenantCredential(
        login_name=login_name,
        password=password,
        database_name=database_name,
        connection_string=compose_tenant_connection_string(
            host=host,
            database_name=database_name,
            login_name=login_name,
            password=password,
        ),
    )


__all__ = [
    "CONNECTION_TIMEOUT_SECONDS",
    "DATA_ROLES",
    "LOGIN_PREFIX",
    "compose_tenant_connection_string",
    "create_login_statement",
    "create_user_statement",
    "generate_login_name",
    "generate_password",
    "issue_credential",
]
