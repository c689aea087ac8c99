"""
SQL login provisioning for Keycloak.

Azure SQL has no resource type for contained logins and users, so the
deployment program connects to the freshly created server itself and creates
them. Every step checks for existing principals first, which keeps repeated
``pulumi up`` runs safe.
"""

import time
from collections.abc import Callable
from contextlib import closing
from typing import Any

from ..constants import ERROR_SQL_LOGIN_SETUP, SQL_DB_OWNER_ROLE, SQL_MASTER_DATABASE
from ..errors import SqlProvisioningError
from ..models.database import SqlConnectionInfo
from ..observability.logging import DeploymentLogger

logger = DeploymentLogger(__name__)

LOGIN_EXISTS_QUERY = "SELECT 1 FROM [sys].[sql_logins] WHERE [name] = ?"
USER_EXISTS_QUERY = "SELECT 1 FROM [sys].[database_principals] WHERE [name] = ?"
ROLE_MEMBER_QUERY = (
    "SELECT 1 FROM [sys].[database_role_members] AS rm "
    "JOIN [sys].[database_principals] AS r ON rm.[role_principal_id] = r.[principal_id] "
    "JOIN [sys].[database_principals] AS m ON rm.[member_principal_id] = m.[principal_id] "
    "WHERE r.[name] = ? AND m.[name] = ?"
)


def quote_identifier(name: str) -> str:
    """Bracket-quote a T-SQL identifier."""
    return "[" + name.replace("]", "]]") + "]"


def quote_literal(value: str) -> str:
    """Quote a T-SQL unicode string literal."""
    return "N'" + value.replace("'", "''") + "'"


def create_login_statement(login: str, password: str) -> str:
    return f"CREATE LOGIN {quote_identifier(login)} WITH PASSWORD = {quote_literal(password)};"


def alter_login_password_statement(login: str, password: str) -> str:
    return f"ALTER LOGIN {quote_identifier(login)} WITH PASSWORD = {quote_literal(password)};"


def create_user_statement(login: str) -> str:
    ident = quote_identifier(login)
    return f"CREATE USER {ident} FROM LOGIN {ident};"


def add_role_member_statement(role: str, login: str) -> str:
    return f"ALTER ROLE {quote_identifier(role)} ADD MEMBER {quote_identifier(login)};"


class SqlLoginProvisioner:
    """Creates a SQL login and a database user mapped to it."""

    def __init__(
        self,
        odbc_driver: str,
        connect_timeout: int = 30,
        connect: Callable[..., Any] | None = None,
    ):
        """
        Initialize the provisioner.

        Args:
            odbc_driver: Name of the locally installed ODBC driver
            connect_timeout: Login timeout in seconds
            connect: DB-API ``connect`` callable; defaults to ``pyodbc.connect``
        """
        self.odbc_driver = odbc_driver
        self.connect_timeout = connect_timeout
        self._connect = connect

    def _open(self, info: SqlConnectionInfo):
        connect = self._connect
        if connect is None:
            import pyodbc

            connect = pyodbc.connect
        return connect(
            info.to_odbc_connection_string(self.odbc_driver), autocommit=True
        )

    @staticmethod
    def _exists(cursor, query: str, *params: str) -> bool:
        cursor.execute(query, *params)
        return cursor.fetchone() is not None

    def ensure_login(self, admin: SqlConnectionInfo, login: str, password: str) -> bool:
        """
        Create the login in ``master``, or reset its password if it exists.

        Args:
            admin: Admin connection details (any initial catalog)
            login: Login name
            password: Login password

        Returns:
            True if the login was created, False if it already existed
        """
        master = admin.for_database(SQL_MASTER_DATABASE)
        with closing(self._open(master)) as conn:
            cursor = conn.cursor()
            if self._exists(cursor, LOGIN_EXISTS_QUERY, login):
                cursor.execute(alter_login_password_statement(login, password))
                return False
            cursor.execute(create_login_statement(login, password))
            return True

    def ensure_database_user(
        self,
        admin: SqlConnectionInfo,
        database: str,
        login: str,
        role: str = SQL_DB_OWNER_ROLE,
    ) -> bool:
        """
        Create the database user for ``login`` and add it to ``role``.

        Returns:
            True if the user was created, False if it already existed
        """
        with closing(self._open(admin.for_database(database))) as conn:
            cursor = conn.cursor()
            created = False
            if not self._exists(cursor, USER_EXISTS_QUERY, login):
                cursor.execute(create_user_statement(login))
                created = True
            if not self._exists(cursor, ROLE_MEMBER_QUERY, role, login):
                cursor.execute(add_role_member_statement(role, login))
            return created

    def provision(
        self,
        server_name: str,
        database: str,
        admin_user: str,
        admin_password: str,
        login: str,
        password: str,
    ) -> bool:
        """
        Provision ``login`` with database ownership of ``database``.

        Args:
            server_name: Logical server name
            database: Database Keycloak uses
            admin_user: Server administrator login
            admin_password: Server administrator password
            login: Login to provision
            password: Password for the login

        Returns:
            True once login and user are in place

        Raises:
            SqlProvisioningError: If any statement fails
        """
        admin = SqlConnectionInfo(
            server_name=server_name,
            username=admin_user,
            password=admin_password,
            connect_timeout=self.connect_timeout,
        )

        operation = "create_login"
        current_db = SQL_MASTER_DATABASE
        start_time = time.time()
        try:
            self.ensure_login(admin, login, password)
            logger.log_sql_operation(
                operation=operation,
                server_name=admin.server_name,
                database=current_db,
                login=login,
                success=True,
                duration=time.time() - start_time,
            )

            operation = "create_user"
            current_db = database
            start_time = time.time()
            self.ensure_database_user(admin, database, login)
            logger.log_sql_operation(
                operation=operation,
                server_name=admin.server_name,
                database=current_db,
                login=login,
                success=True,
                duration=time.time() - start_time,
            )
        except Exception as e:
            logger.log_sql_operation(
                operation=operation,
                server_name=admin.server_name,
                database=current_db,
                login=login,
                success=False,
                duration=time.time() - start_time,
                error=str(e),
            )
            raise SqlProvisioningError(
                f"{ERROR_SQL_LOGIN_SETUP.format(login, admin.server_name)}: {e}",
                login=login,
                cause=e,
            ) from e

        return True
