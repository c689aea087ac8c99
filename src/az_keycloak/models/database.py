"""
Pydantic model for Azure SQL connection details.

The same connection details are rendered two ways: as an ODBC connection
string for the login provisioning step run by this program, and as a JDBC URL
for Keycloak itself.
"""

from pydantic import BaseModel, Field, field_validator

from ..constants import (
    SQL_HOST_NAME_IN_CERTIFICATE,
    SQL_HOST_SUFFIX,
    SQL_MASTER_DATABASE,
    SQL_PORT,
)


def _odbc_value(value: str) -> str:
    """Brace-quote an ODBC attribute value, escaping closing braces."""
    return "{" + value.replace("}", "}}") + "}"


class SqlConnectionInfo(BaseModel):
    """Connection details for an Azure SQL logical server."""

    model_config = {"populate_by_name": True}

    server_name: str = Field(..., description="Logical server name (without domain)")
    database: str = Field(SQL_MASTER_DATABASE, description="Initial catalog")
    username: str = Field(..., description="SQL login")
    password: str = Field(..., repr=False, description="SQL login password")
    port: int = Field(SQL_PORT, ge=1, le=65535, description="Server port")
    encrypt: bool = Field(True, description="Encrypt the connection")
    trust_server_certificate: bool = Field(
        True, description="Skip certificate chain validation"
    )
    host_name_in_certificate: str = Field(
        SQL_HOST_NAME_IN_CERTIFICATE,
        description="Expected host name in the server certificate",
    )
    connect_timeout: int = Field(30, gt=0, description="Login timeout in seconds")

    @field_validator("server_name")
    @classmethod
    def strip_domain(cls, v):
        # Accept both "sql-demo" and "sql-demo.database.windows.net"
        if v.endswith(SQL_HOST_SUFFIX):
            v = v[: -len(SQL_HOST_SUFFIX)]
        if not v:
            raise ValueError("Server name cannot be empty")
        return v

    @property
    def host(self) -> str:
        return f"{self.server_name}{SQL_HOST_SUFFIX}"

    def for_database(self, database: str) -> "SqlConnectionInfo":
        """Same server and credentials, different initial catalog."""
        return self.model_copy(update={"database": database})

    def to_odbc_connection_string(self, driver: str) -> str:
        """
        Generate an ODBC connection string.

        Args:
            driver: Name of the installed ODBC driver

        Returns:
            Connection string accepted by ``pyodbc.connect``
        """
        parts = {
            "Driver": _odbc_value(driver),
            "Server": f"tcp:{self.host},{self.port}",
            "Database": _odbc_value(self.database),
            "Uid": _odbc_value(self.username),
            "Pwd": _odbc_value(self.password),
            "Encrypt": "yes" if self.encrypt else "no",
            "TrustServerCertificate": "yes" if self.trust_server_certificate else "no",
            "HostNameInCertificate": self.host_name_in_certificate,
            "Connection Timeout": str(self.connect_timeout),
        }
        return ";".join(f"{key}={value}" for key, value in parts.items()) + ";"


def build_jdbc_url(
    server_name: str,
    database: str,
    port: int = SQL_PORT,
    login_timeout: int = 30,
) -> str:
    """
    Generate the JDBC URL Keycloak uses to reach Azure SQL.

    Args:
        server_name: Logical server name (without domain)
        database: Database name
        port: Server port
        login_timeout: Login timeout in seconds

    Returns:
        ``jdbc:sqlserver://`` URL
    """
    return (
        f"jdbc:sqlserver://{server_name}{SQL_HOST_SUFFIX}:{port};"
        f"databaseName={database};"
        "encrypt=true;"
        "trustServerCertificate=true;"
        f"hostNameInCertificate={SQL_HOST_NAME_IN_CERTIFICATE};"
        f"loginTimeout={login_timeout};"
    )
