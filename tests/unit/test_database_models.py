"""Unit tests for SQL connection models."""

import pytest
from pydantic import ValidationError

from az_keycloak.models.database import SqlConnectionInfo, build_jdbc_url


@pytest.fixture
def admin_connection():
    return SqlConnectionInfo(
        server_name="sql-demo-westeurope-1",
        username="sqladm",
        password="p@ss;word}",
    )


class TestSqlConnectionInfo:
    """Test cases for connection details."""

    def test_defaults(self, admin_connection):
        assert admin_connection.database == "master"
        assert admin_connection.port == 1433
        assert admin_connection.host == "sql-demo-westeurope-1.database.windows.net"

    def test_strips_domain_suffix(self):
        info = SqlConnectionInfo(
            server_name="sql-demo.database.windows.net", username="a", password="b"
        )

        assert info.server_name == "sql-demo"

    def test_empty_server_rejected(self):
        with pytest.raises(ValidationError):
            SqlConnectionInfo(server_name=".database.windows.net", username="a", password="b")

    def test_password_hidden_from_repr(self, admin_connection):
        assert "p@ss" not in repr(admin_connection)

    def test_for_database_keeps_credentials(self, admin_connection):
        keycloak = admin_connection.for_database("keycloak")

        assert keycloak.database == "keycloak"
        assert keycloak.username == "sqladm"
        assert admin_connection.database == "master"

    def test_odbc_connection_string(self, admin_connection):
        conn_str = admin_connection.to_odbc_connection_string(
            "ODBC Driver 18 for SQL Server"
        )

        assert conn_str.startswith("Driver={ODBC Driver 18 for SQL Server};")
        assert "Server=tcp:sql-demo-westeurope-1.database.windows.net,1433;" in conn_str
        assert "Database={master};" in conn_str
        assert "Uid={sqladm};" in conn_str
        # semicolons are protected by braces, closing braces are doubled
        assert "Pwd={p@ss;word}}};" in conn_str
        assert "Encrypt=yes;" in conn_str
        assert "TrustServerCertificate=yes;" in conn_str
        assert "HostNameInCertificate=*.database.windows.net;" in conn_str
        assert "Connection Timeout=30;" in conn_str


class TestBuildJdbcUrl:
    def test_jdbc_url(self):
        url = build_jdbc_url("sql-demo-westeurope-1", "keycloak")

        assert url == (
            "jdbc:sqlserver://sql-demo-westeurope-1.database.windows.net:1433;"
            "databaseName=keycloak;"
            "encrypt=true;"
            "trustServerCertificate=true;"
            "hostNameInCertificate=*.database.windows.net;"
            "loginTimeout=30;"
        )
