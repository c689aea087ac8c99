"""Centralized process settings using pydantic-settings.

Stack-level choices (names, region, users) live in Pulumi config and are
modelled by :class:`az_keycloak.models.stack_config.StackConfig`. This module
covers everything that depends on the machine running ``pulumi up``: logging,
the public IP lookup service, the local ODBC driver and the image build
context. Values are loaded from environment variables or a ``.env`` file.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Deployment process configuration loaded from environment variables.

    All settings have defaults that work from the repository root. Override via
    environment variables as documented per field.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=False,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Tag every log line with the deployment run id",
    )

    # Public IP lookup (firewall rule for the deploying machine)
    public_ip_service_url: str = Field(
        default="https://ipinfo.io",
        validation_alias="PUBLIC_IP_SERVICE_URL",
        description="Base URL of the service returning the caller's public IP",
    )
    public_ip_path: str = Field(
        default="ip",
        validation_alias="PUBLIC_IP_PATH",
        description="Relative path on the lookup service returning the bare IP",
    )
    public_ip_timeout_seconds: float = Field(
        default=10.0,
        validation_alias="PUBLIC_IP_TIMEOUT_SECONDS",
        description="Timeout for the public IP lookup request",
        gt=0,
    )

    # SQL login provisioning
    sql_odbc_driver: str = Field(
        default="ODBC Driver 18 for SQL Server",
        validation_alias="SQL_ODBC_DRIVER",
        description="Locally installed ODBC driver used to reach Azure SQL",
    )
    sql_connect_timeout_seconds: int = Field(
        default=30,
        validation_alias="SQL_CONNECT_TIMEOUT_SECONDS",
        description="Connection timeout for the SQL login provisioning step",
        gt=0,
    )
    skip_sql_login_setup: bool = Field(
        default=False,
        validation_alias="SKIP_SQL_LOGIN_SETUP",
        description="Skip creating the Keycloak SQL login and user",
    )

    # Keycloak image build
    keycloak_build_context: str = Field(
        default=".",
        validation_alias="KEYCLOAK_BUILD_CONTEXT",
        description="Docker build context for the Keycloak image",
    )
    keycloak_dockerfile: str = Field(
        default="containers/keycloak/Dockerfile",
        validation_alias="KEYCLOAK_DOCKERFILE",
        description="Dockerfile used to build the Keycloak image",
    )
    keycloak_image_platform: str = Field(
        default="linux/amd64",
        validation_alias="KEYCLOAK_IMAGE_PLATFORM",
        description="Target platform of the Keycloak image",
    )

    @property
    def public_ip_url(self) -> str:
        """Full URL of the public IP lookup endpoint."""
        return f"{self.public_ip_service_url.rstrip('/')}/{self.public_ip_path.lstrip('/')}"


# Global settings instance - initialized once at module import
settings = Settings()
