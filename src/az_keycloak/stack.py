"""
The Keycloak IAM stack.

``IamStack`` declares every resource of the deployment in dependency order:

1. Resource group
2. SQL server, firewall rules (including one for this machine) and database
3. Generated passwords and the Keycloak SQL login/user
4. Container registry, its credentials and the Keycloak image
5. Log Analytics workspace and Container Apps environment
6. The Keycloak Container App

Any failure is logged once and re-raised; the Pulumi engine aborts the update.
"""

import time
from collections.abc import Callable

import pulumi

from .constants import (
    KEYCLOAK_DATABASE_NAME,
    KEYCLOAK_MASTER_REALM,
    OUTPUT_CONTAINER_REGISTRY_PASSWORD,
    OUTPUT_CONTAINER_REGISTRY_USER,
    OUTPUT_KEYCLOAK_ADMIN_PASSWORD,
    OUTPUT_KEYCLOAK_DB_PASSWORD,
    OUTPUT_KEYCLOAK_ISSUER,
    OUTPUT_KEYCLOAK_URL,
    OUTPUT_RESOURCE_GROUP_NAME,
    OUTPUT_SQL_ADMIN_PASSWORD,
    OUTPUT_SQL_SERVER_NAME,
)
from .models.database import build_jdbc_url
from .models.stack_config import StackConfig
from .observability.logging import DeploymentLogger, setup_structured_logging
from .resources.container_app import create_keycloak_container_app
from .resources.environment import (
    create_log_analytics_workspace,
    create_managed_environment,
)
from .resources.image import (
    build_keycloak_image,
    image_reference_after,
    pinned_image_reference,
)
from .resources.passwords import generate_password
from .resources.registry import create_container_registry, get_registry_credentials
from .resources.resource_group import create_resource_group
from .resources.sql import create_sql_database, create_sql_server, provision_sql_login
from .settings import Settings
from .settings import settings as default_settings
from .utils.endpoints import keycloak_base_url, realm_issuer_url
from .utils.public_ip import get_public_ip
from .utils.sql_login import SqlLoginProvisioner

logger = DeploymentLogger(__name__)


class IamStack:
    """Keycloak on Azure Container Apps backed by Azure SQL."""

    def __init__(
        self,
        config: StackConfig | None = None,
        settings: Settings | None = None,
        public_ip_resolver: Callable[[], str] | None = None,
        sql_provisioner: SqlLoginProvisioner | None = None,
    ):
        """
        Declare the stack.

        Args:
            config: Stack configuration (read from Pulumi config if omitted)
            settings: Process settings (read from the environment if omitted)
            public_ip_resolver: Returns the deploying machine's public IP
            sql_provisioner: Creates the Keycloak SQL login and user

        Raises:
            DeploymentError: If configuration is invalid or a local step fails
        """
        self.settings = settings or default_settings
        self._resolve_public_ip = public_ip_resolver or self._default_public_ip
        self._sql_provisioner = sql_provisioner or SqlLoginProvisioner(
            odbc_driver=self.settings.sql_odbc_driver,
            connect_timeout=self.settings.sql_connect_timeout_seconds,
        )

        stack_name = pulumi.get_stack()
        start_time = time.time()
        try:
            self.config = config or StackConfig.from_pulumi_config()
            logger.log_deployment_start(stack_name, self.config.location)
            self._declare()
        except Exception as e:
            logger.log_deployment_error(stack_name, e, time.time() - start_time)
            raise

        logger.log_deployment_success(stack_name, time.time() - start_time)

    def _default_public_ip(self) -> str:
        return get_public_ip(
            service_url=self.settings.public_ip_service_url,
            path=self.settings.public_ip_path,
            timeout=self.settings.public_ip_timeout_seconds,
        )

    def _declare(self) -> None:
        config = self.config

        self.resource_group = create_resource_group(config)

        # SQL server, database and the Keycloak login
        self.sql_admin_password = generate_password("password-sql-admin")
        self.sql = create_sql_server(
            config,
            self.resource_group,
            admin_password=self.sql_admin_password,
            deployer_ip=self._resolve_public_ip(),
        )
        self.sql_database = create_sql_database(self.resource_group, self.sql.server)

        self.keycloak_db_password = generate_password("password-sql-kc")
        self.sql_login_ready = provision_sql_login(
            self._sql_provisioner,
            self.sql,
            self.sql_database,
            admin_user=config.sql_admin_user,
            admin_password=self.sql_admin_password,
            login=config.keycloak_db_user,
            password=self.keycloak_db_password,
            skip=self.settings.skip_sql_login_setup,
        )

        # Registry and image
        self.container_registry = create_container_registry(config, self.resource_group)
        credentials = get_registry_credentials(
            self.resource_group, self.container_registry
        )
        self.container_registry_user = credentials.username
        self.container_registry_password = credentials.password
        self.keycloak_image = build_keycloak_image(
            self.container_registry,
            credentials,
            version=config.keycloak_image_version,
            settings=self.settings,
        )

        # Hosting
        self.keycloak_admin_password = generate_password("password-keycloak-admin")
        self.workspace = create_log_analytics_workspace(config, self.resource_group)
        self.environment = create_managed_environment(
            config, self.resource_group, self.workspace
        )

        # The app must not start before its SQL login exists
        self.image_reference = image_reference_after(
            pinned_image_reference(self.keycloak_image), self.sql_login_ready
        )

        self.container_app = create_keycloak_container_app(
            config,
            self.resource_group,
            self.environment,
            image=self.image_reference,
            registry_server=self.container_registry.login_server,
            registry_credentials=credentials,
            db_url=self.sql.server.name.apply(
                lambda server_name: build_jdbc_url(server_name, KEYCLOAK_DATABASE_NAME)
            ),
            db_password=self.keycloak_db_password,
            admin_password=self.keycloak_admin_password,
            depends_on=[
                self.sql_database,
                self.sql.azure_services_rule,
                self.keycloak_image,
            ],
        )

        app_name = config.container_app_name
        self.keycloak_url = self.environment.default_domain.apply(
            lambda domain: keycloak_base_url(f"{app_name}.{domain}") if domain else None
        )
        self.keycloak_issuer = self.keycloak_url.apply(
            lambda url: realm_issuer_url(url, KEYCLOAK_MASTER_REALM) if url else None
        )

    def export_outputs(self) -> None:
        """Export the stack outputs; passwords stay Pulumi secrets."""
        pulumi.export(OUTPUT_SQL_ADMIN_PASSWORD, self.sql_admin_password)
        pulumi.export(OUTPUT_KEYCLOAK_DB_PASSWORD, self.keycloak_db_password)
        pulumi.export(OUTPUT_CONTAINER_REGISTRY_USER, self.container_registry_user)
        pulumi.export(
            OUTPUT_CONTAINER_REGISTRY_PASSWORD, self.container_registry_password
        )
        pulumi.export(OUTPUT_KEYCLOAK_ADMIN_PASSWORD, self.keycloak_admin_password)
        pulumi.export(OUTPUT_RESOURCE_GROUP_NAME, self.resource_group.name)
        pulumi.export(OUTPUT_SQL_SERVER_NAME, self.sql.server.name)
        pulumi.export(OUTPUT_KEYCLOAK_URL, self.keycloak_url)
        pulumi.export(OUTPUT_KEYCLOAK_ISSUER, self.keycloak_issuer)


def main() -> IamStack:
    """Program entry point used by ``__main__.py``."""
    setup_structured_logging(
        log_level=default_settings.log_level,
        enable_json_formatting=default_settings.json_logs,
        correlation_id_enabled=default_settings.correlation_ids,
    )
    stack = IamStack()
    stack.export_outputs()
    return stack
