"""
Keycloak Container App declaration.

Runs the pushed Keycloak image behind external Container Apps ingress, with
the database and admin passwords passed as Container App secrets.
"""

import pulumi
from pulumi_azure_native import app, resources

from ..constants import (
    KEYCLOAK_CONTAINER_NAME,
    KEYCLOAK_CPU,
    KEYCLOAK_HTTP_PORT,
    KEYCLOAK_MANAGEMENT_PORT,
    KEYCLOAK_MAX_REPLICAS,
    KEYCLOAK_MEMORY,
    KEYCLOAK_MIN_REPLICAS,
    SECRET_KEYCLOAK_ADMIN_PASSWORD,
    SECRET_KEYCLOAK_DB_PASSWORD,
    SECRET_REGISTRY_PASSWORD,
)
from ..models.stack_config import StackConfig
from ..observability.logging import DeploymentLogger
from .registry import RegistryCredentials

logger = DeploymentLogger(__name__)

KEYCLOAK_ARGS = [
    "start",
    "--optimized",
    "--http-enabled=true",
    "--proxy-headers=xforwarded",
]


def build_keycloak_env(
    db_url: pulumi.Input[str],
    db_user: str,
    admin_user: str,
) -> list[app.EnvironmentVarArgs]:
    """
    Build the Keycloak environment variables.

    Passwords are referenced from Container App secrets, never inlined.

    Args:
        db_url: JDBC URL of the Keycloak database
        db_user: SQL login Keycloak connects with
        admin_user: Bootstrap administrator user name

    Returns:
        Environment variables for the Keycloak container
    """
    return [
        # Database
        app.EnvironmentVarArgs(name="KC_DB", value="mssql"),
        app.EnvironmentVarArgs(name="KC_DB_URL", value=db_url),
        app.EnvironmentVarArgs(name="KC_DB_USERNAME", value=db_user),
        app.EnvironmentVarArgs(
            name="KC_DB_PASSWORD", secret_ref=SECRET_KEYCLOAK_DB_PASSWORD
        ),
        # Bootstrap admin, KC_BOOTSTRAP_ADMIN* for Keycloak >= 26
        app.EnvironmentVarArgs(name="KC_BOOTSTRAP_ADMIN_USERNAME", value=admin_user),
        app.EnvironmentVarArgs(
            name="KC_BOOTSTRAP_ADMIN_PASSWORD",
            secret_ref=SECRET_KEYCLOAK_ADMIN_PASSWORD,
        ),
        # KEYCLOAK_ADMIN* for older images
        app.EnvironmentVarArgs(name="KEYCLOAK_ADMIN", value=admin_user),
        app.EnvironmentVarArgs(
            name="KEYCLOAK_ADMIN_PASSWORD", secret_ref=SECRET_KEYCLOAK_ADMIN_PASSWORD
        ),
        # Features and proxying
        app.EnvironmentVarArgs(name="KC_HEALTH_ENABLED", value="true"),
        app.EnvironmentVarArgs(name="KC_METRICS_ENABLED", value="true"),
        app.EnvironmentVarArgs(name="KC_HOSTNAME_STRICT", value="false"),
        app.EnvironmentVarArgs(name="KC_PROXY_HEADERS", value="xforwarded"),
        app.EnvironmentVarArgs(name="KC_HTTP_ENABLED", value="true"),
    ]


def build_keycloak_probes() -> list[app.ContainerAppProbeArgs]:
    """Liveness and readiness probes on the management port."""
    return [
        app.ContainerAppProbeArgs(
            type="Liveness",
            http_get=app.ContainerAppProbeHttpGetArgs(
                path="/health/live",
                port=KEYCLOAK_MANAGEMENT_PORT,
            ),
            initial_delay_seconds=60,
            period_seconds=30,
            failure_threshold=3,
            timeout_seconds=5,
        ),
        app.ContainerAppProbeArgs(
            type="Readiness",
            http_get=app.ContainerAppProbeHttpGetArgs(
                path="/health/ready",
                port=KEYCLOAK_MANAGEMENT_PORT,
            ),
            initial_delay_seconds=30,
            period_seconds=10,
            failure_threshold=3,
            timeout_seconds=5,
        ),
    ]


def create_keycloak_container_app(
    config: StackConfig,
    resource_group: resources.ResourceGroup,
    environment: app.ManagedEnvironment,
    image: pulumi.Input[str],
    registry_server: pulumi.Input[str],
    registry_credentials: RegistryCredentials,
    db_url: pulumi.Input[str],
    db_password: pulumi.Input[str],
    admin_password: pulumi.Input[str],
    depends_on: list[pulumi.Resource] | None = None,
) -> app.ContainerApp:
    """
    Create the Container App running Keycloak.

    Args:
        config: Stack configuration
        resource_group: Resource group to place the app in
        environment: Managed environment hosting the app
        image: Image reference to run
        registry_server: Login server of the registry holding the image
        registry_credentials: Registry admin credentials
        db_url: JDBC URL of the Keycloak database
        db_password: Password of the Keycloak SQL login
        admin_password: Keycloak bootstrap admin password
        depends_on: Extra resources to wait for

    Returns:
        The Container App
    """
    container_app = app.ContainerApp(
        "container-app-keycloak",
        container_app_name=config.container_app_name,
        resource_group_name=resource_group.name,
        location=resource_group.location,
        managed_environment_id=environment.id,
        configuration=app.ConfigurationArgs(
            active_revisions_mode="Single",
            ingress=app.IngressArgs(
                external=True,
                target_port=KEYCLOAK_HTTP_PORT,
                transport="auto",
                allow_insecure=False,
                traffic=[app.TrafficWeightArgs(latest_revision=True, weight=100)],
            ),
            registries=[
                app.RegistryCredentialsArgs(
                    server=registry_server,
                    username=registry_credentials.username,
                    password_secret_ref=SECRET_REGISTRY_PASSWORD,
                )
            ],
            secrets=[
                app.SecretArgs(
                    name=SECRET_REGISTRY_PASSWORD,
                    value=registry_credentials.password,
                ),
                app.SecretArgs(name=SECRET_KEYCLOAK_DB_PASSWORD, value=db_password),
                app.SecretArgs(
                    name=SECRET_KEYCLOAK_ADMIN_PASSWORD, value=admin_password
                ),
            ],
        ),
        template=app.TemplateArgs(
            containers=[
                app.ContainerArgs(
                    name=KEYCLOAK_CONTAINER_NAME,
                    image=image,
                    args=KEYCLOAK_ARGS,
                    env=build_keycloak_env(
                        db_url=db_url,
                        db_user=config.keycloak_db_user,
                        admin_user=config.keycloak_admin_user,
                    ),
                    resources=app.ContainerResourcesArgs(
                        cpu=KEYCLOAK_CPU,
                        memory=KEYCLOAK_MEMORY,
                    ),
                    probes=build_keycloak_probes(),
                )
            ],
            scale=app.ScaleArgs(
                min_replicas=KEYCLOAK_MIN_REPLICAS,
                max_replicas=KEYCLOAK_MAX_REPLICAS,
            ),
        ),
        opts=pulumi.ResourceOptions(depends_on=[environment, *(depends_on or [])]),
    )
    logger.log_resource_declared("container-app", config.container_app_name)
    return container_app
