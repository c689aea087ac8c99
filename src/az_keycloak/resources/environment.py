"""
Container Apps hosting environment.

A Log Analytics workspace collects the container logs; the managed
environment is the hosting boundary the Keycloak Container App runs in.
"""

import pulumi
from pulumi_azure_native import app, operationalinsights, resources

from ..constants import WORKSPACE_RETENTION_DAYS, WORKSPACE_SKU
from ..models.stack_config import StackConfig
from ..observability.logging import DeploymentLogger

logger = DeploymentLogger(__name__)


def create_log_analytics_workspace(
    config: StackConfig, resource_group: resources.ResourceGroup
) -> operationalinsights.Workspace:
    workspace = operationalinsights.Workspace(
        f"log-{config.name}",
        workspace_name=config.workspace_name,
        resource_group_name=resource_group.name,
        location=resource_group.location,
        sku=operationalinsights.WorkspaceSkuArgs(name=WORKSPACE_SKU),
        retention_in_days=WORKSPACE_RETENTION_DAYS,
        opts=pulumi.ResourceOptions(depends_on=[resource_group]),
    )
    logger.log_resource_declared("log-analytics-workspace", config.workspace_name)
    return workspace


def create_managed_environment(
    config: StackConfig,
    resource_group: resources.ResourceGroup,
    workspace: operationalinsights.Workspace,
) -> app.ManagedEnvironment:
    """
    Create the Container Apps environment, shipping logs to ``workspace``.

    Args:
        config: Stack configuration
        resource_group: Resource group to place the environment in
        workspace: Log Analytics workspace receiving the container logs

    Returns:
        The managed environment
    """
    shared_keys = operationalinsights.get_shared_keys_output(
        resource_group_name=resource_group.name,
        workspace_name=workspace.name,
    )

    environment = app.ManagedEnvironment(
        f"cae-{config.name}",
        environment_name=config.environment_name,
        resource_group_name=resource_group.name,
        location=resource_group.location,
        app_logs_configuration=app.AppLogsConfigurationArgs(
            destination="log-analytics",
            log_analytics_configuration=app.LogAnalyticsConfigurationArgs(
                customer_id=workspace.customer_id,
                shared_key=pulumi.Output.secret(
                    shared_keys.apply(lambda keys: keys.primary_shared_key)
                ),
            ),
        ),
        zone_redundant=False,
        opts=pulumi.ResourceOptions(depends_on=[workspace]),
    )
    logger.log_resource_declared("managed-environment", config.environment_name)
    return environment
