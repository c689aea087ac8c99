"""Resource group declaration."""

from pulumi_azure_native import resources

from ..models.stack_config import StackConfig
from ..observability.logging import DeploymentLogger

logger = DeploymentLogger(__name__)


def create_resource_group(config: StackConfig) -> resources.ResourceGroup:
    """
    Create the Azure resource group holding every other resource.

    Args:
        config: Stack configuration

    Returns:
        The resource group
    """
    resource_group = resources.ResourceGroup(
        "resource-group",
        resource_group_name=config.resource_group_name,
        location=config.location,
    )
    logger.log_resource_declared("resource-group", config.resource_group_name)
    return resource_group
