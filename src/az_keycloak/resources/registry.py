"""
Azure Container Registry declaration.

The registry is kept at the Basic SKU with every optional policy disabled; the
admin user is enabled because both the image push and the Container App pull
authenticate with its credentials.
"""

from dataclasses import dataclass

import pulumi
from pulumi_azure_native import containerregistry, resources

from ..constants import REGISTRY_RETENTION_DAYS
from ..models.stack_config import StackConfig
from ..observability.logging import DeploymentLogger

logger = DeploymentLogger(__name__)


@dataclass
class RegistryCredentials:
    """Admin credentials of a container registry."""

    username: pulumi.Output[str]
    password: pulumi.Output[str]


def create_container_registry(
    config: StackConfig, resource_group: resources.ResourceGroup
) -> containerregistry.Registry:
    """
    Create an Azure Container Registry.

    Args:
        config: Stack configuration
        resource_group: Resource group to place the registry in

    Returns:
        The registry
    """
    registry = containerregistry.Registry(
        f"registry-{config.name}",
        registry_name=resource_group.location.apply(config.registry_name),
        resource_group_name=resource_group.name,
        location=resource_group.location,
        admin_user_enabled=True,
        data_endpoint_enabled=False,
        encryption=containerregistry.EncryptionPropertyArgs(
            status=containerregistry.EncryptionStatus.DISABLED,
        ),
        network_rule_bypass_options=containerregistry.NetworkRuleBypassOptions.AZURE_SERVICES,
        policies=containerregistry.PoliciesArgs(
            export_policy=containerregistry.ExportPolicyArgs(
                status=containerregistry.ExportPolicyStatus.ENABLED,
            ),
            quarantine_policy=containerregistry.QuarantinePolicyArgs(
                status=containerregistry.PolicyStatus.DISABLED,
            ),
            retention_policy=containerregistry.RetentionPolicyArgs(
                days=REGISTRY_RETENTION_DAYS,
                status=containerregistry.PolicyStatus.DISABLED,
            ),
            trust_policy=containerregistry.TrustPolicyArgs(
                status=containerregistry.PolicyStatus.DISABLED,
                type=containerregistry.TrustPolicyType.NOTARY,
            ),
        ),
        sku=containerregistry.SkuArgs(name=containerregistry.SkuName.BASIC),
        # Basic SKU has no private endpoints
        public_network_access=containerregistry.PublicNetworkAccess.ENABLED,
        zone_redundancy=containerregistry.ZoneRedundancy.DISABLED,
    )
    logger.log_resource_declared("container-registry", f"registry-{config.name}")
    return registry


def get_registry_credentials(
    resource_group: resources.ResourceGroup,
    registry: containerregistry.Registry,
) -> RegistryCredentials:
    """
    Retrieve the admin credentials Azure generated for the registry.

    Args:
        resource_group: Resource group of the registry
        registry: The registry

    Returns:
        User name and first password (as a secret)
    """
    credentials = containerregistry.list_registry_credentials_output(
        resource_group_name=resource_group.name,
        registry_name=registry.name,
    )
    return RegistryCredentials(
        username=credentials.apply(lambda result: result.username),
        password=pulumi.Output.secret(
            credentials.apply(lambda result: result.passwords[0].value)
        ),
    )
