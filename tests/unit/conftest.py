"""Shared pytest fixtures and Pulumi mocks for unit tests."""

import pulumi
import pytest

from az_keycloak.models.stack_config import StackConfig
from az_keycloak.settings import Settings

# Logical name property per resource type, reported back as the "name" output
NAME_INPUTS = {
    "azure-native:resources:ResourceGroup": "resourceGroupName",
    "azure-native:sql:Server": "serverName",
    "azure-native:sql:Database": "databaseName",
    "azure-native:sql:FirewallRule": "firewallRuleName",
    "azure-native:containerregistry:Registry": "registryName",
    "azure-native:operationalinsights:Workspace": "workspaceName",
    "azure-native:app:ManagedEnvironment": "environmentName",
    "azure-native:app:ContainerApp": "containerAppName",
}

REGISTRY_USER = "crdemowesteurope1"
REGISTRY_PASSWORD = "registry-secret"
ENVIRONMENT_DOMAIN = "blue-sky-1234.westeurope.azurecontainerapps.io"


class AzureMocks(pulumi.runtime.Mocks):
    """Echo inputs back as outputs and fill in provider-computed values."""

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        outputs = dict(args.inputs)

        name_key = NAME_INPUTS.get(args.typ)
        if name_key and name_key in args.inputs:
            outputs["name"] = args.inputs[name_key]

        if args.typ == "random:index/randomPassword:RandomPassword":
            outputs["result"] = f"{args.name}-secret"
        elif args.typ == "azure-native:containerregistry:Registry":
            outputs["loginServer"] = f"{args.inputs['registryName']}.azurecr.io"
        elif args.typ == "azure-native:operationalinsights:Workspace":
            outputs["customerId"] = "workspace-customer-id"
        elif args.typ == "azure-native:app:ManagedEnvironment":
            outputs["defaultDomain"] = ENVIRONMENT_DOMAIN
        elif args.typ == "azure-native:app:ContainerApp":
            # Azure never returns secret values
            configuration = dict(outputs.get("configuration") or {})
            configuration["secrets"] = [
                {"name": secret["name"]} for secret in configuration.get("secrets", [])
            ]
            outputs["configuration"] = configuration
        elif args.typ == "docker:index/image:Image":
            repository = args.inputs["imageName"].rsplit(":", 1)[0]
            outputs["repoDigest"] = f"{repository}@sha256:0123abcd"

        return [f"{args.name}_id", outputs]

    def call(self, args: pulumi.runtime.MockCallArgs):
        if args.token == "azure-native:containerregistry:listRegistryCredentials":
            return {
                "username": REGISTRY_USER,
                "passwords": [
                    {"name": "password", "value": REGISTRY_PASSWORD},
                    {"name": "password2", "value": "registry-secret-2"},
                ],
            }
        if args.token == "azure-native:operationalinsights:getSharedKeys":
            return {
                "primarySharedKey": "primary-key",
                "secondarySharedKey": "secondary-key",
            }
        return {}


pulumi.runtime.set_mocks(AzureMocks(), project="az-keycloak", stack="test", preview=False)


@pytest.fixture
def stack_config():
    """Default stack configuration."""
    return StackConfig()


@pytest.fixture
def test_settings():
    """Settings independent of the environment running the tests."""
    return Settings(
        LOG_LEVEL="DEBUG",
        JSON_LOGS=False,
        SKIP_SQL_LOGIN_SETUP=False,
        _env_file=None,
    )
