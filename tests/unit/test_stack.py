"""
Unit tests for the IamStack resource graph.

The stack is declared once against Pulumi mocks (see conftest.py) with an
injected public IP resolver and SQL provisioner; tests then inspect the
resolved outputs.
"""

import asyncio
import logging
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pulumi
import pytest

from az_keycloak.errors import (
    ConfigurationError,
    PublicIpLookupError,
    SqlProvisioningError,
)
from az_keycloak.models.stack_config import StackConfig
from az_keycloak.resources.image import image_reference_after, pinned_image_reference
from az_keycloak.resources.sql import SqlServerResources, provision_sql_login
from az_keycloak.settings import Settings
from az_keycloak.stack import IamStack
from az_keycloak.utils.sql_login import SqlLoginProvisioner

from tests.unit.conftest import ENVIRONMENT_DOMAIN, REGISTRY_PASSWORD, REGISTRY_USER

PUBLIC_IP = "203.0.113.7"
PINNED_IMAGE = "crdemowesteurope1.azurecr.io/keycloak@sha256:0123abcd"

provisioner = MagicMock(spec=SqlLoginProvisioner)
provisioner.provision.return_value = True

stack = IamStack(
    config=StackConfig(),
    settings=Settings(SKIP_SQL_LOGIN_SETUP=False, _env_file=None),
    public_ip_resolver=lambda: PUBLIC_IP,
    sql_provisioner=provisioner,
)


class TestResourceNames:
    """Test Azure names derived from the default configuration."""

    @pulumi.runtime.test
    def test_resource_group(self):
        def check(args):
            name, location = args
            assert name == "rg-demo-westeurope-1"
            assert location == "westeurope"

        return pulumi.Output.all(
            stack.resource_group.name, stack.resource_group.location
        ).apply(check)

    @pulumi.runtime.test
    def test_sql_server_name_follows_resource_group_location(self):
        def check(name):
            assert name == "sql-demo-westeurope-1"

        return stack.sql.server.name.apply(check)

    @pulumi.runtime.test
    def test_database(self):
        def check(name):
            assert name == "keycloak"

        return stack.sql_database.name.apply(check)

    @pulumi.runtime.test
    def test_registry_name(self):
        def check(name):
            assert name == "crdemowesteurope1"

        return stack.container_registry.name.apply(check)


class TestFirewall:
    """Test the firewall rules opened on the SQL server."""

    @pulumi.runtime.test
    def test_deployer_rule_uses_public_ip(self):
        def check(args):
            start, end = args
            assert start == PUBLIC_IP
            assert end == PUBLIC_IP

        rule = stack.sql.deployer_rule
        return pulumi.Output.all(rule.start_ip_address, rule.end_ip_address).apply(check)

    @pulumi.runtime.test
    def test_azure_services_rule(self):
        def check(args):
            start, end = args
            assert start == "0.0.0.0"
            assert end == "0.0.0.0"

        rule = stack.sql.azure_services_rule
        return pulumi.Output.all(rule.start_ip_address, rule.end_ip_address).apply(check)


class TestSqlLogin:
    """Test that the Keycloak login is provisioned with the generated secrets."""

    @pulumi.runtime.test
    def test_provisioner_called_with_resolved_values(self):
        def check(ready):
            assert ready is True
            provisioner.provision.assert_called_once_with(
                server_name="sql-demo-westeurope-1",
                database="keycloak",
                admin_user="sqladm",
                admin_password="password-sql-admin-secret",
                login="kcadm",
                password="password-sql-kc-secret",
            )

        return stack.sql_login_ready.apply(check)

    def test_skip_returns_false_without_provisioning(self):
        skipped_provisioner = MagicMock(spec=SqlLoginProvisioner)

        result = provision_sql_login(
            skipped_provisioner,
            MagicMock(),
            MagicMock(),
            admin_user="sqladm",
            admin_password="pw",
            login="kcadm",
            password="pw2",
            skip=True,
        )

        assert isinstance(result, pulumi.Output)
        skipped_provisioner.provision.assert_not_called()

    def test_preview_does_not_provision(self):
        preview_provisioner = MagicMock(spec=SqlLoginProvisioner)

        with patch("az_keycloak.resources.sql.pulumi.runtime.is_dry_run", return_value=True):
            provision_sql_login(
                preview_provisioner,
                MagicMock(),
                MagicMock(),
                admin_user="sqladm",
                admin_password="pw",
                login="kcadm",
                password="pw2",
            )

        preview_provisioner.provision.assert_not_called()

    @pulumi.runtime.test
    def test_waits_for_deployer_firewall_rule(self):
        """Test that the login is not created before this machine's rule exists."""
        loop = asyncio.get_running_loop()
        rule_id = loop.create_future()
        rule_known = loop.create_future()
        rule_known.set_result(True)

        ordered_provisioner = MagicMock(spec=SqlLoginProvisioner)
        ordered_provisioner.provision.return_value = True
        sql_resources = SqlServerResources(
            server=SimpleNamespace(name=pulumi.Output.from_input("sql-ordered")),
            azure_services_rule=MagicMock(),
            deployer_rule=SimpleNamespace(
                id=pulumi.Output(set(), rule_id, rule_known)
            ),
        )

        ready = provision_sql_login(
            ordered_provisioner,
            sql_resources,
            SimpleNamespace(name=pulumi.Output.from_input("keycloak")),
            admin_user="sqladm",
            admin_password="pw",
            login="kcadm",
            password="pw2",
        )

        def create_rule(_):
            ordered_provisioner.provision.assert_not_called()
            rule_id.set_result("fw-rule-my-ip_id")
            return True

        rule_created = pulumi.Output.from_input(True).apply(create_rule)

        def check(args):
            _, login_ready = args
            assert login_ready is True
            ordered_provisioner.provision.assert_called_once()

        return pulumi.Output.all(rule_created, ready).apply(check)

    def test_provisioning_failure_fails_login_output(self):
        failing_provisioner = MagicMock(spec=SqlLoginProvisioner)
        failing_provisioner.provision.side_effect = SqlProvisioningError(
            "Login timeout expired", login="kcadm"
        )

        @pulumi.runtime.test
        def resolve_login():
            return provision_sql_login(
                failing_provisioner,
                stack.sql,
                stack.sql_database,
                admin_user="sqladm",
                admin_password=stack.sql_admin_password,
                login="kcadm",
                password=stack.keycloak_db_password,
            )

        with pytest.raises(SqlProvisioningError):
            resolve_login()

        failing_provisioner.provision.assert_called_once()


class TestContainerApp:
    """Test the declared Keycloak Container App."""

    @pulumi.runtime.test
    def test_runs_pinned_image(self):
        def check(args):
            template, image_reference = args
            assert image_reference == PINNED_IMAGE
            assert template.containers[0].image == PINNED_IMAGE

        return pulumi.Output.all(
            stack.container_app.template, stack.image_reference
        ).apply(check)

    @pulumi.runtime.test
    def test_container_resources_and_scale(self):
        def check(template):
            container = template.containers[0]
            assert container.name == "keycloak"
            assert container.resources.cpu == 1.0
            assert container.resources.memory == "2Gi"
            assert template.scale.min_replicas == 1
            assert template.scale.max_replicas == 1

        return stack.container_app.template.apply(check)

    @pulumi.runtime.test
    def test_external_ingress_to_latest_revision(self):
        def check(configuration):
            ingress = configuration.ingress
            assert ingress.external is True
            assert ingress.target_port == 8080
            assert len(ingress.traffic) == 1
            assert ingress.traffic[0].latest_revision is True
            assert ingress.traffic[0].weight == 100

        return stack.container_app.configuration.apply(check)

    @pulumi.runtime.test
    def test_registry_and_secrets(self):
        def check(configuration):
            registry = configuration.registries[0]
            assert registry.server == "crdemowesteurope1.azurecr.io"
            assert registry.username == REGISTRY_USER
            assert registry.password_secret_ref == "registry-password"
            assert sorted(secret.name for secret in configuration.secrets) == [
                "kc-admin-password",
                "kc-db-password",
                "registry-password",
            ]

        return stack.container_app.configuration.apply(check)

    def test_image_fails_when_login_fails(self):
        """Test that a failed SQL login keeps the app from getting an image."""
        failing_provisioner = MagicMock(spec=SqlLoginProvisioner)
        failing_provisioner.provision.side_effect = SqlProvisioningError(
            "permission denied", login="kcadm"
        )

        @pulumi.runtime.test
        def resolve_image():
            login_ready = provision_sql_login(
                failing_provisioner,
                stack.sql,
                stack.sql_database,
                admin_user="sqladm",
                admin_password=stack.sql_admin_password,
                login="kcadm",
                password=stack.keycloak_db_password,
            )
            return image_reference_after(
                pinned_image_reference(stack.keycloak_image), login_ready
            )

        with pytest.raises(SqlProvisioningError):
            resolve_image()


class TestOutputs:
    """Test the values exported by the stack."""

    @pulumi.runtime.test
    def test_registry_credentials(self):
        def check(args):
            user, password = args
            assert user == REGISTRY_USER
            assert password == REGISTRY_PASSWORD

        return pulumi.Output.all(
            stack.container_registry_user, stack.container_registry_password
        ).apply(check)

    @pulumi.runtime.test
    def test_generated_passwords(self):
        def check(args):
            sql_admin, keycloak_db, keycloak_admin = args
            assert sql_admin == "password-sql-admin-secret"
            assert keycloak_db == "password-sql-kc-secret"
            assert keycloak_admin == "password-keycloak-admin-secret"

        return pulumi.Output.all(
            stack.sql_admin_password,
            stack.keycloak_db_password,
            stack.keycloak_admin_password,
        ).apply(check)

    @pulumi.runtime.test
    def test_keycloak_url_and_issuer(self):
        def check(args):
            url, issuer = args
            assert url == f"https://ca-keycloak-demo.{ENVIRONMENT_DOMAIN}"
            assert issuer == f"{url}/realms/master"

        return pulumi.Output.all(stack.keycloak_url, stack.keycloak_issuer).apply(check)

    @pulumi.runtime.test
    def test_image_pinned_to_registry(self):
        def check(args):
            image_name, digest = args
            assert image_name == "crdemowesteurope1.azurecr.io/keycloak:latest"
            assert digest.startswith("crdemowesteurope1.azurecr.io/keycloak@sha256:")

        return pulumi.Output.all(
            stack.keycloak_image.image_name, stack.keycloak_image.repo_digest
        ).apply(check)


class TestFailures:
    """Test that failures are logged and propagate."""

    def test_invalid_config_is_logged_and_raised(self, caplog):
        error = ConfigurationError("bad", key="location")

        with (
            patch.object(StackConfig, "from_pulumi_config", side_effect=error),
            caplog.at_level(logging.ERROR),
            pytest.raises(ConfigurationError),
        ):
            IamStack(settings=Settings(_env_file=None))

        assert any(
            getattr(r, "operation", None) == "deployment_error" for r in caplog.records
        )

    def test_public_ip_failure_aborts(self):
        def unreachable():
            raise PublicIpLookupError("no route")

        with pytest.raises(PublicIpLookupError):
            IamStack(
                config=StackConfig(name="broken"),
                settings=Settings(_env_file=None),
                public_ip_resolver=unreachable,
                sql_provisioner=MagicMock(spec=SqlLoginProvisioner),
            )
