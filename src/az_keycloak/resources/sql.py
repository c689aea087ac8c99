"""
Azure SQL declarations for Keycloak persistence.

Declares the logical server with its firewall rules, the Keycloak database,
and the step that creates the Keycloak login and user on them.
"""

from dataclasses import dataclass

import pulumi
from pulumi_azure_native import resources, sql

from ..constants import (
    AZURE_SERVICES_IP,
    FIREWALL_RULE_AZURE_SERVICES,
    FIREWALL_RULE_MY_IP,
    KEYCLOAK_DATABASE_NAME,
    SQL_DATABASE_CAPACITY,
    SQL_DATABASE_TIER,
    SQL_MINIMAL_TLS_VERSION,
    SQL_SERVER_VERSION,
)
from ..models.stack_config import StackConfig
from ..observability.logging import DeploymentLogger
from ..utils.sql_login import SqlLoginProvisioner

logger = DeploymentLogger(__name__)


@dataclass
class SqlServerResources:
    """The SQL server and the firewall rules opened on it."""

    server: sql.Server
    azure_services_rule: sql.FirewallRule
    deployer_rule: sql.FirewallRule


def create_sql_server(
    config: StackConfig,
    resource_group: resources.ResourceGroup,
    admin_password: pulumi.Input[str],
    deployer_ip: str,
) -> SqlServerResources:
    """
    Create the Azure SQL logical server and open its firewall.

    Two rules are declared: one letting other Azure services (the Container
    App) in, and one for the machine running the deployment, which needs
    direct access to provision the Keycloak login.

    Args:
        config: Stack configuration
        resource_group: Resource group to place the server in
        admin_password: Generated administrator password
        deployer_ip: Public IP of the machine running the deployment

    Returns:
        Server and firewall rules
    """
    server = sql.Server(
        f"sql-server-{config.name}",
        server_name=resource_group.location.apply(config.sql_server_name),
        resource_group_name=resource_group.name,
        location=resource_group.location,
        administrator_login=config.sql_admin_user,
        administrator_login_password=admin_password,
        minimal_tls_version=SQL_MINIMAL_TLS_VERSION,
        version=SQL_SERVER_VERSION,
        public_network_access=sql.ServerNetworkAccessFlag.ENABLED,
        restrict_outbound_network_access=sql.ServerNetworkAccessFlag.DISABLED,
        opts=pulumi.ResourceOptions(depends_on=[resource_group]),
    )
    logger.log_resource_declared("sql-server", f"sql-server-{config.name}")

    azure_services_rule = sql.FirewallRule(
        "fw-rule-public",
        firewall_rule_name=FIREWALL_RULE_AZURE_SERVICES,
        resource_group_name=resource_group.name,
        server_name=server.name,
        start_ip_address=AZURE_SERVICES_IP,
        end_ip_address=AZURE_SERVICES_IP,
        opts=pulumi.ResourceOptions(depends_on=[server]),
    )

    deployer_rule = sql.FirewallRule(
        "fw-rule-my-ip",
        firewall_rule_name=FIREWALL_RULE_MY_IP,
        resource_group_name=resource_group.name,
        server_name=server.name,
        start_ip_address=deployer_ip,
        end_ip_address=deployer_ip,
        opts=pulumi.ResourceOptions(depends_on=[server]),
    )
    logger.log_resource_declared("sql-firewall-rule", FIREWALL_RULE_MY_IP)

    return SqlServerResources(
        server=server,
        azure_services_rule=azure_services_rule,
        deployer_rule=deployer_rule,
    )


def create_sql_database(
    resource_group: resources.ResourceGroup,
    server: sql.Server,
    name: str = KEYCLOAK_DATABASE_NAME,
    capacity: int = SQL_DATABASE_CAPACITY,
    tier: str = SQL_DATABASE_TIER,
) -> sql.Database:
    """
    Create a SQL database. Defaults are chosen to keep costs as low as possible.

    Args:
        resource_group: Resource group of the server
        server: SQL server hosting the database
        name: Database name
        capacity: Allocated capacity (DTUs for the Basic tier)
        tier: SKU tier

    Returns:
        The database
    """
    database = sql.Database(
        f"sql-db-{name}",
        database_name=name,
        resource_group_name=resource_group.name,
        location=resource_group.location,
        server_name=server.name,
        zone_redundant=False,
        sku=sql.SkuArgs(capacity=capacity, name=tier, tier=tier),
        opts=pulumi.ResourceOptions(depends_on=[resource_group, server]),
    )
    logger.log_resource_declared("sql-database", name)
    return database


def provision_sql_login(
    provisioner: SqlLoginProvisioner,
    sql_resources: SqlServerResources,
    database: sql.Database,
    admin_user: str,
    admin_password: pulumi.Input[str],
    login: str,
    password: pulumi.Input[str],
    skip: bool = False,
) -> pulumi.Output[bool]:
    """
    Create the Keycloak login and database user once the server is reachable.

    Runs inside ``Output.apply``, so it only executes once the server name,
    database name and both passwords are known, which never happens before
    the server exists. Previews never touch the database.

    Args:
        provisioner: SQL login provisioner
        sql_resources: Server and firewall rules (the deployer rule must exist)
        database: Keycloak database
        admin_user: Server administrator login
        admin_password: Server administrator password
        login: Login to create for Keycloak
        password: Password of that login
        skip: Do not provision (the output resolves to False)

    Returns:
        Output resolving to True once the login and user exist
    """
    if skip:
        logger.warning(f"Skipping SQL login setup for {login}")
        return pulumi.Output.from_input(False)

    if pulumi.runtime.is_dry_run():
        logger.debug(f"Preview: SQL login setup for {login} runs on update")
        return pulumi.Output.from_input(False)

    def _provision(args: list) -> bool:
        server_name, database_name, admin_pwd, user_pwd = args[:4]
        return provisioner.provision(
            server_name=server_name,
            database=database_name,
            admin_user=admin_user,
            admin_password=admin_pwd,
            login=login,
            password=user_pwd,
        )

    return pulumi.Output.all(
        sql_resources.server.name,
        database.name,
        admin_password,
        password,
        # ordering only: the deployer needs its firewall rule first
        sql_resources.deployer_rule.id,
    ).apply(_provision)
