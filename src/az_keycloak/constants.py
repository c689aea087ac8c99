"""
Constants used throughout the az-keycloak deployment.

This module defines all constant values used by the program including:
- Pulumi configuration keys and their defaults
- Resource naming patterns
- Password generation rules
- SQL connection parameters
- Keycloak container settings and stack output names
"""

# Pulumi configuration keys
CONFIG_NAME = "name"
CONFIG_SQL_ADMIN_USER = "sql.admin.user"
CONFIG_KEYCLOAK_DB_USER = "sql.kc.user"
CONFIG_LOCATION = "location"
CONFIG_KEYCLOAK_IMAGE_VERSION = "keycloak.image.version"
CONFIG_KEYCLOAK_ADMIN_USER = "keycloak.admin.usr"

# Configuration defaults
DEFAULT_NAME = "demo"
DEFAULT_SQL_ADMIN_USER = "sqladm"
DEFAULT_KEYCLOAK_DB_USER = "kcadm"
DEFAULT_LOCATION = "westeurope"
DEFAULT_KEYCLOAK_IMAGE_VERSION = "latest"
DEFAULT_KEYCLOAK_ADMIN_USER = "admin"

# Resource naming patterns
RESOURCE_GROUP_NAME_PATTERN = "rg-{name}-{location}-1"
SQL_SERVER_NAME_PATTERN = "sql-{name}-{location}-1"
REGISTRY_NAME_PATTERN = "cr{name}{location}1"
WORKSPACE_NAME_PATTERN = "log-{name}-{location}-1"
ENVIRONMENT_NAME_PATTERN = "cae-{name}-{location}-1"
CONTAINER_APP_NAME_PATTERN = "ca-keycloak-{name}"
CONTAINER_APP_NAME_MAX_LENGTH = 32
KEYCLOAK_DATABASE_NAME = "keycloak"

# Azure name length limits
RESOURCE_GROUP_NAME_MAX_LENGTH = 90
SQL_SERVER_NAME_MAX_LENGTH = 63
REGISTRY_NAME_MAX_LENGTH = 50
WORKSPACE_NAME_MAX_LENGTH = 63
ENVIRONMENT_NAME_MAX_LENGTH = 60

# Password generation
PASSWORD_LENGTH = 16
PASSWORD_OVERRIDE_SPECIAL = "!#$%&*()-_=+[]{}<>:?"

# SQL server
SQL_SERVER_VERSION = "12.0"
SQL_MINIMAL_TLS_VERSION = "1.2"
SQL_PORT = 1433
SQL_HOST_SUFFIX = ".database.windows.net"
SQL_HOST_NAME_IN_CERTIFICATE = "*.database.windows.net"
SQL_MASTER_DATABASE = "master"
SQL_DATABASE_TIER = "Basic"
SQL_DATABASE_CAPACITY = 5
SQL_DB_OWNER_ROLE = "db_owner"

# Firewall rules
FIREWALL_RULE_AZURE_SERVICES = "allowAllWindowsAzureIps"
FIREWALL_RULE_MY_IP = "allowMyIp"
AZURE_SERVICES_IP = "0.0.0.0"

# Container registry
REGISTRY_RETENTION_DAYS = 7

# Log analytics
WORKSPACE_SKU = "PerGB2018"
WORKSPACE_RETENTION_DAYS = 30

# Keycloak container
KEYCLOAK_IMAGE_REPOSITORY = "keycloak"
KEYCLOAK_CONTAINER_NAME = "keycloak"
KEYCLOAK_HTTP_PORT = 8080
KEYCLOAK_MANAGEMENT_PORT = 9000
KEYCLOAK_CPU = 1.0
KEYCLOAK_MEMORY = "2Gi"
KEYCLOAK_MIN_REPLICAS = 1
KEYCLOAK_MAX_REPLICAS = 1
KEYCLOAK_MASTER_REALM = "master"

# Container App secret names
SECRET_REGISTRY_PASSWORD = "registry-password"
SECRET_KEYCLOAK_DB_PASSWORD = "kc-db-password"
SECRET_KEYCLOAK_ADMIN_PASSWORD = "kc-admin-password"

# Stack outputs
OUTPUT_SQL_ADMIN_PASSWORD = "sqlAdminPassword"
OUTPUT_KEYCLOAK_DB_PASSWORD = "keycloakDbPassword"
OUTPUT_CONTAINER_REGISTRY_USER = "containerRegistryUser"
OUTPUT_CONTAINER_REGISTRY_PASSWORD = "containerRegistryPassword"
OUTPUT_KEYCLOAK_ADMIN_PASSWORD = "keycloakAdminPassword"
OUTPUT_RESOURCE_GROUP_NAME = "resourceGroupName"
OUTPUT_SQL_SERVER_NAME = "sqlServerName"
OUTPUT_KEYCLOAK_URL = "keycloakUrl"
OUTPUT_KEYCLOAK_ISSUER = "keycloakIssuer"

# Error message templates
ERROR_INVALID_PUBLIC_IP = "Public IP service returned '{}', which is not an IPv4 address"
ERROR_SQL_LOGIN_SETUP = "Failed to provision SQL login '{}' on server '{}'"
