"""
Pydantic model for the stack configuration.

This module turns the optional Pulumi configuration keys into a validated,
type-safe model and derives the Azure resource names from it. Validation runs
before any resource is declared so that a bad value fails fast instead of
half-way through an update.
"""

import re
from typing import Any

import pulumi
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..constants import (
    CONFIG_KEYCLOAK_ADMIN_USER,
    CONFIG_KEYCLOAK_DB_USER,
    CONFIG_KEYCLOAK_IMAGE_VERSION,
    CONFIG_LOCATION,
    CONFIG_NAME,
    CONFIG_SQL_ADMIN_USER,
    CONTAINER_APP_NAME_MAX_LENGTH,
    CONTAINER_APP_NAME_PATTERN,
    DEFAULT_KEYCLOAK_ADMIN_USER,
    DEFAULT_KEYCLOAK_DB_USER,
    DEFAULT_KEYCLOAK_IMAGE_VERSION,
    DEFAULT_LOCATION,
    DEFAULT_NAME,
    DEFAULT_SQL_ADMIN_USER,
    ENVIRONMENT_NAME_MAX_LENGTH,
    ENVIRONMENT_NAME_PATTERN,
    REGISTRY_NAME_MAX_LENGTH,
    REGISTRY_NAME_PATTERN,
    RESOURCE_GROUP_NAME_MAX_LENGTH,
    RESOURCE_GROUP_NAME_PATTERN,
    SQL_SERVER_NAME_MAX_LENGTH,
    SQL_SERVER_NAME_PATTERN,
    WORKSPACE_NAME_MAX_LENGTH,
    WORKSPACE_NAME_PATTERN,
)
from ..errors import ConfigurationError

NAME_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]{0,38}[a-z0-9])?$")
LOCATION_PATTERN = re.compile(r"^[a-z0-9]+$")
LOGIN_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]{0,127}$")
IMAGE_TAG_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$")

# Pulumi config key for each model field
CONFIG_KEYS = {
    "name": CONFIG_NAME,
    "sql_admin_user": CONFIG_SQL_ADMIN_USER,
    "keycloak_db_user": CONFIG_KEYCLOAK_DB_USER,
    "location": CONFIG_LOCATION,
    "keycloak_image_version": CONFIG_KEYCLOAK_IMAGE_VERSION,
    "keycloak_admin_user": CONFIG_KEYCLOAK_ADMIN_USER,
}


class StackConfig(BaseModel):
    """
    Configuration of one az-keycloak stack.

    Every field is optional in Pulumi config and falls back to the defaults
    used by the demo deployment.
    """

    model_config = {"populate_by_name": True, "frozen": True}

    name: str = Field(
        DEFAULT_NAME,
        description="Base name for the resource group, SQL server and registry",
    )
    sql_admin_user: str = Field(
        DEFAULT_SQL_ADMIN_USER,
        alias="sql.admin.user",
        description="SQL server administrator login",
    )
    keycloak_db_user: str = Field(
        DEFAULT_KEYCLOAK_DB_USER,
        alias="sql.kc.user",
        description="SQL login Keycloak connects with",
    )
    location: str = Field(DEFAULT_LOCATION, description="Azure region")
    keycloak_image_version: str = Field(
        DEFAULT_KEYCLOAK_IMAGE_VERSION,
        alias="keycloak.image.version",
        description="Tag of the Keycloak image pushed to the registry",
    )
    keycloak_admin_user: str = Field(
        DEFAULT_KEYCLOAK_ADMIN_USER,
        alias="keycloak.admin.usr",
        description="Keycloak bootstrap administrator user name",
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not NAME_PATTERN.match(v):
            raise ValueError(
                "must be 1-40 lowercase letters, numbers or hyphens, "
                "starting and ending with a letter or number"
            )
        return v

    @field_validator("location")
    @classmethod
    def validate_location(cls, v):
        if not LOCATION_PATTERN.match(v):
            raise ValueError(
                "must be an Azure region short name such as 'westeurope'"
            )
        return v

    @field_validator("sql_admin_user", "keycloak_db_user", "keycloak_admin_user")
    @classmethod
    def validate_login(cls, v):
        if not LOGIN_PATTERN.match(v):
            raise ValueError(
                "must start with a letter and contain only letters, numbers "
                "or underscores (max 128 characters)"
            )
        return v

    @field_validator("keycloak_image_version")
    @classmethod
    def validate_image_version(cls, v):
        if not IMAGE_TAG_PATTERN.match(v):
            raise ValueError(f"'{v}' is not a valid image tag")
        return v

    @model_validator(mode="after")
    def validate_distinct_logins(self) -> "StackConfig":
        """The Keycloak login must not reuse the server administrator."""
        if self.sql_admin_user.lower() == self.keycloak_db_user.lower():
            raise ValueError(
                "sql.kc.user must differ from sql.admin.user; "
                "Keycloak should not connect as the server administrator"
            )
        return self

    @model_validator(mode="after")
    def validate_derived_name_lengths(self) -> "StackConfig":
        """Every derived Azure name must fit its resource type's length limit."""
        registry_name = self.registry_name(self.location)
        limits = [
            ("resource group", self.resource_group_name, RESOURCE_GROUP_NAME_MAX_LENGTH),
            ("SQL server", self.sql_server_name(self.location), SQL_SERVER_NAME_MAX_LENGTH),
            ("registry", registry_name, REGISTRY_NAME_MAX_LENGTH),
            ("Log Analytics workspace", self.workspace_name, WORKSPACE_NAME_MAX_LENGTH),
            ("Container Apps environment", self.environment_name, ENVIRONMENT_NAME_MAX_LENGTH),
        ]
        for kind, derived, max_length in limits:
            if len(derived) > max_length:
                raise ValueError(
                    f"{kind} name '{derived}' is {len(derived)} characters, "
                    f"Azure allows at most {max_length}; use a shorter name"
                )
        return self

    @classmethod
    def from_values(cls, values: dict[str, Any]) -> "StackConfig":
        """
        Build a config from raw values, dropping unset keys.

        Args:
            values: Mapping of field name to value (None means "use default")

        Returns:
            Validated stack configuration

        Raises:
            ConfigurationError: If any value is invalid
        """
        provided = {k: v for k, v in values.items() if v is not None}
        try:
            return cls.model_validate(
                {CONFIG_KEYS.get(k, k): v for k, v in provided.items()}
            )
        except ValidationError as e:
            first = e.errors()[0]
            loc = first["loc"][0] if first["loc"] else None
            key = CONFIG_KEYS.get(str(loc), str(loc)) if loc else None
            raise ConfigurationError(
                first["msg"],
                key=key,
                user_action="Fix the value with 'pulumi config set'",
            ) from e

    @classmethod
    def from_pulumi_config(cls, config: pulumi.Config | None = None) -> "StackConfig":
        """Load the stack configuration from Pulumi config."""
        config = config or pulumi.Config()
        return cls.from_values(
            {field: config.get(key) for field, key in CONFIG_KEYS.items()}
        )

    @property
    def resource_group_name(self) -> str:
        return RESOURCE_GROUP_NAME_PATTERN.format(name=self.name, location=self.location)

    @property
    def workspace_name(self) -> str:
        return WORKSPACE_NAME_PATTERN.format(name=self.name, location=self.location)

    @property
    def environment_name(self) -> str:
        return ENVIRONMENT_NAME_PATTERN.format(name=self.name, location=self.location)

    @property
    def container_app_name(self) -> str:
        """Container App name, trimmed to Azure's length limit."""
        full = CONTAINER_APP_NAME_PATTERN.format(name=self.name)
        return full[:CONTAINER_APP_NAME_MAX_LENGTH].rstrip("-")

    def sql_server_name(self, location: str) -> str:
        """SQL server name for the location the resource group landed in."""
        return SQL_SERVER_NAME_PATTERN.format(name=self.name, location=location)

    def registry_name(self, location: str) -> str:
        """Registry name; registries only allow alphanumerics."""
        return REGISTRY_NAME_PATTERN.format(
            name=self.name.replace("-", ""), location=location
        )
