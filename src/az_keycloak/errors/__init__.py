"""
Error handling module for the az-keycloak deployment.

This module provides the error hierarchy raised while declaring the stack.
Errors are never retried locally: they are logged and propagate to the Pulumi
engine, which aborts the update.
"""

from .deployment_errors import (
    ConfigurationError,
    DeploymentError,
    ExternalServiceError,
    PublicIpLookupError,
    SqlProvisioningError,
)

__all__ = [
    "DeploymentError",
    "ConfigurationError",
    "ExternalServiceError",
    "PublicIpLookupError",
    "SqlProvisioningError",
]
