"""
Observability utilities for the az-keycloak deployment.

This module provides structured logging with deployment run IDs.
"""

from .logging import DeploymentLogger, setup_structured_logging

__all__ = [
    "DeploymentLogger",
    "setup_structured_logging",
]
