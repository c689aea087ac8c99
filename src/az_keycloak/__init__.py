"""
az-keycloak - Keycloak on Azure Container Apps, declared with Pulumi.

This package declares a complete Keycloak deployment on Azure with:
- Azure SQL server and database for Keycloak persistence
- Idempotent SQL login and user provisioning
- Azure Container Registry with a freshly built Keycloak image
- A Container Apps environment and app running Keycloak
"""

__version__ = "0.1.0"
