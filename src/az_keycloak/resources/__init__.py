"""
Resources package - Azure resource declarations for the Keycloak stack.

Each module declares one family of resources and returns the Pulumi resource
objects so that dependent declarations can reference their outputs:
- resource_group: the resource group everything lives in
- passwords: generated secrets
- sql: SQL server, firewall rules, database and the Keycloak login
- registry: container registry and its admin credentials
- image: the Keycloak image built and pushed to the registry
- environment: Log Analytics workspace and Container Apps environment
- container_app: the Keycloak Container App
"""
