"""
Utils package - Helpers used while declaring the stack.

Contains helper modules for:
- Public IP lookup for the deploying machine
- SQL login and user provisioning
- Keycloak endpoint construction
"""

from az_keycloak.utils.endpoints import keycloak_base_url, realm_issuer_url
from az_keycloak.utils.public_ip import get_public_ip
from az_keycloak.utils.sql_login import SqlLoginProvisioner

__all__ = [
    "get_public_ip",
    "keycloak_base_url",
    "realm_issuer_url",
    "SqlLoginProvisioner",
]
