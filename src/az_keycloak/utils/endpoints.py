"""
Keycloak endpoint construction.

Builds the public Keycloak URL from the Container App's ingress FQDN and the
OIDC issuer of a realm below it.
"""


def keycloak_base_url(fqdn: str) -> str:
    """
    Get the public base URL of Keycloak from the ingress FQDN.

    Container Apps ingress terminates TLS, so the URL is always https.

    Args:
        fqdn: Ingress FQDN, with or without scheme

    Returns:
        Base URL without trailing slash
    """
    host = fqdn.strip().removeprefix("https://").removeprefix("http://")
    return f"https://{host.rstrip('/')}"


def realm_issuer_url(base_url: str, realm_name: str) -> str:
    """OIDC issuer of a realm, e.g. ``https://kc.example.com/realms/master``."""
    return f"{base_url.rstrip('/')}/realms/{realm_name}"
