"""
Public IP lookup for the deploying machine.

The SQL login provisioning step connects to Azure SQL from the machine running
``pulumi up``, so that machine's public IP needs its own firewall rule. The
lookup is a single blocking HTTP call made before the rule is declared.
"""

import ipaddress

import httpx

from ..constants import ERROR_INVALID_PUBLIC_IP
from ..errors import PublicIpLookupError
from ..observability.logging import DeploymentLogger

logger = DeploymentLogger(__name__)


def get_public_ip(
    service_url: str = "https://ipinfo.io",
    path: str = "ip",
    timeout: float = 10.0,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """
    Get the caller's current public IPv4 address.

    Args:
        service_url: Lookup service base URL
        path: Relative path returning the bare IP as text
        timeout: Request timeout in seconds
        transport: Optional httpx transport (used by tests)

    Returns:
        The public IP as a string

    Raises:
        PublicIpLookupError: On HTTP failure or a non-IPv4 response body
    """
    try:
        with httpx.Client(
            base_url=service_url, timeout=timeout, transport=transport
        ) as client:
            response = client.get(path)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise PublicIpLookupError(
            f"{service_url} answered HTTP {e.response.status_code}", cause=e
        ) from e
    except httpx.HTTPError as e:
        raise PublicIpLookupError(
            f"Request to {service_url} failed: {e}", cause=e
        ) from e

    candidate = response.text.strip()
    try:
        address = ipaddress.IPv4Address(candidate)
    except ValueError as e:
        raise PublicIpLookupError(
            ERROR_INVALID_PUBLIC_IP.format(candidate[:64]), cause=e
        ) from e

    logger.info(f"Resolved public IP {address} via {service_url}")
    return str(address)
