"""
Deployment error hierarchy with categorization and user guidance.

Every error carries a category and an optional hint on how to resolve it, so
that the message surfaced by ``pulumi up`` is actionable on its own.
"""


class DeploymentError(Exception):
    """
    Base error class for all deployment-related exceptions.

    Provides categorization and user guidance for resolution.
    """

    def __init__(
        self,
        message: str,
        category: str,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize deployment error.

        Args:
            message: Human-readable error description
            category: Error category (configuration, external, sql)
            user_action: What user should do to resolve the issue
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.category = category
        self.user_action = user_action
        self.cause = cause

    def __str__(self) -> str:
        """Enhanced string representation with user guidance."""
        base_msg = super().__str__()
        if self.user_action:
            return f"{base_msg}\nAction required: {self.user_action}"
        return base_msg


class ConfigurationError(DeploymentError):
    """Error in stack or process configuration."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        user_action: str | None = None,
    ):
        if key:
            message = f"Invalid configuration '{key}': {message}"
        super().__init__(
            message=message,
            category="configuration",
            user_action=user_action or "Review the stack configuration (pulumi config)",
        )
        self.key = key


class ExternalServiceError(DeploymentError):
    """Error communicating with an external service."""

    def __init__(
        self,
        service: str,
        message: str,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        action = user_action or f"Check {service} connectivity and credentials"
        super().__init__(
            message=f"{service} error: {message}",
            category="external",
            user_action=action,
            cause=cause,
        )
        self.service = service


class PublicIpLookupError(ExternalServiceError):
    """The caller's public IP could not be determined."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(
            service="Public IP lookup",
            message=message,
            user_action=(
                "Check outbound internet access or point PUBLIC_IP_SERVICE_URL "
                "at a reachable lookup service"
            ),
            cause=cause,
        )


class SqlProvisioningError(ExternalServiceError):
    """Creating the Keycloak SQL login or database user failed."""

    def __init__(
        self,
        message: str,
        login: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(
            service="Azure SQL",
            message=message,
            user_action=(
                "Check the firewall rule for this machine, the installed ODBC "
                "driver and the SQL admin credentials"
            ),
            cause=cause,
        )
        self.category = "sql"
        self.login = login
