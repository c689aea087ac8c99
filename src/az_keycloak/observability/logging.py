"""
Structured logging utilities for the az-keycloak deployment.

This module provides deployment run IDs, structured log formatting and
resource-level logging helpers so that a failed ``pulumi up`` can be traced
back to the step that broke it.
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Context variable for tracking the current deployment run
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Record attributes copied into JSON output when present
STRUCTURED_FIELDS = (
    "resource_type",
    "resource_name",
    "stack",
    "operation",
    "duration",
    "error_type",
    "server_name",
    "database",
    "login",
    "location",
    "success",
    "error",
)


class CorrelationIDFilter(logging.Filter):
    """Logging filter that adds the deployment run ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Add correlation ID to the log record.

        Args:
            record: The log record to process

        Returns:
            True to allow the record to be processed
        """
        current_correlation_id = correlation_id.get()
        if not current_correlation_id:
            current_correlation_id = generate_correlation_id()
            correlation_id.set(current_correlation_id)

        record.correlation_id = current_correlation_id
        return True


class StructuredFormatter(logging.Formatter):
    """
    Structured JSON formatter for logs with correlation ID support.

    Formats log records as one JSON object per line for log aggregation in CI
    pipelines running ``pulumi up``.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record as structured JSON.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted log message
        """
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", ""),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, default=str)


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID.

    Returns:
        Unique correlation ID string
    """
    return str(uuid.uuid4())[:8]


def set_correlation_id(corr_id: str) -> str:
    """
    Set the correlation ID for the current context.

    Args:
        corr_id: Correlation ID to set

    Returns:
        The correlation ID that was set
    """
    correlation_id.set(corr_id)
    return corr_id


def get_correlation_id() -> str:
    """Get the current correlation ID, or empty string if none set."""
    return correlation_id.get("")


def setup_structured_logging(
    log_level: str = "INFO",
    enable_json_formatting: bool = False,
    correlation_id_enabled: bool = True,
) -> None:
    """
    Set up logging for the deployment program.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        enable_json_formatting: Whether to use JSON formatting
        correlation_id_enabled: Whether to tag records with the run ID
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()

    if enable_json_formatting:
        formatter = StructuredFormatter()
    elif correlation_id_enabled:
        formatter = logging.Formatter(
            "%(asctime)s - %(correlation_id)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)

    if correlation_id_enabled:
        handler.addFilter(CorrelationIDFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Third-party libraries are noisy at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("pulumi").setLevel(logging.WARNING)


class DeploymentLogger:
    """
    Logger for deployment steps with structured logging support.

    Provides convenient methods for logging common deployment events with
    run ID tracking and structured data. Never pass secrets as extra fields.
    """

    def __init__(self, name: str):
        """
        Initialize deployment logger.

        Args:
            name: Logger name (usually the module name)
        """
        self.logger = logging.getLogger(name)

    def log_deployment_start(
        self, stack: str, location: str, correlation_id: str | None = None
    ) -> str:
        """
        Log the start of a deployment run.

        Args:
            stack: Pulumi stack name
            location: Azure region
            correlation_id: Optional run ID (will generate if not provided)

        Returns:
            The run ID used for this deployment
        """
        if correlation_id is None:
            correlation_id = generate_correlation_id()

        set_correlation_id(correlation_id)

        self.logger.info(
            f"Declaring Keycloak stack {stack} in {location}",
            extra={
                "stack": stack,
                "location": location,
                "operation": "deployment_start",
            },
        )

        return correlation_id

    def log_deployment_success(self, stack: str, duration: float) -> None:
        """Log that every resource of the stack has been declared."""
        self.logger.info(
            f"All resources declared for stack {stack}",
            extra={
                "stack": stack,
                "operation": "deployment_success",
                "duration": duration,
            },
        )

    def log_deployment_error(
        self, stack: str, error: Exception, duration: float
    ) -> None:
        """
        Log a failure while declaring the stack.

        Args:
            stack: Pulumi stack name
            error: The error that occurred
            duration: Time spent before the failure in seconds
        """
        self.logger.error(
            f"Declaring stack {stack} failed: {str(error)}",
            extra={
                "stack": stack,
                "operation": "deployment_error",
                "error_type": type(error).__name__,
                "duration": duration,
            },
            exc_info=True,
        )

    def log_resource_declared(self, resource_type: str, resource_name: str) -> None:
        """
        Log that a resource has been handed to the Pulumi engine.

        Args:
            resource_type: Short type of the resource (sql-server, registry, ...)
            resource_name: Pulumi logical name of the resource
        """
        self.logger.debug(
            f"Declared {resource_type} {resource_name}",
            extra={
                "resource_type": resource_type,
                "resource_name": resource_name,
                "operation": "declare",
            },
        )

    def log_sql_operation(
        self,
        operation: str,
        server_name: str,
        database: str,
        login: str,
        success: bool,
        duration: float | None = None,
        error: str | None = None,
    ) -> None:
        """
        Log SQL provisioning operations.

        Args:
            operation: SQL operation (create_login, create_user, ...)
            server_name: Logical server name
            database: Database the statement ran in
            login: Login being provisioned
            success: Whether the operation succeeded
            duration: Operation duration in seconds
            error: Error message if operation failed
        """
        level = logging.INFO if success else logging.ERROR
        message = (
            f"SQL {operation} {'succeeded' if success else 'failed'} "
            f"for {login} on {server_name}/{database}"
        )

        extra_data: dict[str, Any] = {
            "server_name": server_name,
            "database": database,
            "login": login,
            "operation": f"sql_{operation}",
            "success": success,
        }

        if duration is not None:
            extra_data["duration"] = duration

        if error:
            extra_data["error"] = error

        self.logger.log(level, message, extra=extra_data)

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message with extra data."""
        self.logger.debug(message, extra=kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log info message with extra data."""
        self.logger.info(message, extra=kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message with extra data."""
        self.logger.warning(message, extra=kwargs)
