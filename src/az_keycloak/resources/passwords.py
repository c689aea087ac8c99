"""Generated passwords."""

import pulumi
import pulumi_random as random

from ..constants import PASSWORD_LENGTH, PASSWORD_OVERRIDE_SPECIAL


def generate_password(resource_name: str) -> pulumi.Output[str]:
    """
    Generate a password once per stack and keep it in state.

    The special characters exclude quotes and backslashes so the value can be
    embedded in T-SQL, JDBC and environment variables without surprises.

    Args:
        resource_name: Pulumi logical name of the password resource

    Returns:
        The generated password as a secret output
    """
    password = random.RandomPassword(
        resource_name,
        length=PASSWORD_LENGTH,
        special=True,
        override_special=PASSWORD_OVERRIDE_SPECIAL,
    )
    return pulumi.Output.secret(password.result)
