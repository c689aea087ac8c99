"""Keycloak image build and push."""

import pulumi
import pulumi_docker as docker
from pulumi_azure_native import containerregistry

from ..constants import KEYCLOAK_IMAGE_REPOSITORY
from ..observability.logging import DeploymentLogger
from ..settings import Settings
from .registry import RegistryCredentials

logger = DeploymentLogger(__name__)


def build_keycloak_image(
    registry: containerregistry.Registry,
    credentials: RegistryCredentials,
    version: str,
    settings: Settings,
) -> docker.Image:
    """
    Build the Keycloak image locally and push it to the registry.

    The version doubles as the image tag and as the upstream Keycloak base
    image version passed to the Dockerfile.

    Args:
        registry: Registry to push to
        credentials: Registry admin credentials
        version: Keycloak version / image tag
        settings: Process settings (build context, Dockerfile, platform)

    Returns:
        The pushed image
    """
    image = docker.Image(
        "image-keycloak",
        image_name=registry.login_server.apply(
            lambda server: f"{server}/{KEYCLOAK_IMAGE_REPOSITORY}:{version}"
        ),
        skip_push=False,
        registry=docker.RegistryArgs(
            server=registry.login_server,
            username=credentials.username,
            password=credentials.password,
        ),
        build=docker.DockerBuildArgs(
            context=settings.keycloak_build_context,
            dockerfile=settings.keycloak_dockerfile,
            platform=settings.keycloak_image_platform,
            args={"KEYCLOAK_VERSION": version},
        ),
        opts=pulumi.ResourceOptions(depends_on=[registry]),
    )
    logger.log_resource_declared("image", f"{KEYCLOAK_IMAGE_REPOSITORY}:{version}")
    return image


def pinned_image_reference(image: docker.Image) -> pulumi.Output[str]:
    """Prefer the pushed digest so every push rolls a new revision."""
    return pulumi.Output.all(image.repo_digest, image.image_name).apply(
        lambda refs: refs[0] or refs[1]
    )


def image_reference_after(
    reference: pulumi.Input[str], ready: pulumi.Input[bool]
) -> pulumi.Output[str]:
    """
    Image reference that only resolves once ``ready`` has.

    A consumer of the returned reference is not created before ``ready``
    resolves, and fails with it if ``ready`` fails.
    """
    return pulumi.Output.all(reference, ready).apply(lambda args: args[0])
