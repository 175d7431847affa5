"""Secrets, docker socket and ownership of build pods.

Every function here is pure: it describes what has to be added to the pod as
a `PodPatch`, and the strategy merges the patches into the pod it builds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath

from kubernetes import client

from custom_builds.app_config import logging
from custom_builds.build import constants, models
from custom_builds.k8s.constants import DNS1123_LABEL_MAX_LENGTH
from custom_builds.k8s.naming import get_name

logger = logging.getLogger(__name__)


@dataclass(kw_only=True)
class PodPatch:
    """Additions to a pod and its builder container."""

    volumes: list[client.V1Volume] = field(default_factory=list)
    volume_mounts: list[client.V1VolumeMount] = field(default_factory=list)
    env: list[client.V1EnvVar] = field(default_factory=list)
    owner_references: list[client.V1OwnerReference] = field(default_factory=list)

    def __add__(self, other: PodPatch) -> PodPatch:
        return PodPatch(
            volumes=self.volumes + other.volumes,
            volume_mounts=self.volume_mounts + other.volume_mounts,
            env=self.env + other.env,
            owner_references=self.owner_references + other.owner_references,
        )

    def apply(self, pod: client.V1Pod, container: client.V1Container) -> None:
        """Merge the patch into the pod.

        Volumes whose name is already used by the pod are not added again, the
        mounts referencing them are still added to the container.
        """
        volumes = list(pod.spec.volumes or [])
        names = {v.name for v in volumes}
        for volume in self.volumes:
            if volume.name in names:
                continue
            names.add(volume.name)
            volumes.append(volume)
        pod.spec.volumes = volumes or None

        if self.volume_mounts:
            container.volume_mounts = list(container.volume_mounts or []) + self.volume_mounts
        if self.env:
            container.env = list(container.env or []) + self.env
        if self.owner_references:
            pod.metadata.owner_references = list(pod.metadata.owner_references or []) + self.owner_references


def secret_volume_name(secret_name: str, suffix: str) -> str:
    """Name of the volume holding a secret, a valid DNS-1123 label."""
    return get_name(secret_name, suffix, DNS1123_LABEL_MAX_LENGTH).replace(".", "-")


def mount_secret(secret_name: str, mount_path: PurePosixPath | str, suffix: str) -> PodPatch:
    """Mount a secret read-only at the given path."""
    volume_name = secret_volume_name(secret_name, suffix)
    return PodPatch(
        volumes=[
            client.V1Volume(
                name=volume_name,
                secret=client.V1SecretVolumeSource(
                    secret_name=secret_name,
                    default_mode=constants.SECRET_VOLUME_DEFAULT_MODE,
                ),
            )
        ],
        volume_mounts=[client.V1VolumeMount(name=volume_name, mount_path=str(mount_path), read_only=True)],
    )


def mount_docker_socket(socket_path: str = constants.DOCKER_SOCKET_PATH) -> PodPatch:
    """Give the builder container access to the docker socket of the node."""
    return PodPatch(
        volumes=[
            client.V1Volume(
                name=constants.DOCKER_SOCKET_VOLUME_NAME,
                host_path=client.V1HostPathVolumeSource(path=socket_path),
            )
        ],
        volume_mounts=[client.V1VolumeMount(name=constants.DOCKER_SOCKET_VOLUME_NAME, mount_path=socket_path)],
    )


def mount_registry_secrets(
    push_secret: models.LocalObjectReference | None,
    pull_secret: models.LocalObjectReference | None,
    image_sources: list[models.ImageSource],
) -> PodPatch:
    """Mount the docker config secrets used to push the result and pull the inputs."""
    patch = PodPatch()
    if push_secret is not None:
        patch += mount_secret(push_secret.name, constants.DOCKER_PUSH_SECRET_MOUNT_PATH, "push")
        patch.env.append(
            client.V1EnvVar(name=constants.ENV_PUSH_DOCKERCFG_PATH, value=str(constants.DOCKER_PUSH_SECRET_MOUNT_PATH))
        )
        logger.debug(f"Will mount push secret {push_secret.name} at {constants.DOCKER_PUSH_SECRET_MOUNT_PATH}")

    if pull_secret is not None:
        patch += mount_secret(pull_secret.name, constants.DOCKER_PULL_SECRET_MOUNT_PATH, "pull")
        patch.env.append(
            client.V1EnvVar(name=constants.ENV_PULL_DOCKERCFG_PATH, value=str(constants.DOCKER_PULL_SECRET_MOUNT_PATH))
        )
        logger.debug(f"Will mount pull secret {pull_secret.name} at {constants.DOCKER_PULL_SECRET_MOUNT_PATH}")

    for idx, image_source in enumerate(image_sources):
        if image_source.pullSecret is None:
            continue
        mount_path = constants.SOURCE_IMAGE_PULL_SECRET_MOUNT_PATH / str(idx)
        patch += mount_secret(image_source.pullSecret.name, mount_path, f"source-image{idx}")
        patch.env.append(
            client.V1EnvVar(name=f"{constants.ENV_PULL_SOURCE_DOCKERCFG_PATH_PREFIX}{idx}", value=str(mount_path))
        )
        logger.debug(f"Will mount source image pull secret {image_source.pullSecret.name} at {mount_path}")
    return patch


def mount_source_secret(source_secret: models.LocalObjectReference | None) -> PodPatch:
    """Mount the secret used to fetch the source, if any."""
    if source_secret is None:
        return PodPatch()
    patch = mount_secret(source_secret.name, constants.SOURCE_SECRET_MOUNT_PATH, "source")
    patch.env.append(
        client.V1EnvVar(name=constants.ENV_SOURCE_SECRET_PATH, value=str(constants.SOURCE_SECRET_MOUNT_PATH))
    )
    logger.debug(f"Will mount source secret {source_secret.name} at {constants.SOURCE_SECRET_MOUNT_PATH}")
    return patch


def mount_input_secrets(secrets: list[models.SecretBuildSource]) -> PodPatch:
    """Mount the secrets the build uses as input, each in its own directory."""
    patch = PodPatch()
    for secret in secrets:
        mount_path = constants.INPUT_SECRETS_MOUNT_PATH / secret.secret.name
        patch += mount_secret(secret.secret.name, mount_path, "build")
        logger.debug(f"Will mount input secret {secret.secret.name} at {mount_path}")
    return patch


def mount_additional_secrets(secrets: list[models.SecretSpec]) -> PodPatch:
    """Mount the secrets requested by the custom strategy at their declared paths."""
    patch = PodPatch()
    for secret in secrets:
        patch += mount_secret(secret.secretSource.name, secret.mountPath, "secret")
        logger.debug(f"Will mount additional secret {secret.secretSource.name} at {secret.mountPath}")
    return patch


def owner_reference(build: models.Build) -> PodPatch:
    """Make the build the controlling owner of the pod, so deleting the build deletes the pod."""
    return PodPatch(
        owner_references=[
            client.V1OwnerReference(
                api_version=str(constants.DEFAULT_BUILD_API_VERSION),
                kind=constants.BUILD_KIND,
                name=build.metadata.name,
                uid=build.metadata.uid or "",
                controller=True,
            )
        ]
    )
