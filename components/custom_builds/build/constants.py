"""Constants for custom build pods."""

from pathlib import PurePosixPath
from typing import Final

from custom_builds.k8s.models import GroupVersion

BUILD_API_GROUP: Final[str] = "build.openshift.io"

DEFAULT_BUILD_API_VERSION: Final[GroupVersion] = GroupVersion(group=BUILD_API_GROUP, version="v1")
"""The version builds are encoded with when the custom strategy does not ask for another one."""

LEGACY_BUILD_API_VERSION: Final[GroupVersion] = GroupVersion(version="v1")
"""The legacy core group version, still accepted by older custom builder images."""

BUILD_KIND: Final[str] = "Build"

CUSTOM_BUILD_CONTAINER_NAME: Final[str] = "custom-build"

BUILD_POD_SUFFIX: Final[str] = "build"

BUILD_NAME_LABEL: Final[str] = "openshift.io/build.name"
"""Label (and annotation) on the pod pointing back to its build."""

BUILDER_SERVICE_ACCOUNT_NAME: Final[str] = "builder"
"""The service account used when the build does not set one."""

DOCKER_SOCKET_PATH: Final[str] = "/var/run/docker.sock"
DOCKER_SOCKET_VOLUME_NAME: Final[str] = "docker-socket"

SECRETS_MOUNT_ROOT: Final[PurePosixPath] = PurePosixPath("/var/run/secrets/openshift.io")
DOCKER_PUSH_SECRET_MOUNT_PATH: Final[PurePosixPath] = SECRETS_MOUNT_ROOT / "push"
DOCKER_PULL_SECRET_MOUNT_PATH: Final[PurePosixPath] = SECRETS_MOUNT_ROOT / "pull"
SOURCE_IMAGE_PULL_SECRET_MOUNT_PATH: Final[PurePosixPath] = SECRETS_MOUNT_ROOT / "source-image"
SOURCE_SECRET_MOUNT_PATH: Final[PurePosixPath] = SECRETS_MOUNT_ROOT / "source"
INPUT_SECRETS_MOUNT_PATH: Final[PurePosixPath] = SECRETS_MOUNT_ROOT / "build"

SECRET_VOLUME_DEFAULT_MODE: Final[int] = 0o600

# Environment variable names handed to the builder image
ENV_BUILD: Final[str] = "BUILD"
ENV_SOURCE_REPOSITORY: Final[str] = "SOURCE_REPOSITORY"
ENV_SOURCE_URI: Final[str] = "SOURCE_URI"
ENV_SOURCE_CONTEXT_DIR: Final[str] = "SOURCE_CONTEXT_DIR"
ENV_SOURCE_REF: Final[str] = "SOURCE_REF"
ENV_OUTPUT_REGISTRY: Final[str] = "OUTPUT_REGISTRY"
ENV_OUTPUT_IMAGE: Final[str] = "OUTPUT_IMAGE"
ENV_DOCKER_SOCKET: Final[str] = "DOCKER_SOCKET"
ENV_PUSH_DOCKERCFG_PATH: Final[str] = "PUSH_DOCKERCFG_PATH"
ENV_PULL_DOCKERCFG_PATH: Final[str] = "PULL_DOCKERCFG_PATH"
ENV_PULL_SOURCE_DOCKERCFG_PATH_PREFIX: Final[str] = "PULL_SOURCE_DOCKERCFG_PATH_"
ENV_SOURCE_SECRET_PATH: Final[str] = "SOURCE_SECRET_PATH"
