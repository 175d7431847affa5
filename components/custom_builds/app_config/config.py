"""Configuration read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from custom_builds.app_config import logging
from custom_builds.build import constants
from custom_builds.build.codec import EncodingRegistry, default_registry
from custom_builds.errors import errors
from custom_builds.k8s.models import GroupVersion


@dataclass(frozen=True, kw_only=True)
class BuildPodsConfig:
    """Configuration for creating custom build pods."""

    default_service_account: str = constants.BUILDER_SERVICE_ACCOUNT_NAME
    docker_socket_path: str = constants.DOCKER_SOCKET_PATH
    default_api_version: GroupVersion = field(default=constants.DEFAULT_BUILD_API_VERSION)

    def __post_init__(self) -> None:
        if not self.default_service_account:
            raise errors.ConfigurationError(message="The default service account for builds cannot be empty.")
        if not PurePosixPath(self.docker_socket_path).is_absolute():
            raise errors.ConfigurationError(
                message=f"The docker socket path has to be absolute, got {self.docker_socket_path!r}."
            )

    @classmethod
    def from_env(cls, prefix: str = "") -> BuildPodsConfig:
        """Create a config from environment variables."""
        default_service_account = (
            os.environ.get(f"{prefix}BUILD_DEFAULT_SERVICE_ACCOUNT") or constants.BUILDER_SERVICE_ACCOUNT_NAME
        )
        docker_socket_path = os.environ.get(f"{prefix}BUILD_DOCKER_SOCKET_PATH") or constants.DOCKER_SOCKET_PATH
        default_api_version = constants.DEFAULT_BUILD_API_VERSION
        default_api_version_str = os.environ.get(f"{prefix}BUILD_DEFAULT_API_VERSION")
        if default_api_version_str:
            try:
                default_api_version = GroupVersion.parse(default_api_version_str)
            except errors.ValidationError as err:
                raise errors.ConfigurationError(
                    message=f"Could not parse BUILD_DEFAULT_API_VERSION {default_api_version_str!r}.",
                    detail=err.message,
                ) from err

        return cls(
            default_service_account=default_service_account,
            docker_socket_path=docker_socket_path,
            default_api_version=default_api_version,
        )


@dataclass(frozen=True, kw_only=True)
class AppConfig:
    """Everything a process translating builds into pods needs."""

    log_config: logging.Config
    builds: BuildPodsConfig
    registry: EncodingRegistry

    @classmethod
    def from_env(cls, prefix: str = "") -> AppConfig:
        """Create the config from environment variables, the registry only knows the built-in versions."""
        builds = BuildPodsConfig.from_env(prefix)
        return cls(
            log_config=logging.Config.from_env(prefix),
            builds=builds,
            registry=default_registry(builds.default_api_version),
        )
