"""Creation of the pod running a build with a custom builder image."""

from __future__ import annotations

from dataclasses import dataclass, field

from kubernetes import client

from custom_builds.app_config import logging
from custom_builds.app_config.config import BuildPodsConfig
from custom_builds.build import constants, models, secrets
from custom_builds.build.codec import EncodingRegistry
from custom_builds.build.env import build_environment
from custom_builds.errors import errors
from custom_builds.k8s.constants import DNS1123_SUBDOMAIN_MAX_LENGTH
from custom_builds.k8s.models import GroupVersion
from custom_builds.k8s.naming import get_name, label_value

logger = logging.getLogger(__name__)


def build_pod_name(build: models.Build) -> str:
    """The name of the pod running the build, the same name for the same build name."""
    return get_name(build.metadata.name, constants.BUILD_POD_SUFFIX, DNS1123_SUBDOMAIN_MAX_LENGTH)


def copy_resources(resources: models.ResourceRequirements) -> client.V1ResourceRequirements:
    """Convert the resources of the build to the ones of the builder container."""
    return client.V1ResourceRequirements(
        limits=dict(resources.limits) or None,
        requests=dict(resources.requests) or None,
    )


def validate_custom_strategy(build: models.Build) -> models.CustomBuildStrategy:
    """Get the custom strategy of the build, making sure it can be executed."""
    strategy = build.spec.strategy.customStrategy
    if strategy is None:
        raise errors.ConfigurationError(
            message="CustomBuildStrategy cannot be executed without CustomStrategy parameters"
        )
    if not strategy.from_.name:
        raise errors.ConfigurationError(message="CustomBuildStrategy cannot be executed without image")
    return strategy


@dataclass(frozen=True, kw_only=True)
class CustomBuildPodStrategy:
    """Creates pods for builds using the custom strategy.

    Instances hold no state besides the read-only registry and config, so one
    instance can serve any number of concurrent callers.
    """

    registry: EncodingRegistry
    config: BuildPodsConfig = field(default_factory=BuildPodsConfig)

    def encode_build(self, build: models.Build, strategy: models.CustomBuildStrategy) -> bytes:
        """Encode the build for the version requested by the strategy, or the configured default version."""
        version = self.config.default_api_version
        if strategy.buildAPIVersion:
            try:
                version = GroupVersion.parse(strategy.buildAPIVersion)
            except errors.ValidationError as err:
                raise errors.FatalInputError(
                    message="failed to parse buildAPIVersion specified in custom build strategy "
                    f"({strategy.buildAPIVersion!r}): {err.message}"
                ) from err
        return self.registry.encode(build, version)

    def create_build_pod(self, build: models.Build) -> client.V1Pod:
        """Create the pod to be used for the custom build.

        Raises a `ConfigurationError` when the build lacks custom strategy
        parameters or a builder image, a `FatalInputError` when the requested
        API version cannot be parsed and a `SerializationError` when the build
        cannot be encoded. No pod is created in any of these cases.
        """
        rlogger = logging.with_request_id(logger, f"{build.metadata.namespace}/{build.metadata.name}")
        strategy = validate_custom_strategy(build)
        payload = self.encode_build(build, strategy)
        env = build_environment(payload, build, strategy, self.config.docker_socket_path)

        pull_policy = "IfNotPresent"
        if strategy.forcePull:
            rlogger.info("ForcePull is enabled for the build")
            pull_policy = "Always"

        container = client.V1Container(
            name=constants.CUSTOM_BUILD_CONTAINER_NAME,
            image=strategy.from_.name,
            env=env,
            # TODO: run unprivileged once custom builder images no longer need a privileged container
            security_context=client.V1SecurityContext(privileged=True),
            termination_message_policy="FallbackToLogsOnError",
            image_pull_policy=pull_policy,
            resources=copy_resources(build.spec.resources),
        )
        if build.spec.source.binary is not None:
            container.stdin = True
            container.stdin_once = True

        pod = client.V1Pod(
            api_version="v1",
            kind="Pod",
            metadata=client.V1ObjectMeta(
                name=build_pod_name(build),
                namespace=build.metadata.namespace,
                labels={constants.BUILD_NAME_LABEL: label_value(build.metadata.name)},
                annotations={constants.BUILD_NAME_LABEL: build.metadata.name},
            ),
            spec=client.V1PodSpec(
                service_account_name=build.spec.serviceAccount or self.config.default_service_account,
                containers=[container],
                restart_policy="Never",
                node_selector=dict(build.spec.nodeSelector) if build.spec.nodeSelector is not None else None,
                active_deadline_seconds=build.spec.completionDeadlineSeconds,
            ),
        )

        patches: list[secrets.PodPatch] = []
        if strategy.exposeDockerSocket:
            rlogger.info("ExposeDockerSocket is enabled for the build")
            patches.append(secrets.mount_docker_socket(self.config.docker_socket_path))
            patches.append(
                secrets.mount_registry_secrets(
                    build.spec.output.pushSecret, strategy.pullSecret, build.spec.source.images
                )
            )
        patches.append(secrets.mount_source_secret(build.spec.source.sourceSecret))
        patches.append(secrets.mount_input_secrets(build.spec.source.secrets))
        patches.append(secrets.mount_additional_secrets(strategy.secrets))
        patches.append(secrets.owner_reference(build))
        for patch in patches:
            patch.apply(pod, container)

        rlogger.debug(f"Created pod {pod.metadata.name} with builder image {strategy.from_.name}")
        return pod
