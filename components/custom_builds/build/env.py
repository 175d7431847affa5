"""Environment of the custom builder container."""

from kubernetes import client

from custom_builds.build import constants, models
from custom_builds.errors import errors
from custom_builds.k8s.image import DockerImageReference


def source_env(source: models.BuildSource) -> list[client.V1EnvVar]:
    """Variables describing the git source of the build."""
    env: list[client.V1EnvVar] = []
    if source.git is not None:
        env.append(client.V1EnvVar(name=constants.ENV_SOURCE_REPOSITORY, value=source.git.uri))
        env.append(client.V1EnvVar(name=constants.ENV_SOURCE_URI, value=source.git.uri))
    if source.contextDir:
        env.append(client.V1EnvVar(name=constants.ENV_SOURCE_CONTEXT_DIR, value=source.contextDir))
    if source.git is not None and source.git.ref:
        env.append(client.V1EnvVar(name=constants.ENV_SOURCE_REF, value=source.git.ref))
    return env


def output_env(to: models.ObjectReference) -> list[client.V1EnvVar]:
    """Variables describing where the built image is pushed to."""
    if to.kind != "DockerImage":
        raise errors.ConfigurationError(
            message=f"failed to parse the output docker tag {to.name!r}: invalid build output kind {to.kind}, "
            "must be DockerImage"
        )
    try:
        ref = DockerImageReference.parse(to.name)
    except errors.ValidationError as err:
        raise errors.ConfigurationError(
            message=f"failed to parse the output docker tag {to.name!r}", detail=err.message
        ) from err
    return [
        client.V1EnvVar(name=constants.ENV_OUTPUT_REGISTRY, value=ref.registry),
        client.V1EnvVar(name=constants.ENV_OUTPUT_IMAGE, value=ref.without_registry()),
    ]


def _key_selector(selector: models.KeySelector | None, cls: type) -> object | None:
    if selector is None:
        return None
    return cls(name=selector.name, key=selector.key, optional=selector.optional)


def copy_env_overrides(env: list[models.EnvVar]) -> list[client.V1EnvVar]:
    """Convert the environment of the strategy, keeping order and duplicates."""
    result = []
    for var in env:
        value_from = None
        if var.valueFrom is not None:
            field_ref = None
            if var.valueFrom.fieldRef is not None:
                field_ref = client.V1ObjectFieldSelector(
                    field_path=var.valueFrom.fieldRef.fieldPath,
                    api_version=var.valueFrom.fieldRef.apiVersion,
                )
            value_from = client.V1EnvVarSource(
                field_ref=field_ref,
                config_map_key_ref=_key_selector(var.valueFrom.configMapKeyRef, client.V1ConfigMapKeySelector),
                secret_key_ref=_key_selector(var.valueFrom.secretKeyRef, client.V1SecretKeySelector),
            )
        result.append(client.V1EnvVar(name=var.name, value=var.value, value_from=value_from))
    return result


def build_environment(
    payload: bytes,
    build: models.Build,
    strategy: models.CustomBuildStrategy,
    docker_socket_path: str,
) -> list[client.V1EnvVar]:
    """Assemble the environment of the builder container.

    The order is fixed: the encoded build, the source, the output, the
    overrides of the strategy and finally the docker socket. Overrides are
    appended as they are, so a name can appear more than once.
    """
    env = [client.V1EnvVar(name=constants.ENV_BUILD, value=payload.decode("utf-8"))]
    if build.spec.source.git is not None:
        env.extend(source_env(build.spec.source))
    if build.spec.output.to is not None:
        env.extend(output_env(build.spec.output.to))
    env.extend(copy_env_overrides(strategy.env))
    if strategy.exposeDockerSocket:
        env.append(client.V1EnvVar(name=constants.ENV_DOCKER_SOCKET, value=docker_socket_path))
    return env
