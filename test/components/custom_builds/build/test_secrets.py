"""Tests for secret mounts and ownership of build pods."""

from kubernetes import client

from custom_builds.build import models, secrets


def make_pod() -> tuple[client.V1Pod, client.V1Container]:
    container = client.V1Container(name="custom-build", env=[client.V1EnvVar(name="BUILD", value="{}")])
    pod = client.V1Pod(metadata=client.V1ObjectMeta(name="app-1-build"), spec=client.V1PodSpec(containers=[container]))
    return pod, container


def test_mount_secret() -> None:
    patch = secrets.mount_secret("my.secret", "/etc/secret", "build")

    assert len(patch.volumes) == 1
    volume = patch.volumes[0]
    assert volume.name == "my-secret-build"
    assert volume.secret.secret_name == "my.secret"
    assert volume.secret.default_mode == 0o600
    mount = patch.volume_mounts[0]
    assert mount.name == "my-secret-build"
    assert mount.mount_path == "/etc/secret"
    assert mount.read_only is True


def test_secret_volume_name_is_a_label() -> None:
    name = secrets.secret_volume_name("s" * 100, "source-image0")

    assert len(name) <= 63
    assert name == secrets.secret_volume_name("s" * 100, "source-image0")
    assert name != secrets.secret_volume_name("s" * 99 + "t", "source-image0")


def test_mount_docker_socket() -> None:
    patch = secrets.mount_docker_socket()

    assert patch.volumes[0].name == "docker-socket"
    assert patch.volumes[0].host_path.path == "/var/run/docker.sock"
    assert patch.volume_mounts[0].mount_path == "/var/run/docker.sock"
    assert patch.env == []


def test_mount_registry_secrets() -> None:
    images = [
        models.ImageSource(from_=models.ObjectReference(name="base:1")),
        models.ImageSource(
            from_=models.ObjectReference(name="tools:1"), pullSecret=models.LocalObjectReference(name="tools")
        ),
    ]

    patch = secrets.mount_registry_secrets(
        models.LocalObjectReference(name="push"), models.LocalObjectReference(name="pull"), images
    )

    assert [v.name for v in patch.volumes] == ["push-push", "pull-pull", "tools-source-image1"]
    assert [(e.name, e.value) for e in patch.env] == [
        ("PUSH_DOCKERCFG_PATH", "/var/run/secrets/openshift.io/push"),
        ("PULL_DOCKERCFG_PATH", "/var/run/secrets/openshift.io/pull"),
        ("PULL_SOURCE_DOCKERCFG_PATH_1", "/var/run/secrets/openshift.io/source-image/1"),
    ]


def test_mount_registry_secrets_without_secrets() -> None:
    patch = secrets.mount_registry_secrets(None, None, [])

    assert patch == secrets.PodPatch()


def test_mount_source_secret() -> None:
    assert secrets.mount_source_secret(None) == secrets.PodPatch()

    patch = secrets.mount_source_secret(models.LocalObjectReference(name="git"))

    assert patch.volume_mounts[0].mount_path == "/var/run/secrets/openshift.io/source"
    assert [(e.name, e.value) for e in patch.env] == [("SOURCE_SECRET_PATH", "/var/run/secrets/openshift.io/source")]


def test_mount_input_and_additional_secrets() -> None:
    inputs = secrets.mount_input_secrets(
        [models.SecretBuildSource(secret=models.LocalObjectReference(name="settings"), destinationDir="conf")]
    )
    additional = secrets.mount_additional_secrets(
        [models.SecretSpec(secretSource=models.LocalObjectReference(name="key"), mountPath="/etc/key")]
    )

    assert inputs.volume_mounts[0].mount_path == "/var/run/secrets/openshift.io/build/settings"
    assert additional.volume_mounts[0].mount_path == "/etc/key"
    assert additional.volumes[0].name == "key-secret"


def test_apply_does_not_duplicate_volumes() -> None:
    pod, container = make_pod()
    patch = secrets.mount_additional_secrets(
        [
            models.SecretSpec(secretSource=models.LocalObjectReference(name="key"), mountPath="/etc/key"),
            models.SecretSpec(secretSource=models.LocalObjectReference(name="key"), mountPath="/opt/key"),
        ]
    )

    patch.apply(pod, container)

    assert [v.name for v in pod.spec.volumes] == ["key-secret"]
    assert [m.mount_path for m in container.volume_mounts] == ["/etc/key", "/opt/key"]


def test_apply_appends_env_and_owner(build_factory) -> None:
    pod, container = make_pod()
    build = build_factory()

    (secrets.mount_source_secret(models.LocalObjectReference(name="git")) + secrets.owner_reference(build)).apply(
        pod, container
    )

    assert [e.name for e in container.env] == ["BUILD", "SOURCE_SECRET_PATH"]
    owner = pod.metadata.owner_references[0]
    assert owner.api_version == "build.openshift.io/v1"
    assert owner.kind == "Build"
    assert owner.name == build.metadata.name
    assert owner.controller is True


def test_owner_reference_without_uid(build_factory) -> None:
    build = build_factory()
    build = build.model_copy(update={"metadata": build.metadata.model_copy(update={"uid": None})})

    assert secrets.owner_reference(build).owner_references[0].uid == ""
