"""Tests for the environment of custom builder containers."""

import pytest

from custom_builds.build import env, models
from custom_builds.errors import errors


def test_source_env_without_ref_or_context_dir() -> None:
    source = models.BuildSource(git=models.GitBuildSource(uri="https://example.com/app.git"))

    result = env.source_env(source)

    assert [(e.name, e.value) for e in result] == [
        ("SOURCE_REPOSITORY", "https://example.com/app.git"),
        ("SOURCE_URI", "https://example.com/app.git"),
    ]


def test_no_source_env_without_git(build_factory) -> None:
    build = build_factory(source={"contextDir": "web", "binary": {}})
    strategy = build.spec.strategy.customStrategy

    result = env.build_environment(b"{}", build, strategy, "/var/run/docker.sock")

    assert [e.name for e in result] == ["BUILD"]
    assert result[0].value == "{}"


@pytest.mark.parametrize(
    "name,registry,image",
    [
        ("app", "", "app"),
        ("team/app:1.0", "", "team/app:1.0"),
        ("localhost/app", "localhost", "app"),
        ("quay.io/team/app@sha256:" + "a" * 64, "quay.io", "team/app@sha256:" + "a" * 64),
        ("registry:5000/a/b/c:tag", "registry:5000", "a/b/c:tag"),
        ("quay.io/team/app:1.0@sha256:" + "b" * 64, "quay.io", "team/app:1.0"),
    ],
)
def test_output_env(name, registry, image) -> None:
    result = env.output_env(models.ObjectReference(name=name))

    assert [(e.name, e.value) for e in result] == [("OUTPUT_REGISTRY", registry), ("OUTPUT_IMAGE", image)]


@pytest.mark.parametrize("name", ["", "App", "app:", "quay.io/app:bad tag", "app@sha256:short"])
def test_output_env_invalid_reference(name) -> None:
    with pytest.raises(errors.ConfigurationError):
        env.output_env(models.ObjectReference(name=name))


def test_copy_env_overrides_keeps_order_and_sources() -> None:
    overrides = [
        models.EnvVar(name="A", value="1"),
        models.EnvVar(
            name="TOKEN",
            valueFrom=models.EnvVarSource(secretKeyRef=models.KeySelector(name="creds", key="token")),
        ),
        models.EnvVar(
            name="NODE",
            valueFrom=models.EnvVarSource(fieldRef=models.ObjectFieldSelector(fieldPath="spec.nodeName")),
        ),
        models.EnvVar(name="A", value="2"),
    ]

    result = env.copy_env_overrides(overrides)

    assert [e.name for e in result] == ["A", "TOKEN", "NODE", "A"]
    assert result[0].value == "1"
    assert result[3].value == "2"
    assert result[1].value_from.secret_key_ref.name == "creds"
    assert result[1].value_from.secret_key_ref.key == "token"
    assert result[1].value_from.config_map_key_ref is None
    assert result[2].value_from.field_ref.field_path == "spec.nodeName"
