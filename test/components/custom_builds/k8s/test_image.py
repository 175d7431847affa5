"""Tests for docker image references."""

import pytest

from custom_builds.errors import errors
from custom_builds.k8s.image import DockerImageReference


def test_parse_full_reference() -> None:
    ref = DockerImageReference.parse("registry.example.com:5000/team/app:1.0@sha256:" + "0" * 64)

    assert ref.registry == "registry.example.com:5000"
    assert ref.repository == "team/app"
    assert ref.tag == "1.0"
    assert ref.digest == "sha256:" + "0" * 64
    assert str(ref) == "registry.example.com:5000/team/app:1.0@sha256:" + "0" * 64


def test_nothing_is_defaulted() -> None:
    ref = DockerImageReference.parse("nginx")

    assert ref == DockerImageReference(repository="nginx")
    assert str(ref) == "nginx"


def test_first_component_without_dot_is_not_a_registry() -> None:
    ref = DockerImageReference.parse("library/nginx:1.28")

    assert ref.registry == ""
    assert ref.without_registry() == "library/nginx:1.28"


@pytest.mark.parametrize("value", ["", " nginx", "nginx:", "Nginx", "a//b", "reg.io/", "nginx@md5:12"])
def test_parse_invalid(value) -> None:
    with pytest.raises(errors.ValidationError):
        DockerImageReference.parse(value)


def test_tag_takes_precedence_over_digest_without_registry() -> None:
    ref = DockerImageReference.parse("quay.io/team/app:1.0@sha256:" + "0" * 64)

    assert ref.without_registry() == "team/app:1.0"
    assert DockerImageReference.parse("quay.io/team/app@sha256:" + "0" * 64).without_registry() == (
        "team/app@sha256:" + "0" * 64
    )
