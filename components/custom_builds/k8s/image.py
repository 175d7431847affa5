"""Parsing of docker image references like `registry:5000/team/app:1.0`."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final, Self

from custom_builds.errors import errors

_PATH_COMPONENT: Final[re.Pattern] = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|[-]+)[a-z0-9]+)*$")
_REGISTRY: Final[re.Pattern] = re.compile(
    r"^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?)(?:\.[a-zA-Z0-9-]+)*(?::[0-9]+)?$"
)
_TAG: Final[re.Pattern] = re.compile(r"^[\w][\w.-]{0,127}$")
_DIGEST: Final[re.Pattern] = re.compile(r"^[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9A-Fa-f]{32,}$")


@dataclass(frozen=True, eq=True, kw_only=True)
class DockerImageReference:
    """A parsed docker image reference.

    Unlike a pull, nothing is defaulted: a reference without a registry keeps
    an empty registry and a reference without a tag keeps an empty tag.
    """

    registry: str = ""
    repository: str
    tag: str = ""
    digest: str = ""

    @classmethod
    def parse(cls, value: str) -> Self:
        """Parse an image reference, raising a validation error when it is malformed."""
        if value == "" or value != value.strip():
            raise errors.ValidationError(message=f"Cannot parse the image reference {value!r}")

        remainder, _, digest = value.partition("@")
        if digest and not _DIGEST.match(digest):
            raise errors.ValidationError(message=f"Cannot parse the image reference {value!r}, invalid digest")

        registry = ""
        components = remainder.split("/")
        first = components[0]
        if len(components) > 1 and ("." in first or ":" in first or first == "localhost"):
            if not _REGISTRY.match(first):
                raise errors.ValidationError(message=f"Cannot parse the image reference {value!r}, invalid registry")
            registry = first
            components = components[1:]

        tag = ""
        last, sep, maybe_tag = components[-1].partition(":")
        if sep:
            if not _TAG.match(maybe_tag):
                raise errors.ValidationError(message=f"Cannot parse the image reference {value!r}, invalid tag")
            tag = maybe_tag
            components[-1] = last

        if not all(_PATH_COMPONENT.match(c) for c in components):
            raise errors.ValidationError(message=f"Cannot parse the image reference {value!r}, invalid name")

        return cls(registry=registry, repository="/".join(components), tag=tag, digest=digest)

    def without_registry(self) -> str:
        """The reference with the registry left out, a tag takes precedence over a digest."""
        if self.tag:
            return f"{self.repository}:{self.tag}"
        if self.digest:
            return f"{self.repository}@{self.digest}"
        return self.repository

    def __str__(self) -> str:
        ref = self.repository
        if self.registry:
            ref = f"{self.registry}/{ref}"
        if self.tag:
            ref = f"{ref}:{self.tag}"
        if self.digest:
            ref = f"{ref}@{self.digest}"
        return ref
