"""Versioned encoding of builds into the payload handed to custom builder images.

The registry is created once, at process start, and only read afterwards. It is
passed explicitly to whatever needs to encode builds.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from custom_builds.build import constants, models
from custom_builds.errors import errors
from custom_builds.k8s.models import GVK, GroupVersion


@dataclass(frozen=True, kw_only=True)
class BuildCodec:
    """Encodes and decodes builds for a single API version."""

    gvk: GVK

    @property
    def group_version(self) -> GroupVersion:
        """The group version this codec writes."""
        return GroupVersion(group=self.gvk.group or "", version=self.gvk.version)

    def encode(self, build: models.Build) -> bytes:
        """Encode the build as compact json, with the type information first."""
        payload: dict[str, Any] = {
            "kind": self.gvk.kind,
            "apiVersion": self.gvk.group_version,
            **build.model_dump(mode="json", by_alias=True, exclude_none=True),
        }
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    def decode(self, payload: Mapping[str, Any]) -> models.Build:
        """Decode a json document that was already checked to be of this codec's version."""
        content = {k: v for k, v in payload.items() if k not in ("kind", "apiVersion")}
        return models.Build.model_validate(content)


class EncodingRegistry:
    """The build codecs known to this process, by group version."""

    def __init__(self, codecs: Iterable[BuildCodec], default_version: GroupVersion) -> None:
        self.__codecs: Mapping[GroupVersion, BuildCodec] = MappingProxyType({c.group_version: c for c in codecs})
        if default_version not in self.__codecs:
            raise errors.ConfigurationError(
                message=f"The default build API version {default_version} is not a registered version."
            )
        self.__default_version = default_version

    @property
    def default_version(self) -> GroupVersion:
        """The version used when no version is requested."""
        return self.__default_version

    @property
    def versions(self) -> list[GroupVersion]:
        """All registered versions."""
        return list(self.__codecs.keys())

    def codec_for(self, version: GroupVersion | None = None) -> BuildCodec:
        """Get the codec for a version, or the default codec."""
        gv = self.__default_version if version is None else version
        codec = self.__codecs.get(gv)
        if codec is None:
            raise errors.SerializationError(
                message=f"failed to encode the build: no kind {constants.BUILD_KIND!r} is registered "
                f"for version {str(gv)!r}"
            )
        return codec

    def encode(self, build: models.Build, version: GroupVersion | None = None) -> bytes:
        """Encode the build for the given version, or the default version."""
        codec = self.codec_for(version)
        try:
            return codec.encode(build)
        except (TypeError, ValueError) as err:
            raise errors.SerializationError(message=f"failed to encode the build: {err}") from err

    def decode(self, data: bytes | str) -> models.Build:
        """Decode a payload written by any of the registered codecs."""
        try:
            payload = json.loads(data)
        except ValueError as err:
            raise errors.SerializationError(message=f"failed to decode the build: {err}") from err
        if not isinstance(payload, dict):
            raise errors.SerializationError(message="failed to decode the build: the payload is not an object")

        kind = payload.get("kind")
        if kind != constants.BUILD_KIND:
            raise errors.SerializationError(message=f"failed to decode the build: unexpected kind {kind!r}")
        try:
            gv = GroupVersion.parse(str(payload.get("apiVersion", "")))
        except errors.ValidationError as err:
            raise errors.SerializationError(message=f"failed to decode the build: {err.message}") from err
        if gv not in self.__codecs:
            raise errors.SerializationError(
                message=f"failed to decode the build: version {str(gv)!r} is not registered"
            )

        try:
            return self.__codecs[gv].decode(payload)
        except PydanticValidationError as err:
            raise errors.SerializationError(message=f"failed to decode the build: {err}") from err


def default_registry(default_version: GroupVersion = constants.DEFAULT_BUILD_API_VERSION) -> EncodingRegistry:
    """The registry with the current and the legacy build API versions."""
    return EncodingRegistry(
        codecs=[
            BuildCodec(gvk=GVK.from_group_version(constants.DEFAULT_BUILD_API_VERSION, constants.BUILD_KIND)),
            BuildCodec(gvk=GVK.from_group_version(constants.LEGACY_BUILD_API_VERSION, constants.BUILD_KIND)),
        ],
        default_version=default_version,
    )
