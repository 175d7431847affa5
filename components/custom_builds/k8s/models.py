"""Models for k8s API versions and objects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Self, cast

import kubernetes

from custom_builds.errors import errors
from custom_builds.k8s.constants import GVK_CORE_GROUP

sanitizer = kubernetes.client.ApiClient().sanitize_for_serialization


def to_manifest(obj: Any) -> dict[str, Any]:
    """Serialize a kubernetes client model into a plain manifest with camelCase keys."""
    return cast(dict[str, Any], sanitizer(obj))


@dataclass(kw_only=True, frozen=True)
class GroupVersion:
    """An API group and version, the group is empty for the legacy core API."""

    group: str = ""
    version: str = ""

    @property
    def empty(self) -> bool:
        """Whether neither a group nor a version is set."""
        return self.group == "" and self.version == ""

    @classmethod
    def parse(cls, value: str) -> Self:
        """Parse strings like `v1` or `build.openshift.io/v1`.

        An empty string or a single `/` are the empty group version. More than one `/` is an error.
        """
        if value == "" or value == "/":
            return cls()
        match value.count("/"):
            case 0:
                return cls(version=value)
            case 1:
                group, version = value.split("/")
                return cls(group=group, version=version)
            case _:
                raise errors.ValidationError(message=f"unexpected GroupVersion string: {value}")

    def __str__(self) -> str:
        if self.group == "":
            return self.version
        return f"{self.group}/{self.version}"


@dataclass(kw_only=True, frozen=True)
class GVK:
    """The information about the group, version and kind of a K8s object."""

    kind: str
    version: str
    group: str | None = None

    @property
    def group_version(self) -> str:
        """Get the group and version joined by '/'."""
        if self.group is None or self.group.lower() == GVK_CORE_GROUP:
            return self.version
        return f"{self.group}/{self.version}"

    @classmethod
    def from_group_version(cls, gv: GroupVersion, kind: str) -> Self:
        """Create a GVK from a parsed group version and a kind."""
        return cls(kind=kind, version=gv.version, group=gv.group or None)
