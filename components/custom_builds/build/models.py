"""Models of the build API, as they are encoded for custom builder images."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, model_validator

StringMap = Annotated[dict[str, str], PlainSerializer(lambda m: dict(sorted(m.items())))]
"""A string to string map, serialized with sorted keys so equal builds encode the same."""


class _BuildApiModel(BaseModel):
    """Base for build API models, which are read-only once created."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Metadata(_BuildApiModel):
    """Basic k8s metadata spec."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    name: str
    namespace: str | None = None
    uid: str | None = None
    labels: StringMap = Field(default_factory=dict)
    annotations: StringMap = Field(default_factory=dict)
    creationTimestamp: datetime | None = None


class ObjectReference(_BuildApiModel):
    """Reference to an object, for builds usually a docker image."""

    kind: str = "DockerImage"
    name: str
    namespace: str | None = None


class LocalObjectReference(_BuildApiModel):
    """Reference to an object in the namespace of the build."""

    name: str


class KeySelector(_BuildApiModel):
    """Selects a key of a secret or config map."""

    name: str
    key: str
    optional: bool | None = None


class ObjectFieldSelector(_BuildApiModel):
    """Selects a field of the pod."""

    fieldPath: str
    apiVersion: str | None = None


class EnvVarSource(_BuildApiModel):
    """Source of an environment variable value."""

    fieldRef: ObjectFieldSelector | None = None
    configMapKeyRef: KeySelector | None = None
    secretKeyRef: KeySelector | None = None


class EnvVar(_BuildApiModel):
    """Environment variable definition."""

    name: str
    value: str | None = None
    valueFrom: EnvVarSource | None = None


class GitBuildSource(_BuildApiModel):
    """Git repository to build from."""

    uri: str
    ref: str | None = None


class BinaryBuildSource(_BuildApiModel):
    """Source streamed to the build pod on stdin when the build starts."""

    asFile: str | None = None


class ImageSourcePath(_BuildApiModel):
    """Path copied out of a source image."""

    sourcePath: str
    destinationDir: str


class ImageSource(_BuildApiModel):
    """Image whose content is used as additional build input."""

    from_: ObjectReference = Field(alias="from")
    paths: list[ImageSourcePath] = Field(default_factory=list)
    pullSecret: LocalObjectReference | None = None


class SecretBuildSource(_BuildApiModel):
    """Secret made available to the build as input."""

    secret: LocalObjectReference
    destinationDir: str | None = None


class BuildSource(_BuildApiModel):
    """Where the build takes its input from."""

    git: GitBuildSource | None = None
    binary: BinaryBuildSource | None = None
    contextDir: str | None = None
    images: list[ImageSource] = Field(default_factory=list)
    sourceSecret: LocalObjectReference | None = None
    secrets: list[SecretBuildSource] = Field(default_factory=list)


class SecretSpec(_BuildApiModel):
    """A secret mounted into the builder container at a fixed path."""

    secretSource: LocalObjectReference
    mountPath: str


class CustomBuildStrategy(_BuildApiModel):
    """Parameters of a build run by a custom builder image."""

    from_: ObjectReference = Field(alias="from")
    pullSecret: LocalObjectReference | None = None
    env: list[EnvVar] = Field(default_factory=list)
    exposeDockerSocket: bool = False
    forcePull: bool = False
    secrets: list[SecretSpec] = Field(default_factory=list)
    buildAPIVersion: str | None = None


class DockerBuildStrategy(_BuildApiModel):
    """Parameters of a build from a Dockerfile."""

    from_: ObjectReference | None = Field(default=None, alias="from")
    pullSecret: LocalObjectReference | None = None
    env: list[EnvVar] = Field(default_factory=list)
    forcePull: bool = False
    noCache: bool = False
    dockerfilePath: str | None = None


class SourceBuildStrategy(_BuildApiModel):
    """Parameters of a source-to-image build."""

    from_: ObjectReference = Field(alias="from")
    pullSecret: LocalObjectReference | None = None
    env: list[EnvVar] = Field(default_factory=list)
    forcePull: bool = False
    incremental: bool | None = None


class BuildStrategyType(StrEnum):
    """The kind of build strategy."""

    custom = "Custom"
    docker = "Docker"
    source = "Source"


class BuildStrategy(_BuildApiModel):
    """How the build is run, at most one of the strategies can be set."""

    type: BuildStrategyType | None = None
    customStrategy: CustomBuildStrategy | None = None
    dockerStrategy: DockerBuildStrategy | None = None
    sourceStrategy: SourceBuildStrategy | None = None

    @model_validator(mode="after")
    def validate_single_strategy(self) -> Self:
        """Validate that the strategies are mutually exclusive."""
        populated = [s for s in (self.customStrategy, self.dockerStrategy, self.sourceStrategy) if s is not None]
        if len(populated) > 1:
            raise ValueError("'customStrategy', 'dockerStrategy' and 'sourceStrategy' are mutually exclusive.")
        return self


class ImageLabel(_BuildApiModel):
    """Label applied to the resulting image."""

    name: str
    value: str | None = None


class BuildOutput(_BuildApiModel):
    """Where the result of the build is pushed."""

    to: ObjectReference | None = None
    pushSecret: LocalObjectReference | None = None
    imageLabels: list[ImageLabel] = Field(default_factory=list)


class ResourceRequirements(_BuildApiModel):
    """Compute resources of the build."""

    limits: StringMap = Field(default_factory=dict)
    requests: StringMap = Field(default_factory=dict)


class BuildSpec(_BuildApiModel):
    """Specification of a build."""

    serviceAccount: str | None = None
    source: BuildSource = Field(default_factory=BuildSource)
    strategy: BuildStrategy
    output: BuildOutput = Field(default_factory=BuildOutput)
    resources: ResourceRequirements = Field(default_factory=ResourceRequirements)
    completionDeadlineSeconds: int | None = Field(default=None, gt=0)
    nodeSelector: StringMap | None = None


class BuildPhase(StrEnum):
    """The phase a build is in."""

    new = "New"
    pending = "Pending"
    running = "Running"
    complete = "Complete"
    failed = "Failed"
    error = "Error"
    cancelled = "Cancelled"


class BuildStatus(_BuildApiModel):
    """Status of a build."""

    phase: BuildPhase = BuildPhase.new
    message: str | None = None


class Build(_BuildApiModel):
    """A build request."""

    metadata: Metadata
    spec: BuildSpec
    status: BuildStatus | None = None
