"""Exceptions raised while translating builds into pods."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional


class ErrorKind(StrEnum):
    """The category of an error, used by callers to decide on retries."""

    configuration = "configuration"
    fatal_input = "fatal_input"
    serialization = "serialization"
    validation = "validation"


@dataclass
class BaseError(Exception):
    """Base class for all exceptions."""

    kind: ErrorKind
    code: int = 1500
    message: str = "An unexpected error occurred"
    detail: Optional[str] = None

    @property
    def retryable(self) -> bool:
        """Whether the same request may succeed when tried again unmodified."""
        return self.kind == ErrorKind.serialization

    def __repr__(self) -> str:
        """String representation of the error."""
        return f"{self.__class__.__qualname__}: {self.message}"

    def __str__(self) -> str:
        """String representation of the error."""
        return f"{self.__class__.__qualname__}: {self.message}"


# ! IMPORTANT: keep this list ordered by error code.


@dataclass
class ConfigurationError(BaseError):
    """Raised when a build or the process is not configured well enough to produce a pod.

    The caller should not retry before the configuration has been corrected.
    """

    code: int = 1400
    kind: ErrorKind = ErrorKind.configuration
    message: str = "The build is not properly configured and cannot be executed"


@dataclass
class FatalInputError(BaseError):
    """Raised when the build request is malformed in a way that can never succeed unmodified."""

    code: int = 1410
    kind: ErrorKind = ErrorKind.fatal_input
    message: str = "The build request is malformed."


@dataclass
class ValidationError(BaseError):
    """Raised when the inputs or outputs are invalid."""

    code: int = 1422
    kind: ErrorKind = ErrorKind.validation
    message: str = "The provided input is invalid"


@dataclass
class SerializationError(BaseError):
    """Raised when the build cannot be encoded into, or decoded from, its wire format."""

    code: int = 1510
    kind: ErrorKind = ErrorKind.serialization
    message: str = "An error occurred serializing the build."
