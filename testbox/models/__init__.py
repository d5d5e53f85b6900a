"""Data models for testbox."""

from .image import ImageReference
from .port import Port, PortLike
from .container import (
    BindMount,
    ContainerState,
    DockerInfo,
    ExecResult,
    RequestSpec,
    StopOptions,
    StoppedGenericContainer,
)
from .errors import (
    ErrorType,
    ErrorDetail,
    ErrorResponse,
    TestboxException,
    PortAllocationError,
    WaitTimeoutError,
    WaitStrategyConfigurationError,
    BuildVerificationError,
    NotBoundError,
    ContainerStoppedError,
    CollaboratorError,
)

__all__ = [
    # Identity models
    "ImageReference",
    "Port",
    "PortLike",
    # Container models
    "BindMount",
    "ContainerState",
    "DockerInfo",
    "ExecResult",
    "RequestSpec",
    "StopOptions",
    "StoppedGenericContainer",
    # Error models
    "ErrorType",
    "ErrorDetail",
    "ErrorResponse",
    "TestboxException",
    "PortAllocationError",
    "WaitTimeoutError",
    "WaitStrategyConfigurationError",
    "BuildVerificationError",
    "NotBoundError",
    "ContainerStoppedError",
    "CollaboratorError",
]
