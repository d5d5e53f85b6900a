"""testbox - disposable Docker containers for integration tests."""

__version__ = "0.1.0"

from .core import DockerClient, DockerEngineClient, create_docker_client
from .models import (
    BindMount,
    BuildVerificationError,
    CollaboratorError,
    ContainerState,
    ContainerStoppedError,
    DockerInfo,
    ErrorType,
    ExecResult,
    ImageReference,
    NotBoundError,
    Port,
    PortAllocationError,
    StopOptions,
    StoppedGenericContainer,
    TestboxException,
    WaitStrategyConfigurationError,
    WaitTimeoutError,
)
from .services import (
    AllWaitStrategy,
    GenericContainer,
    GenericContainerBuilder,
    HealthCheckWaitStrategy,
    HostAndInternalPortWaitStrategy,
    HostPortWaitStrategy,
    HttpWaitStrategy,
    InternalPortWaitStrategy,
    LogMessageWaitStrategy,
    StartedGenericContainer,
    WaitStrategy,
)

__all__ = [
    "__version__",
    # Engine
    "DockerClient",
    "DockerEngineClient",
    "create_docker_client",
    # Containers
    "GenericContainer",
    "GenericContainerBuilder",
    "StartedGenericContainer",
    "StoppedGenericContainer",
    "StopOptions",
    # Wait strategies
    "WaitStrategy",
    "AllWaitStrategy",
    "HealthCheckWaitStrategy",
    "HostAndInternalPortWaitStrategy",
    "HostPortWaitStrategy",
    "HttpWaitStrategy",
    "InternalPortWaitStrategy",
    "LogMessageWaitStrategy",
    # Models
    "BindMount",
    "ContainerState",
    "DockerInfo",
    "ExecResult",
    "ImageReference",
    "Port",
    # Errors
    "ErrorType",
    "TestboxException",
    "BuildVerificationError",
    "CollaboratorError",
    "ContainerStoppedError",
    "NotBoundError",
    "PortAllocationError",
    "WaitStrategyConfigurationError",
    "WaitTimeoutError",
]
