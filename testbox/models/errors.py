"""Error models and exception classes for testbox."""

import time
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ErrorType(str, Enum):
    """Error type enumeration."""

    PORT_ALLOCATION = "port_allocation"
    WAIT_TIMEOUT = "wait_timeout"
    CONFIGURATION = "configuration"
    BUILD_VERIFICATION = "build_verification"
    NOT_BOUND = "not_bound"
    CONTAINER_STOPPED = "container_stopped"
    COLLABORATOR = "collaborator"


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: Optional[str] = Field(None, description="Field name the error relates to")
    message: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Machine-readable error code")


class ErrorResponse(BaseModel):
    """Structured error representation, used for logging and CLI output."""

    error: str = Field(..., description="Main error message")
    error_type: ErrorType = Field(..., description="Error category")
    details: Optional[List[ErrorDetail]] = Field(
        None, description="Additional error details"
    )
    timestamp: float = Field(default_factory=time.time, description="Error timestamp")

    class Config:
        use_enum_values = True


# Custom Exception Classes


class TestboxException(Exception):
    """Base exception for testbox."""

    __test__ = False  # keep pytest from collecting this as a test class

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: Optional[List[ErrorDetail]] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.details = details or []
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.message,
            error_type=self.error_type,
            details=self.details if self.details else None,
        )

    def to_dict(self) -> dict:
        """Convert exception to a plain dict for structured logs."""
        return self.to_response().model_dump(exclude_none=True)


class PortAllocationError(TestboxException):
    """A requested port could not be bound to a free host port."""

    def __init__(self, port: object, reason: str, **kwargs):
        self.port = port
        super().__init__(
            message=f"Failed to allocate a host port for {port}: {reason}",
            error_type=ErrorType.PORT_ALLOCATION,
            **kwargs,
        )


class WaitTimeoutError(TestboxException, TimeoutError):
    """Readiness check never succeeded within the startup timeout."""

    def __init__(
        self, strategy: str, timeout: float, attempts: int, container_id: str = "", **kwargs
    ):
        self.strategy = strategy
        self.timeout = timeout
        self.attempts = attempts
        self.container_id = container_id
        target = f" for container {container_id[:12]}" if container_id else ""
        super().__init__(
            message=(
                f"{strategy} did not report ready{target} within {timeout:g}s "
                f"({attempts} attempts)"
            ),
            error_type=ErrorType.WAIT_TIMEOUT,
            **kwargs,
        )


class WaitStrategyConfigurationError(TestboxException):
    """A wait strategy cannot be applied to this container at all."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message=message, error_type=ErrorType.CONFIGURATION, **kwargs)


class BuildVerificationError(TestboxException):
    """An image build completed but the resulting image is not listed locally."""

    def __init__(self, image: object, **kwargs):
        self.image = image
        super().__init__(
            message=f"Image build reported success but {image} is not available locally",
            error_type=ErrorType.BUILD_VERIFICATION,
            **kwargs,
        )


class NotBoundError(TestboxException, KeyError):
    """A mapped port was requested for a port that was never exposed."""

    def __init__(self, port: object, **kwargs):
        self.port = port
        super().__init__(
            message=f"Port {port} was not exposed on this container",
            error_type=ErrorType.NOT_BOUND,
            **kwargs,
        )

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.message


class ContainerStoppedError(TestboxException):
    """An operation was attempted on a container that has been stopped and removed."""

    def __init__(self, container_id: str, operation: str, **kwargs):
        self.container_id = container_id
        self.operation = operation
        super().__init__(
            message=f"Cannot {operation}: container {container_id[:12]} has been stopped",
            error_type=ErrorType.CONTAINER_STOPPED,
            **kwargs,
        )


class CollaboratorError(TestboxException):
    """A call to the container engine failed."""

    def __init__(self, operation: str, message: str, **kwargs):
        self.operation = operation
        super().__init__(
            message=f"Docker {operation} failed: {message}",
            error_type=ErrorType.COLLABORATOR,
            **kwargs,
        )
