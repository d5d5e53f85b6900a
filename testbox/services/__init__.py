"""Service layer for testbox.

This package provides the orchestration services:
- wait: readiness strategies and the poll loop
- container: GenericContainer builder and started-container handle
"""

from .container import GenericContainer, GenericContainerBuilder, StartedGenericContainer
from .wait import (
    AllWaitStrategy,
    HealthCheckWaitStrategy,
    HostAndInternalPortWaitStrategy,
    HostPortWaitStrategy,
    HttpWaitStrategy,
    InternalPortWaitStrategy,
    LogMessageWaitStrategy,
    WaitStrategy,
)

__all__ = [
    "GenericContainer",
    "GenericContainerBuilder",
    "StartedGenericContainer",
    "WaitStrategy",
    "AllWaitStrategy",
    "HealthCheckWaitStrategy",
    "HostAndInternalPortWaitStrategy",
    "HostPortWaitStrategy",
    "HttpWaitStrategy",
    "InternalPortWaitStrategy",
    "LogMessageWaitStrategy",
]
