"""Wait strategies deciding when a started container is ready.

This package provides the readiness poll loop and its policies:
- base.py: WaitStrategy and the poll loop
- port.py: host port, internal port and the combined default
- log.py: output pattern matching
- http.py: HTTP endpoint polling
- health.py: engine-reported health status
- composite.py: logical AND of strategies
"""

from .base import WaitStrategy
from .composite import AllWaitStrategy
from .health import HealthCheckWaitStrategy
from .http import HttpWaitStrategy
from .log import LogMessageWaitStrategy
from .port import (
    HostAndInternalPortWaitStrategy,
    HostPortWaitStrategy,
    InternalPortWaitStrategy,
    internal_port_commands,
    is_host_port_open,
)

__all__ = [
    "WaitStrategy",
    "AllWaitStrategy",
    "HealthCheckWaitStrategy",
    "HttpWaitStrategy",
    "LogMessageWaitStrategy",
    "HostAndInternalPortWaitStrategy",
    "HostPortWaitStrategy",
    "InternalPortWaitStrategy",
    "internal_port_commands",
    "is_host_port_open",
]
