"""Engine-facing core: port allocation, container handles and the Docker client."""

from .ports import BoundPorts, PortBinder
from .container import Container
from .client import (
    CreateOptions,
    DockerClient,
    DockerEngineClient,
    create_docker_client,
    resolve_host,
)

__all__ = [
    "BoundPorts",
    "PortBinder",
    "Container",
    "CreateOptions",
    "DockerClient",
    "DockerEngineClient",
    "create_docker_client",
    "resolve_host",
]
