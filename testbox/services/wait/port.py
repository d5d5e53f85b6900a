"""Port based wait strategies.

Connecting to a published host port can succeed before anything listens in
the container (the Docker userland proxy accepts on its behalf), so the
default policy requires both the host-side and the in-container check.
"""

import asyncio
from typing import List, Optional

import structlog

from ...core.container import Container
from ...core.ports import BoundPorts
from ...models.container import ContainerState
from ...models.port import Port
from .base import WaitStrategy
from .composite import AllWaitStrategy

logger = structlog.get_logger(__name__)

CONNECT_TIMEOUT_SECONDS = 1.0


class HostPortWaitStrategy(WaitStrategy):
    """Ready when a TCP connection to every published host port succeeds."""

    def __init__(self, host: Optional[str] = None):
        """Initialize the strategy.

        Args:
            host: Address to connect to, defaults to the container's host
        """
        super().__init__()
        self.host = host

    async def check_ready(
        self, container: Container, state: ContainerState, bound_ports: BoundPorts
    ) -> bool:
        host = self.host or container.host
        for internal, host_port in bound_ports:
            if internal.protocol != "tcp":
                continue
            if not await is_host_port_open(host, host_port.number):
                logger.debug("Host port not open yet", host=host, port=host_port.number)
                return False
        return True


class InternalPortWaitStrategy(WaitStrategy):
    """Ready when every exposed port is listening inside the container.

    Runs a few probe commands via exec since images differ in which tools
    they ship; a port counts as open when any probe exits 0.
    """

    async def check_ready(
        self, container: Container, state: ContainerState, bound_ports: BoundPorts
    ) -> bool:
        for internal in bound_ports.internal_ports():
            if not await self._is_listening(container, internal):
                logger.debug(
                    "Internal port not open yet",
                    container_id=container.id[:12],
                    port=str(internal),
                )
                return False
        return True

    async def _is_listening(self, container: Container, port: Port) -> bool:
        results = await asyncio.gather(
            *(self._probe(container, command) for command in internal_port_commands(port))
        )
        return any(results)

    async def _probe(self, container: Container, command: List[str]) -> bool:
        result = await container.exec(command)
        return result.exit_code == 0


class HostAndInternalPortWaitStrategy(AllWaitStrategy):
    """Default policy: both host and internal port checks must pass."""

    def __init__(self, host: Optional[str] = None):
        super().__init__(HostPortWaitStrategy(host), InternalPortWaitStrategy())


async def is_host_port_open(
    host: str, port: int, timeout: float = CONNECT_TIMEOUT_SECONDS
) -> bool:
    """Try one TCP connection; refusal or timeout means not open."""
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout)
    except (OSError, asyncio.TimeoutError):
        return False
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


def internal_port_commands(port: Port) -> List[List[str]]:
    """Shell commands that exit 0 when ``port`` is bound inside a container."""
    port_hex = format(port.number, "04X")
    if port.protocol == "udp":
        return [
            ["/bin/sh", "-c", f"cat /proc/net/udp* | awk '{{print $2}}' | grep -i ':{port_hex}$'"],
        ]
    return [
        ["/bin/sh", "-c", f"cat /proc/net/tcp* | awk '{{print $2}}' | grep -i ':{port_hex}$'"],
        ["/bin/sh", "-c", f"nc -vz -w 1 localhost {port.number}"],
        ["/bin/bash", "-c", f"</dev/tcp/localhost/{port.number}"],
    ]
