"""Host port allocation for exposed container ports.

PortBinder claims one free ephemeral host port per requested container port
and returns an immutable BoundPorts map. Ports are found by binding probe
sockets to port 0 and reading back the number the OS picked.

Known limitation: the probe sockets are closed before Docker publishes the
binding, so another process can grab a port in between. This race is
inherent to ephemeral-port probing and is not guarded against here.
"""

import asyncio
import contextlib
import socket
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import structlog

from ..config import settings
from ..models.errors import NotBoundError, PortAllocationError
from ..models.port import Port, PortLike

logger = structlog.get_logger(__name__)


class BoundPorts:
    """Immutable, ordered mapping of container ports to host ports.

    Iteration yields ``(internal, host)`` pairs in the order the ports
    were requested.
    """

    __slots__ = ("_pairs", "_index")

    def __init__(self, pairs: Iterable[Tuple[Port, Port]] = ()):
        self._pairs: Tuple[Tuple[Port, Port], ...] = tuple(pairs)
        self._index: Dict[Port, Port] = {}

        host_ports = set()
        for internal, host in self._pairs:
            if internal in self._index:
                raise ValueError(f"Container port {internal} bound twice")
            if host in host_ports:
                raise ValueError(f"Host port {host} bound twice")
            self._index[internal] = host
            host_ports.add(host)

    def __iter__(self) -> Iterator[Tuple[Port, Port]]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __contains__(self, port: object) -> bool:
        try:
            return Port.of(port) in self._index  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False

    def __repr__(self) -> str:
        pairs = ", ".join(f"{internal}->{host.number}" for internal, host in self._pairs)
        return f"BoundPorts({pairs})"

    def items(self) -> List[Tuple[Port, Port]]:
        """Ordered (internal, host) pairs."""
        return list(self._pairs)

    def internal_ports(self) -> List[Port]:
        """Requested container ports in request order."""
        return [internal for internal, _ in self._pairs]

    def get_binding(self, port: PortLike) -> Port:
        """Get the host port bound to a container port.

        Args:
            port: Container port that was requested

        Returns:
            Host port bound to it

        Raises:
            NotBoundError: If the port was never requested
        """
        try:
            return self._index[Port.of(port)]
        except (KeyError, ValueError):
            raise NotBoundError(port) from None

    def to_port_bindings(self) -> Dict[str, int]:
        """Port bindings in the format of the docker SDK ``ports=`` argument."""
        return {str(internal): host.number for internal, host in self._pairs}


class PortBinder:
    """Claims free host ports for a set of container ports."""

    def __init__(self, bind_address: Optional[str] = None):
        """Initialize the binder.

        Args:
            bind_address: Local address to probe on, defaults to settings.port_bind_address
        """
        self.bind_address = (
            settings.port_bind_address if bind_address is None else bind_address
        )

    async def bind(self, ports: Sequence[PortLike]) -> BoundPorts:
        """Bind every requested port to a distinct free host port.

        Either all ports are bound or PortAllocationError is raised.

        Args:
            ports: Container ports in the order they should be published

        Returns:
            BoundPorts for the request
        """
        requested = [Port.of(port) for port in ports]
        if not requested:
            return BoundPorts()

        loop = asyncio.get_running_loop()
        bound = await loop.run_in_executor(None, self._claim, requested)
        logger.debug("Bound container ports", ports=repr(bound))
        return bound

    def _claim(self, requested: List[Port]) -> BoundPorts:
        pairs: List[Tuple[Port, Port]] = []

        # Keep every probe socket open until all ports are claimed, otherwise
        # the OS may hand back a number it already gave us in this call.
        with contextlib.ExitStack() as stack:
            for internal in requested:
                try:
                    sock = stack.enter_context(
                        socket.socket(socket.AF_INET, _socket_type(internal))
                    )
                    sock.bind((self.bind_address, 0))
                    host_number: int = sock.getsockname()[1]
                except OSError as e:
                    logger.error(
                        "Host port allocation failed",
                        port=str(internal),
                        error=str(e),
                    )
                    raise PortAllocationError(internal, str(e)) from e
                pairs.append((internal, Port(host_number, internal.protocol)))

        try:
            return BoundPorts(pairs)
        except ValueError as e:
            raise PortAllocationError(pairs[-1][0], str(e)) from e


def _socket_type(port: Port) -> int:
    if port.protocol == "udp":
        return socket.SOCK_DGRAM
    return socket.SOCK_STREAM
