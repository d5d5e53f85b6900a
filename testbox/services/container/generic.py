"""Generic container builder and started-container handle.

GenericContainer accumulates a request through chained ``with_*`` calls and
does nothing until ``start()``, which runs, strictly in order:

1. pull the image unless it is already known locally
2. bind every exposed port to a free host port
3. create the container
4. start it
5. inspect it once
6. wait until the wait strategy reports ready
7. return a StartedGenericContainer

Any failure aborts the whole sequence and is raised to the caller. A
container whose readiness check timed out is left for the caller to stop.
"""

import copy
from typing import TYPE_CHECKING, Dict, List, Optional, Union

import structlog

from ...config import settings
from ...core.client import CreateOptions, DockerClient
from ...core.container import Container
from ...core.ports import BoundPorts, PortBinder
from ...models.container import (
    BindMode,
    BindMount,
    ContainerState,
    ExecResult,
    RequestSpec,
    StopOptions,
    StoppedGenericContainer,
)
from ...models.errors import ContainerStoppedError
from ...models.image import DEFAULT_TAG, ImageReference
from ...models.port import Port, PortLike
from ..wait import HostAndInternalPortWaitStrategy, WaitStrategy

if TYPE_CHECKING:
    from ...utils.id_generator import Uuid
    from .build import GenericContainerBuilder

logger = structlog.get_logger(__name__)


class GenericContainer:
    """Fluent builder for a container started on demand.

    Example:
        >>> client = create_docker_client()
        >>> container = await (
        ...     GenericContainer("redis", "7", client=client)
        ...     .with_exposed_ports(6379)
        ...     .start()
        ... )
        >>> port = container.get_mapped_port(6379)
        >>> await container.stop()
    """

    def __init__(
        self,
        image: str,
        tag: str = DEFAULT_TAG,
        *,
        client: DockerClient,
        port_binder: Optional[PortBinder] = None,
    ):
        """Initialize the builder.

        Args:
            image: Image name
            tag: Image tag
            client: Docker client used for every engine call
            port_binder: Optional port binder, defaults to a PortBinder
        """
        self.image = ImageReference(image, tag)
        self._client = client
        self._port_binder = port_binder or PortBinder()
        self._request = RequestSpec(image=self.image)

    @classmethod
    def from_dockerfile(
        cls, context: str, *, client: DockerClient, uuid: Optional["Uuid"] = None
    ) -> "GenericContainerBuilder":
        """Start building an image from a directory containing a Dockerfile."""
        from .build import GenericContainerBuilder

        return GenericContainerBuilder(context, client=client, uuid=uuid)

    # ========================================================================
    # CONFIGURATION
    # ========================================================================

    def with_cmd(self, cmd: List[str]) -> "GenericContainer":
        self._request.command = list(cmd)
        return self

    def with_name(self, name: str) -> "GenericContainer":
        self._request.name = name
        return self

    def with_env(self, key: str, value: str) -> "GenericContainer":
        self._request.env[key] = value
        return self

    def with_tmpfs(self, tmpfs: Dict[str, str]) -> "GenericContainer":
        """Mount in-memory filesystems, mapping container path to mount options."""
        self._request.tmpfs = dict(tmpfs)
        return self

    def with_exposed_ports(self, *ports: PortLike) -> "GenericContainer":
        """Expose container ports, each published on a random free host port.

        Replaces previously exposed ports. Duplicates are dropped.
        """
        exposed: List[Port] = []
        for port in ports:
            port = Port.of(port)
            if port not in exposed:
                exposed.append(port)
        self._request.exposed_ports = exposed
        return self

    def with_bind_mount(
        self, source: str, target: str, mode: BindMode = "rw"
    ) -> "GenericContainer":
        self._request.bind_mounts.append(BindMount(source, target, mode))
        return self

    def with_startup_timeout(self, seconds: float) -> "GenericContainer":
        """Override how long the wait strategy may take, in seconds."""
        if seconds <= 0:
            raise ValueError(f"Startup timeout must be positive, got {seconds}")
        self._request.startup_timeout = float(seconds)
        return self

    def with_wait_strategy(self, wait_strategy: WaitStrategy) -> "GenericContainer":
        self._request.wait_strategy = wait_strategy
        return self

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    async def has_image_locally(self) -> bool:
        """Check whether the image is among the locally known images."""
        return await _image_known_locally(self._client, self.image)

    async def start(self) -> "StartedGenericContainer":
        """Create and start the container, returning once it is ready.

        Returns:
            StartedGenericContainer handle

        Raises:
            PortAllocationError: If a host port could not be claimed
            CollaboratorError: If a Docker call fails
            WaitTimeoutError: If the container did not become ready in time
            WaitStrategyConfigurationError: If the wait strategy cannot apply
        """
        request = self._request.snapshot()

        if not await _image_known_locally(self._client, request.image):
            await self._client.pull(request.image)

        bound_ports = await self._port_binder.bind(request.exposed_ports)

        container = await self._client.create(
            CreateOptions(
                image=request.image,
                env=request.env,
                command=request.command,
                bind_mounts=request.bind_mounts,
                tmpfs=request.tmpfs,
                bound_ports=bound_ports,
                name=request.name,
            )
        )
        await self._client.start(container)

        state = ContainerState.from_inspect(await container.inspect())
        await self._wait_for_container(container, state, bound_ports, request)

        logger.info(
            "Container started",
            image=str(request.image),
            container_id=container.id[:12],
            name=state.name,
            ports={str(internal): host.number for internal, host in bound_ports},
        )
        return StartedGenericContainer(
            container,
            self._client.get_host(),
            bound_ports,
            state.name,
            self._client,
        )

    async def _wait_for_container(
        self,
        container: Container,
        state: ContainerState,
        bound_ports: BoundPorts,
        request: RequestSpec,
    ) -> None:
        logger.debug("Starting container health checks", container_id=container.id[:12])
        wait_strategy = self._get_wait_strategy(request)
        await wait_strategy.wait_until_ready(container, state, bound_ports)
        logger.debug("Container health checks complete", container_id=container.id[:12])

    def _get_wait_strategy(self, request: RequestSpec) -> WaitStrategy:
        if request.wait_strategy is not None:
            # Copy so the timeout override never leaks into a shared instance
            wait_strategy = copy.copy(request.wait_strategy)
        else:
            wait_strategy = HostAndInternalPortWaitStrategy(self._client.get_host())

        if request.startup_timeout is not None:
            wait_strategy.with_startup_timeout(request.startup_timeout)
        return wait_strategy


class StartedGenericContainer:
    """Handle to a started, ready container.

    Once ``stop()`` has returned the handle is terminal and every operation
    raises ContainerStoppedError.
    """

    def __init__(
        self,
        container: Container,
        host: str,
        bound_ports: BoundPorts,
        name: str,
        client: DockerClient,
    ):
        self._container = container
        self._host = host
        self._bound_ports = bound_ports
        self._name = name
        self._client = client
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def _ensure_running(self, operation: str) -> None:
        if self._stopped:
            raise ContainerStoppedError(self._container.id, operation)

    async def stop(
        self,
        options: Optional[StopOptions] = None,
        *,
        timeout: Optional[float] = None,
        remove_volumes: Optional[bool] = None,
    ) -> StoppedGenericContainer:
        """Stop and remove the container.

        Args:
            options: Stop options; an unset timeout means
                settings.stop_timeout_seconds
            timeout: Override for options.timeout, in seconds
            remove_volumes: Override for options.remove_volumes

        Returns:
            StoppedGenericContainer marker
        """
        self._ensure_running("stop")
        options = (options or StopOptions()).merge(timeout=timeout, remove_volumes=remove_volumes)
        stop_timeout = options.timeout
        if stop_timeout is None:
            stop_timeout = settings.wait.stop_timeout_seconds

        logger.info("Stopping container", container_id=self._container.id[:12], name=self._name)
        await self._container.stop(timeout=stop_timeout)
        await self._container.remove(remove_volumes=options.remove_volumes)
        self._stopped = True
        return StoppedGenericContainer(id=self._container.id, name=self._name)

    def get_container_ip_address(self) -> str:
        return self._host

    def get_mapped_port(self, port: PortLike) -> int:
        """Get the host port a container port is published on.

        Raises:
            NotBoundError: If the port was not exposed
            ContainerStoppedError: If the container has been stopped
        """
        self._ensure_running("get mapped port")
        return self._bound_ports.get_binding(port).number

    def get_name(self) -> str:
        return self._name

    def get_id(self) -> str:
        return self._container.id

    async def exec(self, command: Union[str, List[str]]) -> ExecResult:
        """Run a command in the container and return its output and exit code."""
        self._ensure_running("exec")
        return await self._client.exec(self._container, command)

    async def logs(self) -> str:
        """Output the container has written since it started."""
        self._ensure_running("read logs")
        return await self._container.logs()

    async def __aenter__(self) -> "StartedGenericContainer":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self._stopped:
            await self.stop()

    def __repr__(self) -> str:
        state = "stopped" if self._stopped else "running"
        return f"StartedGenericContainer({self._container.id[:12]}, {self._name!r}, {state})"


async def _image_known_locally(client: DockerClient, image: ImageReference) -> bool:
    known_images = await client.list_images()
    return any(known == image for known in known_images)
