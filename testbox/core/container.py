"""Container handle over a docker SDK container.

Every engine call runs in the default executor so the event loop is never
blocked, and every docker error is surfaced as CollaboratorError.
"""

import math
from typing import Any, Callable, Dict, List, TypeVar, Union

import structlog
from docker.errors import DockerException
from docker.models.containers import Container as DockerContainer

from ..models.container import ExecResult
from ..models.errors import CollaboratorError, ContainerStoppedError
from ..utils.concurrency import run_in_executor

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class Container:
    """Engine-assigned container identity plus its lifecycle operations.

    A Container exists from the moment the engine creates it. Once
    ``remove()`` succeeds it is terminal and every further call raises
    ContainerStoppedError.
    """

    def __init__(self, docker_container: DockerContainer, host: str = "localhost"):
        """Initialize the handle.

        Args:
            docker_container: docker SDK container object
            host: Address on which the container's published ports are reachable
        """
        self._container = docker_container
        self._host = host
        self._removed = False

    @property
    def id(self) -> str:
        return self._container.id

    @property
    def host(self) -> str:
        return self._host

    async def start(self) -> None:
        await self._call("start", self._container.start)

    async def stop(self, timeout: float) -> None:
        # The engine API takes whole seconds
        await self._call("stop", self._container.stop, timeout=math.ceil(timeout))

    async def remove(self, remove_volumes: bool = False) -> None:
        await self._call("remove", self._container.remove, v=remove_volumes)
        self._removed = True
        logger.debug("Container removed", container_id=self.id[:12])

    async def exec(self, command: Union[str, List[str]]) -> ExecResult:
        """Run a command inside the container.

        Args:
            command: Command and arguments

        Returns:
            ExecResult with combined stdout/stderr and the exit code
        """
        result = await self._call(
            "exec", self._container.exec_run, command, stdout=True, stderr=True
        )
        output = result.output or b""
        if isinstance(output, bytes):
            output = output.decode("utf-8", errors="replace")
        return ExecResult(output=output, exit_code=result.exit_code)

    async def inspect(self) -> Dict[str, Any]:
        """Refresh and return the raw inspect payload."""
        await self._call("inspect", self._container.reload)
        return self._container.attrs

    async def logs(self) -> str:
        """Return stdout and stderr captured since the container started."""
        output = await self._call("logs", self._container.logs, stdout=True, stderr=True)
        return output.decode("utf-8", errors="replace")

    async def _call(self, operation: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        if self._removed:
            raise ContainerStoppedError(self.id, operation)
        try:
            return await run_in_executor(func, *args, **kwargs)
        except DockerException as e:
            logger.error(
                "Container operation failed",
                operation=operation,
                container_id=self.id[:12],
                error=str(e),
            )
            raise CollaboratorError(operation, str(e)) from e

    def __repr__(self) -> str:
        return f"Container({self.id[:12]})"
