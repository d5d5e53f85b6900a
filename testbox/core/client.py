"""Docker engine client.

Defines the DockerClient interface the orchestrator depends on and a
docker SDK implementation. Clients are created explicitly with
``create_docker_client()`` and passed to the containers that use them; one
client can be shared by any number of concurrent orchestrations.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, TypeVar
from urllib.parse import urlparse

import docker
import structlog
from docker.errors import DockerException

from ..config import settings
from ..models.container import BindMount, DockerInfo, ExecResult
from ..models.errors import CollaboratorError
from ..models.image import ImageReference
from ..utils.concurrency import run_in_executor
from .container import Container
from .ports import BoundPorts

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DANGLING_REPO_TAG = "<none>:<none>"


@dataclass
class CreateOptions:
    """Everything the engine needs to create a container."""

    image: ImageReference
    env: Dict[str, str] = field(default_factory=dict)
    command: List[str] = field(default_factory=list)
    bind_mounts: List[BindMount] = field(default_factory=list)
    tmpfs: Dict[str, str] = field(default_factory=dict)
    bound_ports: BoundPorts = field(default_factory=BoundPorts)
    name: Optional[str] = None


class DockerClient(Protocol):
    """Interface to the container engine consumed by the orchestrator."""

    async def info(self) -> DockerInfo:
        """Engine version and available layer capacity."""
        ...

    async def pull(self, image: ImageReference) -> None:
        """Pull an image from its registry."""
        ...

    async def create(self, options: CreateOptions) -> Container:
        """Create (but do not start) a container."""
        ...

    async def start(self, container: Container) -> None:
        """Start a created container."""
        ...

    async def exec(self, container: Container, command: List[str]) -> ExecResult:
        """Run a command inside a running container."""
        ...

    async def build_image(
        self, image: ImageReference, context: str, build_args: Dict[str, str]
    ) -> None:
        """Build an image from a directory containing a Dockerfile."""
        ...

    async def list_images(self) -> List[ImageReference]:
        """All tagged images known locally. Dangling images are excluded."""
        ...

    def get_host(self) -> str:
        """Address on which published container ports are reachable."""
        ...


class DockerEngineClient:
    """DockerClient implementation backed by the docker SDK.

    Blocking SDK calls run in the default executor. Engine failures are
    raised as CollaboratorError and never retried.
    """

    def __init__(self, host: str, docker_client: docker.DockerClient):
        """Initialize the client.

        Args:
            host: Address on which published ports are reachable
            docker_client: Connected docker SDK client
        """
        self._host = host
        self._docker = docker_client

    @property
    def docker(self) -> docker.DockerClient:
        """The underlying docker SDK client."""
        return self._docker

    async def info(self) -> DockerInfo:
        version = await self._call("info", self._docker.version)
        usage = await self._call("info", self._docker.df)
        return DockerInfo(
            version=version.get("Version", "unknown"),
            available_mb=(usage.get("LayersSize") or 0) / 1e6,
        )

    async def pull(self, image: ImageReference) -> None:
        logger.info("Pulling image", image=str(image))
        await self._call("pull", self._docker.images.pull, image.name, tag=image.tag)

    async def create(self, options: CreateOptions) -> Container:
        logger.info("Creating container", image=str(options.image), name=options.name)
        docker_container = await self._call(
            "create",
            self._docker.containers.create,
            image=str(options.image),
            command=options.command or None,
            environment=[f"{key}={value}" for key, value in options.env.items()],
            ports=options.bound_ports.to_port_bindings(),
            volumes=[mount.to_bind_string() for mount in options.bind_mounts],
            tmpfs=dict(options.tmpfs),
            name=options.name,
            detach=True,
        )
        return Container(docker_container, host=self._host)

    async def start(self, container: Container) -> None:
        logger.info("Starting container", container_id=container.id[:12])
        await container.start()

    async def exec(self, container: Container, command: List[str]) -> ExecResult:
        logger.debug("Executing command", container_id=container.id[:12], command=command)
        return await container.exec(command)

    async def build_image(
        self, image: ImageReference, context: str, build_args: Dict[str, str]
    ) -> None:
        logger.info("Building image", image=str(image), context=context)

        def _build() -> None:
            _, build_log = self._docker.images.build(
                path=context,
                buildargs=dict(build_args),
                tag=str(image),
                rm=True,
            )
            # Drain the build log so the build has fully finished on return
            for _ in build_log:
                pass

        await self._call("build", _build)

    async def list_images(self) -> List[ImageReference]:
        images = await self._call("list images", self._docker.images.list)

        references: List[ImageReference] = []
        for image in images:
            repo_tags = image.attrs.get("RepoTags")
            if not repo_tags:
                continue
            for repo_tag in repo_tags:
                if repo_tag == DANGLING_REPO_TAG:
                    continue
                references.append(ImageReference.parse(repo_tag))
        return references

    def get_host(self) -> str:
        return self._host

    async def close(self) -> None:
        """Close the underlying docker SDK client."""
        await run_in_executor(self._docker.close)

    async def _call(self, operation: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return await run_in_executor(func, *args, **kwargs)
        except DockerException as e:
            logger.error("Docker operation failed", operation=operation, error=str(e))
            raise CollaboratorError(operation, str(e)) from e


def resolve_host(base_url: Optional[str] = None) -> str:
    """Work out the address published ports are reachable on.

    Priority:
    1. settings.docker_host_address
    2. hostname of a tcp:// Docker endpoint
    3. localhost
    """
    if settings.docker.docker_host_address:
        return settings.docker.docker_host_address

    endpoint = base_url or os.environ.get("DOCKER_HOST", "")
    parsed = urlparse(endpoint)
    if parsed.scheme in ("tcp", "http", "https") and parsed.hostname:
        return parsed.hostname
    return "localhost"


def create_docker_client(base_url: Optional[str] = None) -> DockerEngineClient:
    """Create a client connected to the Docker engine.

    Construct one at process start and share it by reference.

    Args:
        base_url: Engine endpoint, defaults to settings.docker_base_url and
            then to the DOCKER_HOST environment

    Returns:
        Connected DockerEngineClient
    """
    docker_config = settings.docker
    base_url = base_url or docker_config.docker_base_url

    try:
        if base_url:
            docker_client = docker.DockerClient(
                base_url=base_url, timeout=docker_config.docker_timeout
            )
        else:
            docker_client = docker.from_env(timeout=docker_config.docker_timeout)
    except DockerException as e:
        logger.error("Failed to connect to Docker", base_url=base_url, error=str(e))
        raise CollaboratorError("connect", str(e)) from e

    host = resolve_host(base_url)
    logger.info("Docker client initialized", base_url=base_url or "env", host=host)
    return DockerEngineClient(host, docker_client)
