"""Container data models.

These are plain values passed between the orchestrator, the Docker client
and wait strategies. None of them track live engine state.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional

from .image import ImageReference
from .port import Port

if TYPE_CHECKING:
    from ..services.wait.base import WaitStrategy


BindMode = Literal["rw", "ro"]


@dataclass(frozen=True)
class BindMount:
    """Host directory mounted into a container."""

    source: str
    target: str
    mode: BindMode = "rw"

    def __post_init__(self):
        if self.mode not in ("rw", "ro"):
            raise ValueError(f"Bind mode must be 'rw' or 'ro', got {self.mode!r}")

    def to_bind_string(self) -> str:
        return f"{self.source}:{self.target}:{self.mode}"


@dataclass(frozen=True)
class ExecResult:
    """Combined output and exit code of a command run inside a container."""

    output: str
    exit_code: int


@dataclass(frozen=True)
class DockerInfo:
    """Container engine version and free layer capacity."""

    version: str
    available_mb: float


@dataclass(frozen=True)
class StopOptions:
    """Options applied when stopping a started container.

    A ``timeout`` of None means settings.stop_timeout_seconds.
    """

    timeout: Optional[float] = None
    remove_volumes: bool = False

    def merge(self, **overrides: Any) -> "StopOptions":
        """Return a copy with every non-None override applied."""
        values = {
            "timeout": self.timeout,
            "remove_volumes": self.remove_volumes,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return StopOptions(**values)


@dataclass(frozen=True)
class ContainerState:
    """Point-in-time view of a container, parsed from one inspect call."""

    id: str
    name: str
    running: bool
    status: str
    health_status: Optional[str] = None
    has_health_check: bool = False
    exit_code: Optional[int] = None
    started_at: Optional[str] = None

    @classmethod
    def from_inspect(cls, payload: Dict[str, Any]) -> "ContainerState":
        """Build a state snapshot from a Docker inspect payload.

        Args:
            payload: The ``attrs`` dict returned by the Docker inspect API

        Returns:
            ContainerState snapshot
        """
        state = payload.get("State") or {}
        health = state.get("Health") or {}
        healthcheck = (payload.get("Config") or {}).get("Healthcheck") or {}
        declared = bool(healthcheck.get("Test")) and healthcheck.get("Test") != ["NONE"]

        return cls(
            id=payload.get("Id", ""),
            name=(payload.get("Name") or "").lstrip("/"),
            running=bool(state.get("Running", False)),
            status=state.get("Status", "unknown"),
            health_status=health.get("Status") or None,
            has_health_check=declared or bool(health),
            exit_code=state.get("ExitCode"),
            started_at=state.get("StartedAt"),
        )


@dataclass
class RequestSpec:
    """Accumulated builder state for one container request.

    Mutated only through the builder. ``start()`` works on a snapshot so a
    builder can be reused, even concurrently.
    """

    image: ImageReference
    env: Dict[str, str] = field(default_factory=dict)
    command: List[str] = field(default_factory=list)
    bind_mounts: List[BindMount] = field(default_factory=list)
    tmpfs: Dict[str, str] = field(default_factory=dict)
    exposed_ports: List[Port] = field(default_factory=list)
    name: Optional[str] = None
    startup_timeout: Optional[float] = None
    wait_strategy: Optional["WaitStrategy"] = None

    def snapshot(self) -> "RequestSpec":
        """Return a frozen-in-practice copy of the current request."""
        # Wait strategies are re-entrant and shared by reference
        return RequestSpec(
            image=self.image,
            env=dict(self.env),
            command=list(self.command),
            bind_mounts=list(self.bind_mounts),
            tmpfs=dict(self.tmpfs),
            exposed_ports=list(self.exposed_ports),
            name=self.name,
            startup_timeout=self.startup_timeout,
            wait_strategy=self.wait_strategy,
        )


@dataclass(frozen=True)
class StoppedGenericContainer:
    """Terminal marker returned once a container is stopped and removed."""

    id: str
    name: str
