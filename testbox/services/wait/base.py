"""Wait strategy base class and the readiness poll loop.

A wait strategy answers one question, ``check_ready``, and the shared
``wait_until_ready`` loop keeps asking it until the answer is yes or the
startup timeout runs out:

    Polling --(check_ready is True)--> Ready
    Polling --(deadline passed)------> TimedOut (WaitTimeoutError)

Each call to ``wait_until_ready`` runs its own loop and keeps no state on
the strategy, so one instance can serve many containers concurrently.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import structlog

from ...config import settings
from ...core.container import Container
from ...core.ports import BoundPorts
from ...models.container import ContainerState
from ...models.errors import WaitTimeoutError

logger = structlog.get_logger(__name__)

# The attempt made when the last sleep ends at the deadline still gets to run
MIN_ATTEMPT_BUDGET_SECONDS = 0.05


class WaitStrategy(ABC):
    """Readiness policy polled until success or timeout."""

    def __init__(self):
        wait_config = settings.wait
        self.startup_timeout: float = wait_config.startup_timeout_seconds
        self.poll_interval: float = wait_config.poll_interval_seconds
        self.max_poll_interval: float = wait_config.max_poll_interval_seconds
        self.backoff_factor: float = wait_config.poll_backoff_factor

    @property
    def name(self) -> str:
        return type(self).__name__

    def with_startup_timeout(self, seconds: float) -> "WaitStrategy":
        """Set the overall time allowed for the container to become ready."""
        if seconds <= 0:
            raise ValueError(f"Startup timeout must be positive, got {seconds}")
        self.startup_timeout = float(seconds)
        return self

    def with_poll_interval(
        self, seconds: float, max_interval: Optional[float] = None
    ) -> "WaitStrategy":
        """Set the pause between attempts.

        Args:
            seconds: Pause after the first failed attempt
            max_interval: Cap for the growing pause; defaults to ``seconds``,
                which gives a fixed interval
        """
        if seconds <= 0:
            raise ValueError(f"Poll interval must be positive, got {seconds}")
        max_interval = seconds if max_interval is None else max_interval
        if max_interval < seconds:
            raise ValueError("Maximum poll interval must not be smaller than the poll interval")
        self.poll_interval = float(seconds)
        self.max_poll_interval = float(max_interval)
        return self

    @abstractmethod
    async def check_ready(
        self, container: Container, state: ContainerState, bound_ports: BoundPorts
    ) -> bool:
        """Evaluate the readiness predicate once.

        Returns:
            True when the container is ready
        """

    async def wait_until_ready(
        self, container: Container, state: ContainerState, bound_ports: BoundPorts
    ) -> None:
        """Poll ``check_ready`` until it succeeds or the startup timeout passes.

        Args:
            container: Started container
            state: Snapshot taken right after start
            bound_ports: Port map the container was created with

        Raises:
            WaitTimeoutError: If the container was not ready in time
            WaitStrategyConfigurationError: If the strategy cannot apply to this container
            CollaboratorError: If an engine call made by the check fails
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + self.startup_timeout
        interval = self.poll_interval
        attempts = 0

        logger.debug(
            "Waiting for container",
            strategy=self.name,
            container_id=container.id[:12],
            timeout=self.startup_timeout,
        )

        while True:
            attempts += 1
            budget = max(deadline - loop.time(), MIN_ATTEMPT_BUDGET_SECONDS)
            if await self._attempt(container, state, bound_ports, budget):
                logger.debug(
                    "Container ready",
                    strategy=self.name,
                    container_id=container.id[:12],
                    attempts=attempts,
                    elapsed=round(loop.time() - started, 3),
                )
                return

            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(interval, remaining))
            interval = min(interval * self.backoff_factor, self.max_poll_interval)

        logger.warning(
            "Container not ready before timeout",
            strategy=self.name,
            container_id=container.id[:12],
            timeout=self.startup_timeout,
            attempts=attempts,
        )
        raise WaitTimeoutError(self.name, self.startup_timeout, attempts, container.id)

    async def _attempt(
        self,
        container: Container,
        state: ContainerState,
        bound_ports: BoundPorts,
        budget: float,
    ) -> bool:
        # A predicate that overruns the remaining budget counts as not ready
        try:
            return bool(
                await asyncio.wait_for(
                    self.check_ready(container, state, bound_ports), timeout=budget
                )
            )
        except asyncio.TimeoutError:
            return False

    def __repr__(self) -> str:
        return f"{self.name}(startup_timeout={self.startup_timeout:g})"
