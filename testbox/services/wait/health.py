"""Health check wait strategy."""

import structlog

from ...core.container import Container
from ...core.ports import BoundPorts
from ...models.container import ContainerState
from ...models.errors import WaitStrategyConfigurationError
from .base import WaitStrategy

logger = structlog.get_logger(__name__)

HEALTHY = "healthy"


class HealthCheckWaitStrategy(WaitStrategy):
    """Ready when the engine reports the container as healthy.

    The image (or container) must declare a HEALTHCHECK. Without one this
    strategy can never succeed, so that is raised as a configuration error
    on the first attempt instead of waiting for the timeout.
    """

    async def check_ready(
        self, container: Container, state: ContainerState, bound_ports: BoundPorts
    ) -> bool:
        current = ContainerState.from_inspect(await container.inspect())
        if not current.has_health_check:
            raise WaitStrategyConfigurationError(
                f"Container {container.id[:12]} has no health check; "
                "HealthCheckWaitStrategy requires an image with a HEALTHCHECK"
            )
        logger.debug(
            "Checked container health",
            container_id=container.id[:12],
            health=current.health_status,
        )
        return current.health_status == HEALTHY
