"""Log message wait strategy."""

import re
from typing import Pattern, Union

import structlog

from ...core.container import Container
from ...core.ports import BoundPorts
from ...models.container import ContainerState
from .base import WaitStrategy

logger = structlog.get_logger(__name__)


class LogMessageWaitStrategy(WaitStrategy):
    """Ready once the container output matches a pattern.

    The pattern is searched in all stdout and stderr produced since the
    container started, so messages logged before polling began still count.
    """

    def __init__(self, pattern: Union[str, Pattern[str]], times: int = 1):
        """Initialize the strategy.

        Args:
            pattern: Regular expression (or compiled pattern) to look for
            times: Number of matches required
        """
        super().__init__()
        if times < 1:
            raise ValueError(f"times must be at least 1, got {times}")
        self.pattern: Pattern[str] = re.compile(pattern, re.MULTILINE) if isinstance(pattern, str) else pattern
        self.times = times

    async def check_ready(
        self, container: Container, state: ContainerState, bound_ports: BoundPorts
    ) -> bool:
        output = await container.logs()
        matches = sum(1 for _ in self.pattern.finditer(output))
        logger.debug(
            "Checked container logs",
            container_id=container.id[:12],
            pattern=self.pattern.pattern,
            matches=matches,
            required=self.times,
        )
        return matches >= self.times
