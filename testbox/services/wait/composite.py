"""Composition of wait strategies."""

from typing import Tuple

from ...core.container import Container
from ...core.ports import BoundPorts
from ...models.container import ContainerState
from .base import WaitStrategy


class AllWaitStrategy(WaitStrategy):
    """Ready when every member strategy is ready.

    Members are checked in order and the check stops at the first one that
    is not ready yet. Only the composite's startup timeout applies.
    """

    def __init__(self, *strategies: WaitStrategy):
        super().__init__()
        if not strategies:
            raise ValueError("AllWaitStrategy needs at least one strategy")
        self.strategies: Tuple[WaitStrategy, ...] = strategies

    @property
    def name(self) -> str:
        members = ", ".join(strategy.name for strategy in self.strategies)
        return f"{type(self).__name__}[{members}]"

    async def check_ready(
        self, container: Container, state: ContainerState, bound_ports: BoundPorts
    ) -> bool:
        for strategy in self.strategies:
            if not await strategy.check_ready(container, state, bound_ports):
                return False
        return True
