"""Pytest configuration and shared fixtures."""

import os
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

# Set test environment before importing config
# Use setdefault to allow environment variables to override defaults
os.environ.setdefault("TESTBOX_PORT_BIND_ADDRESS", "127.0.0.1")
os.environ.setdefault("TESTBOX_LOG_LEVEL", "DEBUG")

from testbox.core.container import Container
from testbox.core.ports import BoundPorts
from testbox.models import ContainerState, ExecResult, ImageReference, Port
from testbox.services.wait import WaitStrategy

CONTAINER_ID = "3f4e5d6c7b8a9f0e1d2c3b4a5f6e7d8c9b0a1f2e3d4c5b6a7f8e9d0c1b2a3f4e"


def inspect_payload(
    running: bool = True,
    health: str = None,
    healthcheck: List[str] = None,
    name: str = "/quirky_turing",
) -> Dict[str, Any]:
    """Build a Docker inspect payload."""
    state: Dict[str, Any] = {
        "Status": "running" if running else "exited",
        "Running": running,
        "ExitCode": 0,
        "StartedAt": "2024-01-01T00:00:00.000000000Z",
    }
    if health is not None:
        state["Health"] = {"Status": health, "FailingStreak": 0, "Log": []}
    config: Dict[str, Any] = {"Image": "redis:7"}
    if healthcheck is not None:
        config["Healthcheck"] = {"Test": healthcheck}
    return {"Id": CONTAINER_ID, "Name": name, "State": state, "Config": config}


class ReadyStrategy(WaitStrategy):
    """Wait strategy that is ready on the first attempt."""

    def __init__(self):
        super().__init__()
        self.calls = 0

    async def check_ready(self, container, state, bound_ports) -> bool:
        self.calls += 1
        return True


class ScriptedStrategy(WaitStrategy):
    """Wait strategy returning a scripted sequence of results, then the last one forever."""

    def __init__(self, *results):
        super().__init__()
        self.results = list(results)
        self.calls = 0

    async def check_ready(self, container, state, bound_ports) -> bool:
        self.calls += 1
        result = self.results[min(self.calls, len(self.results)) - 1]
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def mock_container():
    """Mock core Container handle."""
    container = MagicMock(spec=Container)
    container.id = CONTAINER_ID
    container.host = "localhost"
    container.start = AsyncMock(return_value=None)
    container.stop = AsyncMock(return_value=None)
    container.remove = AsyncMock(return_value=None)
    container.exec = AsyncMock(return_value=ExecResult(output="", exit_code=0))
    container.inspect = AsyncMock(return_value=inspect_payload())
    container.logs = AsyncMock(return_value="")
    return container


@pytest.fixture
def mock_client(mock_container):
    """Mock DockerClient with the image present locally."""
    client = MagicMock()
    client.info = AsyncMock()
    client.pull = AsyncMock(return_value=None)
    client.create = AsyncMock(return_value=mock_container)
    client.start = AsyncMock(return_value=None)
    client.exec = AsyncMock(return_value=ExecResult(output="ok\n", exit_code=0))
    client.build_image = AsyncMock(return_value=None)
    client.list_images = AsyncMock(return_value=[ImageReference("redis", "7")])
    client.get_host = MagicMock(return_value="localhost")
    return client


@pytest.fixture
def running_state():
    """State of a freshly started container."""
    return ContainerState.from_inspect(inspect_payload())


@pytest.fixture
def bound_ports():
    """Two TCP ports bound to fixed host ports."""
    return BoundPorts([(Port(6379), Port(49153)), (Port(8080), Port(49154))])


@pytest.fixture
def fast_strategy():
    """Factory applying a short poll cadence to a strategy."""

    def _apply(strategy: WaitStrategy, timeout: float = 1.0) -> WaitStrategy:
        return strategy.with_startup_timeout(timeout).with_poll_interval(0.01, 0.02)

    return _apply


@pytest.fixture
def make_inspect_payload():
    """Factory for Docker inspect payloads."""
    return inspect_payload


@pytest.fixture
def ready_strategy():
    """Wait strategy that is ready on the first attempt."""
    return ReadyStrategy()


@pytest.fixture
def scripted_strategy():
    """Factory for strategies returning scripted check results."""
    return ScriptedStrategy
