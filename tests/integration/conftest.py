"""Integration test fixtures.

These tests start real containers and need a reachable Docker daemon
(DOCKER_HOST or the local socket). They are skipped when none is available.

Example:
    pytest tests/integration/ -v
"""

import pytest

from testbox import create_docker_client


@pytest.fixture(scope="module")
def docker_client():
    """Client connected to the local Docker daemon, or skip."""
    try:
        client = create_docker_client()
        client.docker.ping()
    except Exception as e:
        pytest.skip(f"Docker daemon not available: {e}")
    yield client
    client.docker.close()
