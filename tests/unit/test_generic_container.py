"""Unit tests for the container orchestrator and started-container handle."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from testbox.core.client import CreateOptions
from testbox.core.ports import BoundPorts
from testbox.models import (
    BindMount,
    BuildVerificationError,
    CollaboratorError,
    ContainerStoppedError,
    ImageReference,
    NotBoundError,
    Port,
    PortAllocationError,
    StopOptions,
    StoppedGenericContainer,
    WaitTimeoutError,
)
from testbox.services.container import (
    GenericContainer,
    GenericContainerBuilder,
    StartedGenericContainer,
)
from testbox.services.wait import HostAndInternalPortWaitStrategy


@pytest.fixture
def mock_port_binder():
    """Port binder handing out fixed host ports."""

    async def _bind(ports):
        return BoundPorts(
            (Port.of(port), Port(49000 + index)) for index, port in enumerate(ports)
        )

    binder = MagicMock()
    binder.bind = AsyncMock(side_effect=_bind)
    return binder


@pytest.fixture
def generic_container(mock_client, mock_port_binder, ready_strategy):
    """GenericContainer for redis:7 with a wait strategy that is ready at once."""
    return GenericContainer(
        "redis", "7", client=mock_client, port_binder=mock_port_binder
    ).with_wait_strategy(ready_strategy)


class TestBuilderConfiguration:
    """Tests for the fluent configuration methods."""

    def test_with_methods_return_self(self, mock_client, ready_strategy):
        """Every with_* call can be chained."""
        container = GenericContainer("redis", client=mock_client)

        assert container.with_cmd(["redis-server"]) is container
        assert container.with_name("cache") is container
        assert container.with_env("A", "1") is container
        assert container.with_tmpfs({"/tmp": "rw"}) is container
        assert container.with_exposed_ports(6379) is container
        assert container.with_bind_mount("/src", "/dst") is container
        assert container.with_startup_timeout(5) is container
        assert container.with_wait_strategy(ready_strategy) is container

    def test_default_tag(self, mock_client):
        """The tag defaults to latest."""
        assert GenericContainer("redis", client=mock_client).image == ImageReference("redis", "latest")

    def test_exposed_ports_deduplicated_in_order(self, generic_container):
        """Duplicate ports are dropped, first occurrence wins."""
        generic_container.with_exposed_ports(8080, "6379", Port(8080), 5432)
        assert generic_container._request.exposed_ports == [Port(8080), Port(6379), Port(5432)]

    def test_invalid_startup_timeout(self, generic_container):
        """The startup timeout must be positive."""
        with pytest.raises(ValueError):
            generic_container.with_startup_timeout(0)


class TestStart:
    """Tests for GenericContainer.start()."""

    @pytest.mark.asyncio
    async def test_start_step_order(self, generic_container, mock_client, mock_container, mock_port_binder):
        """Steps run strictly in order: list, bind, create, start, inspect."""
        calls = []
        mock_client.list_images.side_effect = lambda: calls.append("list_images") or [
            ImageReference("redis", "7")
        ]
        mock_port_binder.bind.side_effect = lambda ports: calls.append("bind") or BoundPorts()
        mock_client.create.side_effect = lambda options: calls.append("create") or mock_container
        mock_client.start.side_effect = lambda container: calls.append("start")
        inspect_result = await mock_container.inspect()
        mock_container.inspect.side_effect = lambda: calls.append("inspect") or inspect_result

        await generic_container.start()

        assert calls == ["list_images", "bind", "create", "start", "inspect"]
        mock_client.pull.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pulls_when_image_absent(self, generic_container, mock_client):
        """A missing image is pulled before anything else happens."""
        mock_client.list_images.return_value = [ImageReference("redis", "6")]

        await generic_container.start()

        mock_client.pull.assert_awaited_once_with(ImageReference("redis", "7"))

    @pytest.mark.asyncio
    async def test_create_options(self, generic_container, mock_client):
        """The create request carries the configured request."""
        generic_container.with_exposed_ports(6379).with_env("MODE", "test").with_cmd(
            ["redis-server", "--save", ""]
        ).with_bind_mount("/data", "/srv", "ro").with_tmpfs({"/tmp": "size=64m"}).with_name("cache")

        await generic_container.start()

        options = mock_client.create.await_args.args[0]
        assert isinstance(options, CreateOptions)
        assert options.image == ImageReference("redis", "7")
        assert options.env == {"MODE": "test"}
        assert options.command == ["redis-server", "--save", ""]
        assert options.bind_mounts == [BindMount("/data", "/srv", "ro")]
        assert options.tmpfs == {"/tmp": "size=64m"}
        assert options.name == "cache"
        assert options.bound_ports.to_port_bindings() == {"6379/tcp": 49000}

    @pytest.mark.asyncio
    async def test_returns_started_handle(self, generic_container, mock_container):
        """The handle exposes mapped ports, name and id."""
        generic_container.with_exposed_ports(6379, 8080)

        started = await generic_container.start()

        assert isinstance(started, StartedGenericContainer)
        assert started.get_mapped_port(6379) == 49000
        assert started.get_mapped_port("8080/tcp") == 49001
        assert started.get_id() == mock_container.id
        assert started.get_name() == "quirky_turing"
        assert started.get_container_ip_address() == "localhost"

    @pytest.mark.asyncio
    async def test_port_allocation_failure_aborts(self, generic_container, mock_client, mock_port_binder):
        """No container is created when ports cannot be allocated."""
        mock_port_binder.bind.side_effect = PortAllocationError(Port(6379), "exhausted")

        with pytest.raises(PortAllocationError):
            await generic_container.with_exposed_ports(6379).start()

        mock_client.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pull_failure_aborts(self, generic_container, mock_client, mock_port_binder):
        """A failed pull stops the sequence."""
        mock_client.list_images.return_value = []
        mock_client.pull.side_effect = CollaboratorError("pull", "manifest unknown")

        with pytest.raises(CollaboratorError):
            await generic_container.start()

        mock_port_binder.bind.assert_not_awaited()
        mock_client.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_start_failure_aborts(self, generic_container, mock_client, mock_container):
        """A failed engine start is raised and the container is not inspected."""
        mock_client.start.side_effect = CollaboratorError("start", "port is already allocated")

        with pytest.raises(CollaboratorError):
            await generic_container.start()

        mock_container.inspect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_wait_timeout_propagates(self, generic_container, scripted_strategy, fast_strategy):
        """A readiness timeout is raised and no handle is returned."""
        generic_container.with_wait_strategy(fast_strategy(scripted_strategy(False), timeout=0.1))
        generic_container.with_startup_timeout(0.1)

        with pytest.raises(WaitTimeoutError):
            await generic_container.start()

    @pytest.mark.asyncio
    async def test_default_wait_strategy(self, mock_client, mock_port_binder, monkeypatch):
        """Without a configured strategy the host and internal port check is used."""
        used = []

        async def _wait(self, container, state, bound_ports):
            used.append(self)

        monkeypatch.setattr(HostAndInternalPortWaitStrategy, "wait_until_ready", _wait)
        mock_client.get_host.return_value = "10.0.0.5"

        await GenericContainer("redis", "7", client=mock_client, port_binder=mock_port_binder).start()

        assert len(used) == 1
        assert isinstance(used[0], HostAndInternalPortWaitStrategy)
        assert used[0].strategies[0].host == "10.0.0.5"
        assert used[0].startup_timeout == 60.0

    @pytest.mark.asyncio
    async def test_startup_timeout_does_not_mutate_shared_strategy(
        self, generic_container, ready_strategy
    ):
        """The builder timeout applies to a copy of the configured strategy."""
        generic_container.with_startup_timeout(5)

        await generic_container.start()

        assert ready_strategy.startup_timeout == 60.0

    @pytest.mark.asyncio
    async def test_builder_reuse_takes_fresh_snapshot(self, generic_container, mock_client):
        """Changes after start() only affect later starts."""
        generic_container.with_env("RUN", "1")
        await generic_container.start()
        generic_container.with_env("RUN", "2")
        await generic_container.start()

        first, second = [call.args[0] for call in mock_client.create.await_args_list]
        assert first.env == {"RUN": "1"}
        assert second.env == {"RUN": "2"}


class TestStartedGenericContainer:
    """Tests for the started-container handle."""

    @pytest.mark.asyncio
    async def test_stop_then_remove(self, generic_container, mock_container):
        """stop() stops with the default timeout and then removes."""
        started = await generic_container.start()

        stopped = await started.stop()

        mock_container.stop.assert_awaited_once_with(timeout=10.0)
        mock_container.remove.assert_awaited_once_with(remove_volumes=False)
        assert stopped == StoppedGenericContainer(id=mock_container.id, name="quirky_turing")
        assert started.stopped is True

    @pytest.mark.asyncio
    async def test_stop_options_merge(self, generic_container, mock_container):
        """Explicit options and overrides replace the defaults."""
        started = await generic_container.start()

        await started.stop(StopOptions(timeout=3), remove_volumes=True)

        mock_container.stop.assert_awaited_once_with(timeout=3)
        mock_container.remove.assert_awaited_once_with(remove_volumes=True)

    @pytest.mark.asyncio
    async def test_options_without_timeout_use_configured_default(
        self, generic_container, mock_container
    ):
        """Options that leave the timeout unset still get settings.stop_timeout_seconds."""
        started = await generic_container.start()

        with patch("testbox.services.container.generic.settings") as mock_settings:
            mock_settings.wait.stop_timeout_seconds = 30.0
            await started.stop(StopOptions(remove_volumes=True))

        mock_container.stop.assert_awaited_once_with(timeout=30.0)
        mock_container.remove.assert_awaited_once_with(remove_volumes=True)

    @pytest.mark.asyncio
    async def test_operations_after_stop_raise(self, generic_container):
        """A stopped handle rejects further use."""
        started = await generic_container.with_exposed_ports(6379).start()
        await started.stop()

        with pytest.raises(ContainerStoppedError):
            started.get_mapped_port(6379)
        with pytest.raises(ContainerStoppedError):
            await started.exec(["redis-cli", "ping"])
        with pytest.raises(ContainerStoppedError):
            await started.logs()
        with pytest.raises(ContainerStoppedError):
            await started.stop()

    @pytest.mark.asyncio
    async def test_failed_remove_keeps_handle_usable(self, generic_container, mock_container):
        """If removal fails the handle is not marked stopped."""
        mock_container.remove.side_effect = CollaboratorError("remove", "device busy")
        started = await generic_container.start()

        with pytest.raises(CollaboratorError):
            await started.stop()

        assert started.stopped is False

    @pytest.mark.asyncio
    async def test_unexposed_port(self, generic_container):
        """Asking for an unexposed port raises NotBoundError."""
        started = await generic_container.with_exposed_ports(6379).start()

        with pytest.raises(NotBoundError):
            started.get_mapped_port(5432)

    @pytest.mark.asyncio
    async def test_exec_and_logs(self, generic_container, mock_client, mock_container):
        """exec goes through the client and logs through the container."""
        mock_container.logs.return_value = "Ready to accept connections"
        started = await generic_container.start()

        result = await started.exec(["redis-cli", "ping"])
        logs = await started.logs()

        assert result.output == "ok\n"
        assert result.exit_code == 0
        mock_client.exec.assert_awaited_once_with(mock_container, ["redis-cli", "ping"])
        assert logs == "Ready to accept connections"

    @pytest.mark.asyncio
    async def test_async_context_manager_stops(self, generic_container, mock_container):
        """Leaving the async with block stops the container."""
        async with await generic_container.start() as started:
            assert started.stopped is False

        assert started.stopped is True
        mock_container.remove.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_context_manager_after_manual_stop(self, generic_container, mock_container):
        """A container already stopped inside the block is not stopped twice."""
        async with await generic_container.start() as started:
            await started.stop()

        mock_container.stop.assert_awaited_once()


class TestGenericContainerBuilder:
    """Tests for building images from a Dockerfile."""

    @pytest.fixture
    def fixed_uuid(self):
        uuid = MagicMock()
        uuid.next_uuid.side_effect = ["imagename", "imagetag"]
        return uuid

    def test_from_dockerfile(self, mock_client):
        """from_dockerfile returns a builder for the context."""
        builder = GenericContainer.from_dockerfile("/src/app", client=mock_client)
        assert isinstance(builder, GenericContainerBuilder)
        assert builder.context == "/src/app"

    @pytest.mark.asyncio
    async def test_build_uses_generated_name_and_tag(self, mock_client, fixed_uuid):
        """The image is built under two fresh identifiers and verified."""
        mock_client.list_images.return_value = [ImageReference("imagename", "imagetag")]
        builder = GenericContainer.from_dockerfile("/src/app", client=mock_client, uuid=fixed_uuid)

        container = await builder.with_build_arg("VERSION", "1.2").build()

        mock_client.build_image.assert_awaited_once_with(
            ImageReference("imagename", "imagetag"), "/src/app", {"VERSION": "1.2"}
        )
        assert isinstance(container, GenericContainer)
        assert container.image == ImageReference("imagename", "imagetag")

    @pytest.mark.asyncio
    async def test_build_verification_failure(self, mock_client, fixed_uuid):
        """An image missing after the build raises BuildVerificationError."""
        mock_client.list_images.return_value = []
        builder = GenericContainerBuilder("/src/app", client=mock_client, uuid=fixed_uuid)

        with pytest.raises(BuildVerificationError) as exc_info:
            await builder.build()

        assert exc_info.value.image == ImageReference("imagename", "imagetag")

    @pytest.mark.asyncio
    async def test_build_failure_propagates(self, mock_client, fixed_uuid):
        """Engine build errors are raised unchanged."""
        mock_client.build_image.side_effect = CollaboratorError("build", "syntax error")
        builder = GenericContainerBuilder("/src/app", client=mock_client, uuid=fixed_uuid)

        with pytest.raises(CollaboratorError):
            await builder.build()

        mock_client.list_images.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_random_identifiers_differ(self, mock_client):
        """Without an injected source every build gets a new image."""
        builder = GenericContainerBuilder("/src/app", client=mock_client)
        mock_client.list_images.side_effect = lambda: [mock_client.build_image.await_args.args[0]]

        first = await builder.build()
        second = await builder.build()

        assert first.image != second.image
        assert first.image.name != first.image.tag
