"""Tests for SandboxService wiring."""
import pytest

from boxshell.core.exceptions import PreviewUnavailableError, SandboxNotFoundError
from boxshell.sandbox.config import SandboxConfig
from boxshell.sandbox.models import Sandbox
from boxshell.service import SandboxService
from tests.conftest import FakeEngine


class TestStartup:
    async def test_reports_reachable_engine(self, service: SandboxService) -> None:
        assert await service.startup() is True

    async def test_unreachable_engine_does_not_raise(
        self, service: SandboxService, fake_engine: FakeEngine
    ) -> None:
        fake_engine.reachable = False
        assert await service.startup() is False


class TestPreview:
    """Tests for SandboxService.preview()."""

    async def test_uses_port_recorded_at_creation(
        self, service: SandboxService, sandbox: Sandbox
    ) -> None:
        url, port = await service.preview(sandbox.id)

        assert port == 49153
        assert url == "http://localhost:49153"

    async def test_inspects_when_no_port_recorded(
        self, service: SandboxService, sandbox: Sandbox, fake_engine: FakeEngine
    ) -> None:
        sandbox.preview_port = None
        fake_engine.published_port = 50000

        _, port = await service.preview(sandbox.id)

        assert port == 50000

    async def test_unpublished_port_raises(
        self, service: SandboxService, fake_engine: FakeEngine
    ) -> None:
        fake_engine.published_port = None
        created = await service.manager.create()

        with pytest.raises(PreviewUnavailableError):
            await service.preview(created.id)

    async def test_unknown_sandbox(self, service: SandboxService) -> None:
        with pytest.raises(SandboxNotFoundError):
            await service.preview("missing")

    async def test_public_host_in_url(self, fake_engine: FakeEngine) -> None:
        config = SandboxConfig(_env_file=None, public_host="sandbox.internal")
        svc = SandboxService(config=config, engine=fake_engine)
        created = await svc.manager.create()

        url, _ = await svc.preview(created.id)

        assert url == "http://sandbox.internal:49153"


class TestDelete:
    async def test_discards_shell_state(self, service: SandboxService, sandbox: Sandbox) -> None:
        service.shells.initialize(sandbox.id)

        await service.delete(sandbox.id)

        assert not service.shells.has_state(sandbox.id)
        assert service.manager.find(sandbox.id) is None


class TestShutdown:
    async def test_removes_containers_and_closes_engine(
        self, service: SandboxService, sandbox: Sandbox, fake_engine: FakeEngine
    ) -> None:
        await service.shutdown()

        assert fake_engine.containers == {}
        assert fake_engine.closed is True
        assert service.registry.all() == []

    async def test_sweeps_containers_when_delete_fails(
        self, service: SandboxService, sandbox: Sandbox, fake_engine: FakeEngine
    ) -> None:
        fake_engine.fail("container.stop")

        await service.shutdown()

        # The prefix sweep force-removes what delete left behind
        assert fake_engine.containers == {}
        assert fake_engine.closed is True

    async def test_teardown_disabled_keeps_containers(self, fake_engine: FakeEngine) -> None:
        config = SandboxConfig(_env_file=None, teardown_on_shutdown=False)
        svc = SandboxService(config=config, engine=fake_engine)
        await svc.manager.create()

        await svc.shutdown()

        assert len(fake_engine.containers) == 1
        assert fake_engine.closed is True
