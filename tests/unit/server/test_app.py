"""Tests for application setup and lifespan."""
from unittest.mock import patch

from fastapi.testclient import TestClient

from boxshell.sandbox.config import SandboxConfig
from boxshell.server.dependencies import get_service
from boxshell.server.main import create_app
from boxshell.service import SandboxService
from tests.conftest import FakeEngine


class TestCreateApp:
    """Tests for create_app()."""

    def test_routes_registered(self) -> None:
        app = create_app()
        paths = {route.path for route in app.routes}  # type: ignore[attr-defined]

        assert "/api/health" in paths
        assert "/api/sandboxes" in paths
        assert "/api/sandboxes/{sandbox_id}/fs/write" in paths
        assert "/api/sandboxes/{sandbox_id}/upload" in paths
        assert "/ws/sandbox" in paths


class TestLifespan:
    """Tests for startup and shutdown."""

    def test_startup_and_shutdown(self) -> None:
        engine = FakeEngine()
        service = SandboxService(config=SandboxConfig(_env_file=None), engine=engine)

        with patch("boxshell.server.main.SandboxService", return_value=service):
            app = create_app()
            with TestClient(app) as client:
                assert get_service() is service
                created = client.post("/api/sandboxes").json()
                health = client.get("/api/health").json()
                assert health["sandboxes"] == 1
                assert health["status"] == "healthy"

        # Shutdown removed the sandbox container and closed the engine
        assert engine.containers == {}
        assert engine.closed is True
        assert service.manager.find(created["id"]) is None

    def test_degraded_when_engine_unreachable(self) -> None:
        engine = FakeEngine(reachable=False)
        service = SandboxService(config=SandboxConfig(_env_file=None), engine=engine)

        with patch("boxshell.server.main.SandboxService", return_value=service):
            with TestClient(create_app()) as client:
                health = client.get("/api/health").json()

        assert health["status"] == "degraded"
        assert health["engine"] == "unreachable"
