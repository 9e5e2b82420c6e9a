"""Shared fixtures for route tests."""
from collections.abc import AsyncIterator, Iterator
from datetime import UTC, datetime

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from boxshell.server.dependencies import clear_service, get_service, set_service
from boxshell.server.routes import health_router, sandboxes_router, websocket_router
from boxshell.server.routes.sandboxes import configure_exception_handlers
from boxshell.service import SandboxService


@pytest.fixture
def app(service: SandboxService) -> Iterator[FastAPI]:
    """Create a test FastAPI app backed by the fake engine."""
    test_app = FastAPI()
    configure_exception_handlers(test_app)
    test_app.include_router(health_router, prefix="/api")
    test_app.include_router(sandboxes_router, prefix="/api")
    test_app.include_router(websocket_router)
    test_app.state.start_time = datetime.now(UTC)

    # Routes use the dependency, the WebSocket endpoint the module-level instance
    test_app.dependency_overrides[get_service] = lambda: service
    set_service(service)
    yield test_app
    clear_service()


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Create an async test client."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
