"""FastAPI application setup and configuration."""
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI

from boxshell import __version__
from boxshell.logging import configure_logging, log_server_startup
from boxshell.sandbox.config import SandboxConfig
from boxshell.server.config import ServerConfig
from boxshell.server.dependencies import clear_service, set_service
from boxshell.server.routes import health_router, sandboxes_router, websocket_router
from boxshell.server.routes.sandboxes import configure_exception_handlers
from boxshell.service import SandboxService


# Module-level config storage for DI
_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """FastAPI dependency that provides the server configuration.

    Returns:
        The current ServerConfig instance.

    Raises:
        RuntimeError: If config is not initialized (server not started).
    """
    if _config is None:
        raise RuntimeError("Server config not initialized. Is the server running?")
    return _config


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan events.

    Builds the sandbox service on startup. On shutdown, managed sandbox
    containers are removed (unless disabled) and the engine client closed.
    """
    global _config

    _config = ServerConfig()
    configure_logging(_config.log_level)

    sandbox_config = SandboxConfig()
    service = SandboxService(
        config=sandbox_config,
        command_timeout=_config.command_timeout_seconds,
    )
    await service.startup()
    set_service(service)

    log_server_startup(
        host=_config.host,
        port=_config.port,
        docker_url=sandbox_config.docker_url,
        image=sandbox_config.image,
        version=__version__,
    )

    app.state.start_time = datetime.now(UTC)
    yield

    try:
        await service.shutdown()
    finally:
        clear_service()
        _config = None


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="Boxshell API",
        description="Container sandboxes with an interactive shell session",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # Configure exception handlers
    configure_exception_handlers(application)

    # Mount routes
    application.include_router(health_router, prefix="/api")
    application.include_router(sandboxes_router, prefix="/api")
    application.include_router(websocket_router)  # No prefix - route is /ws/sandbox

    return application


# Create app instance
app = create_app()
