"""CLI commands for the boxshell server."""
import asyncio
from typing import Annotated

import typer
import uvicorn
from rich.console import Console

from boxshell.sandbox.config import SandboxConfig
from boxshell.sandbox.engine import DockerEngine
from boxshell.sandbox.teardown import teardown_sandbox_containers
from boxshell.server.config import ServerConfig


console = Console()

server_app = typer.Typer(
    name="server",
    help="Boxshell API server commands.",
)


@server_app.callback(invoke_without_command=True)
def server(
    ctx: typer.Context,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Port to listen on (default: from config/env)"),
    ] = None,
    bind_all: Annotated[
        bool,
        typer.Option(
            "--bind-all",
            help="Bind to all interfaces (0.0.0.0). WARNING: Exposes server to network.",
        ),
    ] = False,
    reload: Annotated[
        bool,
        typer.Option("--reload", help="Enable auto-reload for development"),
    ] = False,
) -> None:
    """Start the boxshell API server.

    By default, binds to localhost (127.0.0.1) only.
    Use --bind-all to expose to the network (not recommended without auth).

    Port and host can be configured via BOXSHELL_PORT and BOXSHELL_HOST env vars.
    """
    # Skip if subcommand is invoked
    if ctx.invoked_subcommand is not None:
        return

    config = ServerConfig()

    # CLI flags override config
    effective_port = port if port is not None else config.port
    effective_host = "0.0.0.0" if bind_all else config.host

    if bind_all:
        console.print(
            "[yellow]Warning:[/yellow] Server accessible to all network clients. "
            "No authentication enabled.",
            style="bold yellow",
        )

    console.print(f"Starting boxshell server on http://{effective_host}:{effective_port}")
    console.print(f"API docs: http://{effective_host}:{effective_port}/api/docs")

    try:
        uvicorn.run(
            "boxshell.server.main:app",
            host=effective_host,
            port=effective_port,
            reload=reload,
            log_level=config.log_level.lower(),
        )
    except KeyboardInterrupt:
        console.print("\nServer stopped.")


async def _cleanup(config: SandboxConfig, timeout: float) -> int:
    engine = DockerEngine(config.docker_url, api_version=config.docker_api_version)
    try:
        return await teardown_sandbox_containers(engine, config.container_prefix, timeout=timeout)
    finally:
        await engine.aclose()


@server_app.command("cleanup")
def cleanup(
    timeout: Annotated[
        float,
        typer.Option("--timeout", help="Seconds to wait for the engine"),
    ] = 10.0,
) -> None:
    """Remove leftover sandbox containers.

    Useful if the server was killed without a graceful shutdown.
    """
    config = SandboxConfig()
    removed = asyncio.run(_cleanup(config, timeout))
    console.print(f"Removed {removed} sandbox container(s) with prefix '{config.container_prefix}'.")
