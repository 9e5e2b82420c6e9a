"""Service object wiring the engine, registry and session layers together."""

from __future__ import annotations

from loguru import logger

from boxshell.core.exceptions import PreviewUnavailableError
from boxshell.sandbox.config import SandboxConfig
from boxshell.sandbox.engine import DockerEngine
from boxshell.sandbox.executor import CommandExecutor
from boxshell.sandbox.manager import SandboxManager
from boxshell.sandbox.operations import SandboxOperations
from boxshell.sandbox.provider import ContainerEngine
from boxshell.sandbox.registry import SandboxRegistry
from boxshell.session.binding import SessionBinder
from boxshell.session.shell import ShellSessions


class SandboxService:
    """Owns every piece of in-process state for one server instance.

    The registry, shell state and connection bindings live here and are
    shared by the HTTP routes and the WebSocket endpoint.

    Args:
        config: Sandbox settings. Defaults to environment-derived settings.
        engine: Container engine; a DockerEngine for ``config.docker_url``
            when omitted.
        command_timeout: Default per-command timeout in seconds (None: wait).
    """

    def __init__(
        self,
        config: SandboxConfig | None = None,
        engine: ContainerEngine | None = None,
        command_timeout: float | None = None,
    ) -> None:
        self.config = config or SandboxConfig()
        self.engine = engine or DockerEngine(
            self.config.docker_url,
            api_version=self.config.docker_api_version,
        )
        self.registry = SandboxRegistry()
        self.executor = CommandExecutor(self.engine, self.registry, default_timeout=command_timeout)
        self.manager = SandboxManager(self.engine, self.registry, self.executor, self.config)
        self.operations = SandboxOperations(self.registry, self.executor)
        self.shells = ShellSessions(self.registry, self.executor, root=self.config.workspace_root)
        self.binder = SessionBinder(self.registry, self.shells, self.operations)

    async def startup(self) -> bool:
        """Check that the engine answers. The server starts either way.

        Returns:
            True if the engine responded to a ping.
        """
        reachable = await self.engine.ping()
        if reachable:
            logger.info("Container engine reachable", docker_url=self.config.docker_url)
        else:
            logger.warning("Container engine unreachable", docker_url=self.config.docker_url)
        return reachable

    async def preview(self, sandbox_id: str) -> tuple[str, int]:
        """Preview URL and host port of a sandbox's application port.

        Uses the port recorded at creation, or inspects the container if
        none was published then.

        Raises:
            SandboxNotFoundError: If the sandbox is unknown.
            PreviewUnavailableError: If no application port is published.
        """
        sandbox = self.manager.get(sandbox_id)
        port = sandbox.preview_port
        if port is None:
            port = await self.manager.resolve_preview_port(sandbox_id)
        if port is None:
            raise PreviewUnavailableError(sandbox_id)
        return f"http://{self.config.public_host}:{port}", port

    async def delete(self, sandbox_id: str) -> None:
        """Delete a sandbox; bound connections keep their binding but fail."""
        await self.manager.delete(sandbox_id)
        self.shells.discard(sandbox_id)

    async def shutdown(self) -> None:
        """Tear down sandboxes (if configured) and close the engine client."""
        try:
            await self.manager.shutdown()
        finally:
            await self.engine.aclose()
