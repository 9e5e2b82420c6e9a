"""Sandbox lifecycle management against the container engine.

One container per sandbox, kept alive by a sleep loop. Work happens
through exec channels (see ``boxshell.sandbox.executor``).
"""

from __future__ import annotations

import random
import uuid
from typing import Any

from loguru import logger

from boxshell.core.exceptions import (
    CommandFailedError,
    EngineOperationError,
    SandboxCreationError,
    SandboxNotFoundError,
)
from boxshell.sandbox.commands import mkdir_argv, write_argvs
from boxshell.sandbox.config import SandboxConfig
from boxshell.sandbox.executor import CommandExecutor
from boxshell.sandbox.models import FileTree, Sandbox, SandboxStatus
from boxshell.sandbox.provider import ContainerEngine
from boxshell.sandbox.registry import SandboxRegistry
from boxshell.sandbox.teardown import teardown_sandbox_containers


LABEL_SANDBOX_ID = "boxshell.sandbox-id"


class SandboxManager:
    """Creates, inspects, lists and destroys sandboxes.

    Args:
        engine: Container engine client.
        registry: Registry owning records and engine handles.
        executor: Executor used to seed initial files.
        config: Container shape and naming settings.
        rng: Random source for control port allocation.
    """

    def __init__(
        self,
        engine: ContainerEngine,
        registry: SandboxRegistry,
        executor: CommandExecutor,
        config: SandboxConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.engine = engine
        self.registry = registry
        self.executor = executor
        self.config = config or SandboxConfig()
        self._rng = rng or random.Random()

    def _new_id(self) -> str:
        while True:
            sandbox_id = str(uuid.uuid4())
            if not self.registry.was_issued(sandbox_id):
                return sandbox_id

    def _allocate_port(self) -> int:
        # Not checked against live sandboxes; a collision fails the create
        return self.config.control_port_start + self._rng.randrange(self.config.control_port_range)

    def container_name(self, sandbox_id: str) -> str:
        return f"{self.config.container_prefix}{sandbox_id}"

    def _container_spec(self, sandbox_id: str, port: int) -> dict[str, Any]:
        app_port = f"{self.config.app_port}/tcp"
        control_port = f"{port}/tcp"
        return {
            "Image": self.config.image,
            "Cmd": list(self.config.keepalive_command),
            "WorkingDir": self.config.workspace_root,
            "ExposedPorts": {control_port: {}, app_port: {}},
            "Labels": {LABEL_SANDBOX_ID: sandbox_id},
            "HostConfig": {
                "PortBindings": {
                    control_port: [{"HostPort": str(port)}],
                    # Host port "0": the engine picks one
                    app_port: [{"HostPort": "0"}],
                },
                "Memory": self.config.memory_limit_mb * 1024 * 1024,
                "CpuShares": self.config.cpu_shares,
            },
            "Env": [
                "NODE_ENV=development",
                f"WEBSOCKET_PORT={port}",
            ],
        }

    async def create(self, files: FileTree | None = None) -> Sandbox:
        """Create, start and seed a new sandbox.

        Args:
            files: Optional tree written under the workspace root.

        Returns:
            The running sandbox record.

        Raises:
            SandboxCreationError: If any step fails. The record stays in the
                registry with status ``error``.
        """
        sandbox_id = self._new_id()
        port = self._allocate_port()
        sandbox = Sandbox(id=sandbox_id, status=SandboxStatus.CREATING, port=port)
        self.registry.add(sandbox)

        try:
            container_id = await self.engine.create_container(
                self.container_name(sandbox_id),
                self._container_spec(sandbox_id, port),
            )
            self.registry.set_handle(sandbox_id, container_id)
            await self.engine.start_container(container_id)

            if files:
                await self.seed_files(sandbox_id, files)

            preview_port = await self.resolve_preview_port(sandbox_id)
        except Exception as exc:
            logger.error(
                "Failed to create sandbox",
                sandbox_id=sandbox_id,
                error=str(exc),
            )
            sandbox.transition(SandboxStatus.ERROR)
            raise SandboxCreationError(sandbox, exc) from exc

        sandbox.transition(SandboxStatus.RUNNING)
        sandbox.control_url = f"ws://{self.config.public_host}:{port}"
        if preview_port is not None:
            sandbox.preview_port = preview_port
            sandbox.preview_url = f"http://{self.config.public_host}:{preview_port}"

        logger.info(
            "Sandbox created",
            sandbox_id=sandbox_id,
            port=port,
            preview_port=sandbox.preview_port,
        )
        return sandbox

    async def seed_files(
        self, sandbox_id: str, files: FileTree, base_path: str | None = None
    ) -> None:
        """Write a file tree into the sandbox, depth first.

        Raises:
            CommandFailedError: If any write or mkdir fails.
        """
        base_path = base_path or self.config.workspace_root
        await self._run_checked(sandbox_id, mkdir_argv(base_path))
        for name, node in files.items():
            full_path = f"{base_path.rstrip('/')}/{name}"
            if node.directory is not None:
                await self.seed_files(sandbox_id, node.directory, full_path)
            elif node.file is not None:
                for argv in write_argvs(full_path, node.file.contents):
                    await self._run_checked(sandbox_id, argv)

    async def mount(self, sandbox_id: str, files: FileTree) -> int:
        """Write a file tree into a running sandbox's workspace.

        Returns:
            Number of top-level entries mounted.

        Raises:
            SandboxNotFoundError: If the sandbox is unknown.
            CommandFailedError: If any write or mkdir fails.
        """
        self.registry.get(sandbox_id)
        await self.seed_files(sandbox_id, files)
        logger.info("Files mounted", sandbox_id=sandbox_id, entries=len(files))
        return len(files)

    async def _run_checked(self, sandbox_id: str, argv: list[str]) -> None:
        result = await self.executor.execute(sandbox_id, argv)
        if not result.ok:
            raise CommandFailedError(
                "seed", argv[-1], result.text() or f"exit code {result.exit_code}"
            )

    def get(self, sandbox_id: str) -> Sandbox:
        """Look up a sandbox record. Never touches the engine.

        Raises:
            SandboxNotFoundError: If the ID is unknown.
        """
        return self.registry.get(sandbox_id)

    def find(self, sandbox_id: str) -> Sandbox | None:
        return self.registry.find(sandbox_id)

    def list(self) -> list[Sandbox]:
        return self.registry.all()

    async def _locate_container(self, sandbox_id: str) -> str | None:
        container_id = self.registry.find_handle(sandbox_id)
        if container_id:
            return container_id
        prefix = sandbox_id[:12]
        for container in await self.engine.list_containers(all=True):
            if any(prefix in name for name in container.get("Names") or []):
                return str(container["Id"])
        return None

    async def delete(self, sandbox_id: str) -> None:
        """Stop and remove a sandbox's container and drop its record.

        Raises:
            SandboxNotFoundError: If the ID is unknown.
            EngineOperationError: If the engine fails; the record is kept.
        """
        sandbox = self.registry.get(sandbox_id)

        container_id = await self._locate_container(sandbox_id)
        if container_id:
            await self.engine.stop_container(container_id)
            await self.engine.remove_container(container_id)
        else:
            logger.warning("No engine container for sandbox", sandbox_id=sandbox_id)

        if sandbox.status is SandboxStatus.RUNNING:
            sandbox.transition(SandboxStatus.STOPPED)
        self.registry.remove(sandbox_id)
        logger.info("Sandbox deleted", sandbox_id=sandbox_id)

    async def resolve_preview_port(self, sandbox_id: str) -> int | None:
        """Host port published for the internal application port.

        Returns:
            The host port, or None when the container publishes none, has
            no handle, or cannot be inspected.

        Raises:
            SandboxNotFoundError: If the ID is unknown.
        """
        self.registry.get(sandbox_id)
        container_id = self.registry.find_handle(sandbox_id)
        if container_id is None:
            return None

        try:
            info = await self.engine.inspect_container(container_id)
        except EngineOperationError as exc:
            logger.error(
                "Failed to resolve preview port",
                sandbox_id=sandbox_id,
                error=str(exc),
            )
            return None

        ports = (info.get("NetworkSettings") or {}).get("Ports") or {}
        bindings = ports.get(f"{self.config.app_port}/tcp") or []
        for binding in bindings:
            host_port = binding.get("HostPort")
            if host_port:
                return int(host_port)
        return None

    async def shutdown(self) -> None:
        """Delete every registered sandbox, then sweep leftover containers."""
        if not self.config.teardown_on_shutdown:
            return

        for sandbox in self.registry.all():
            try:
                await self.delete(sandbox.id)
            except (EngineOperationError, SandboxNotFoundError) as exc:
                logger.warning(
                    "Failed to delete sandbox during shutdown",
                    sandbox_id=sandbox.id,
                    error=str(exc),
                )

        await teardown_sandbox_containers(
            self.engine,
            self.config.container_prefix,
            timeout=self.config.teardown_timeout_seconds,
        )
