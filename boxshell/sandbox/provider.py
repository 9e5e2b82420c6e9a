"""ContainerEngine protocol: the engine surface sandboxes are built on."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ContainerEngine(Protocol):
    """Container engine operations used by the sandbox core.

    Every method raises ``EngineOperationError`` when the engine rejects
    the call or cannot be reached. Container arguments are the engine's own
    container identifiers (engine handles), never sandbox IDs.
    """

    async def create_container(self, name: str, spec: dict[str, Any]) -> str:
        """Create a container and return its engine ID."""
        ...

    async def start_container(self, container_id: str) -> None:
        """Start a created container. Already running is not an error."""
        ...

    async def stop_container(self, container_id: str) -> None:
        """Stop a container. Already stopped is not an error."""
        ...

    async def remove_container(self, container_id: str, force: bool = False) -> None:
        """Remove a container."""
        ...

    async def inspect_container(self, container_id: str) -> dict[str, Any]:
        """Return the engine's live description of a container."""
        ...

    async def list_containers(
        self, all: bool = True, name: str | None = None
    ) -> list[dict[str, Any]]:
        """List containers, optionally filtered by name substring."""
        ...

    async def create_exec(self, container_id: str, argv: list[str]) -> str:
        """Create an exec instance with stdout and stderr attached.

        Args:
            container_id: Engine container ID.
            argv: Command and arguments, passed without shell parsing.

        Returns:
            Engine exec ID.
        """
        ...

    def start_exec(self, exec_id: str) -> AsyncIterator[bytes]:
        """Start an exec and yield its raw multiplexed output chunks.

        The iterator ends when the engine closes the stream.
        """
        ...

    async def inspect_exec(self, exec_id: str) -> dict[str, Any]:
        """Return the engine's description of an exec (includes ExitCode)."""
        ...

    async def ping(self) -> bool:
        """Check the engine is reachable."""
        ...

    async def aclose(self) -> None:
        """Release transport resources."""
        ...
