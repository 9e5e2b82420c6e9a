"""Connection ↔ sandbox bindings and operation routing for live connections."""

from __future__ import annotations

from typing import Literal

from loguru import logger

from boxshell.core.exceptions import BoxshellError, NotConnectedError
from boxshell.sandbox.models import ListResult, PathResult, ReadResult, Sandbox, SpawnResult
from boxshell.sandbox.operations import SandboxOperations
from boxshell.sandbox.registry import SandboxRegistry
from boxshell.session.shell import ShellSessions


FsOperationName = Literal["write_file", "read_file", "readdir", "mkdir", "rm"]


class SessionBinder:
    """Tracks which sandbox each live connection is bound to.

    A connection is bound by ``join`` and stays bound until it joins another
    sandbox or disconnects. Shell state is shared by every connection bound
    to the same sandbox and discarded when the last one leaves.

    Attributes:
        _open: IDs of open connections, bound or not.
        _bindings: Connection ID -> sandbox ID.
    """

    def __init__(
        self,
        registry: SandboxRegistry,
        shells: ShellSessions,
        operations: SandboxOperations,
    ) -> None:
        self.registry = registry
        self.shells = shells
        self.operations = operations
        self._open: set[str] = set()
        self._bindings: dict[str, str] = {}

    @property
    def open_count(self) -> int:
        return len(self._open)

    @property
    def connection_count(self) -> int:
        return len(self._bindings)

    def connect(self, connection_id: str) -> None:
        """Record a newly opened connection. It is unbound until it joins."""
        self._open.add(connection_id)

    def connections_for(self, sandbox_id: str) -> list[str]:
        return [conn for conn, bound in self._bindings.items() if bound == sandbox_id]

    def join(self, connection_id: str, sandbox_id: str) -> Sandbox:
        """Bind a connection to a sandbox.

        Args:
            connection_id: Identifier of the live connection.
            sandbox_id: Sandbox to bind to.

        Returns:
            The sandbox record, for the join acknowledgement.

        Raises:
            SandboxNotFoundError: If the sandbox is unknown. An existing
                binding is left untouched.
        """
        sandbox = self.registry.get(sandbox_id)

        previous = self._bindings.get(connection_id)
        self._bindings[connection_id] = sandbox_id
        if previous is not None and previous != sandbox_id:
            self._release(previous)

        self.shells.initialize(sandbox_id)
        logger.info("Connection joined sandbox", connection_id=connection_id, sandbox_id=sandbox_id)
        return sandbox

    def sandbox_for(self, connection_id: str) -> str:
        """Sandbox bound to ``connection_id``.

        Raises:
            NotConnectedError: If the connection has not joined a sandbox.
        """
        sandbox_id = self._bindings.get(connection_id)
        if sandbox_id is None:
            raise NotConnectedError(connection_id)
        return sandbox_id

    def disconnect(self, connection_id: str) -> None:
        """Forget a closed connection and drop its binding, if any."""
        self._open.discard(connection_id)
        sandbox_id = self._bindings.pop(connection_id, None)
        if sandbox_id is not None:
            self._release(sandbox_id)
            logger.info("Connection left sandbox", connection_id=connection_id, sandbox_id=sandbox_id)

    def _release(self, sandbox_id: str) -> None:
        if not self.connections_for(sandbox_id):
            self.shells.discard(sandbox_id)

    async def terminal_input(self, connection_id: str, text: str) -> str:
        """Run terminal input for a bound connection.

        Failures become terminal text (``Error: <message>``), including a
        sandbox deleted while the connection was bound.

        Raises:
            NotConnectedError: If the connection has not joined a sandbox.
        """
        sandbox_id = self.sandbox_for(connection_id)
        try:
            return await self.shells.handle_input(sandbox_id, text)
        except BoxshellError as exc:
            logger.warning("Terminal input failed", sandbox_id=sandbox_id, error=str(exc))
            return f"Error: {exc}"

    async def process_operation(
        self, connection_id: str, command: str, args: list[str] | None = None
    ) -> SpawnResult:
        sandbox_id = self.sandbox_for(connection_id)
        return await self.shells.spawn(sandbox_id, command, args)

    async def fs_operation(
        self,
        connection_id: str,
        operation: FsOperationName,
        path: str,
        contents: str | None = None,
    ) -> PathResult | ReadResult | ListResult:
        """Route a filesystem operation to the bound sandbox.

        Raises:
            NotConnectedError: If the connection has not joined a sandbox.
            SandboxNotFoundError, InvalidPathError, CommandFailedError:
                From the underlying operation.
        """
        sandbox_id = self.sandbox_for(connection_id)
        match operation:
            case "write_file":
                return await self.operations.write_file(sandbox_id, path, contents or "")
            case "read_file":
                return await self.operations.read_file(sandbox_id, path)
            case "readdir":
                return await self.operations.list_directory(sandbox_id, path)
            case "mkdir":
                return await self.operations.make_directory(sandbox_id, path)
            case "rm":
                return await self.operations.remove(sandbox_id, path)
        raise ValueError(f"Unknown filesystem operation: {operation}")
