"""Command execution inside sandbox containers."""

from __future__ import annotations

import asyncio

from loguru import logger

from boxshell.core.exceptions import EngineOperationError
from boxshell.sandbox.demux import StreamDemultiplexer, clean_output
from boxshell.sandbox.models import ExecResult
from boxshell.sandbox.provider import ContainerEngine
from boxshell.sandbox.registry import SandboxRegistry


class CommandExecutor:
    """Runs one command per exec channel and returns its decoded output.

    Each call is a fresh process inside the container: no shell state
    survives between calls.

    Args:
        engine: Container engine client.
        registry: Registry used to resolve sandbox IDs to engine handles.
        default_timeout: Seconds before a command is abandoned; None waits
            until the engine closes the stream.
    """

    def __init__(
        self,
        engine: ContainerEngine,
        registry: SandboxRegistry,
        default_timeout: float | None = None,
    ) -> None:
        self.engine = engine
        self.registry = registry
        self.default_timeout = default_timeout

    async def execute(
        self,
        sandbox_id: str,
        argv: list[str],
        timeout: float | None = None,
    ) -> ExecResult:
        """Execute ``argv`` in the sandbox without shell parsing.

        Args:
            sandbox_id: Target sandbox.
            argv: Command and arguments.
            timeout: Overrides the executor default for this call.

        Returns:
            ExecResult. Engine failures and timeouts are reported in
            ``error`` with empty ``output``.

        Raises:
            SandboxNotFoundError: If the sandbox or its engine handle is unknown.
        """
        container_id = self.registry.handle(sandbox_id)
        timeout = timeout if timeout is not None else self.default_timeout

        try:
            if timeout is None:
                return await self._run(container_id, argv)
            return await asyncio.wait_for(self._run(container_id, argv), timeout=timeout)
        except EngineOperationError as exc:
            logger.warning(
                "Command execution failed",
                sandbox_id=sandbox_id,
                operation=exc.operation,
                error=exc.engine_message,
            )
            return ExecResult(output="", error=str(exc))
        except TimeoutError:
            logger.warning("Command timed out", sandbox_id=sandbox_id, timeout=timeout)
            return ExecResult(output="", error=f"Command timed out after {timeout:g}s")

    async def run_shell(
        self,
        sandbox_id: str,
        script: str,
        timeout: float | None = None,
    ) -> ExecResult:
        """Execute ``script`` with ``sh -c`` in the sandbox."""
        return await self.execute(sandbox_id, ["sh", "-c", script], timeout=timeout)

    async def _run(self, container_id: str, argv: list[str]) -> ExecResult:
        exec_id = await self.engine.create_exec(container_id, argv)

        demux = StreamDemultiplexer()
        async for chunk in self.engine.start_exec(exec_id):
            demux.feed(chunk)
        output = clean_output(demux.finish())

        return ExecResult(output=output, exit_code=await self._exit_code(exec_id))

    async def _exit_code(self, exec_id: str) -> int | None:
        try:
            info = await self.engine.inspect_exec(exec_id)
        except EngineOperationError as exc:
            logger.debug("Exit code unavailable", exec_id=exec_id, error=str(exc))
            return None
        exit_code = info.get("ExitCode")
        return exit_code if isinstance(exit_code, int) else None
