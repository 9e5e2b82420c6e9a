"""One-shot filesystem operations inside a sandbox."""

from __future__ import annotations

import base64
import binascii
from typing import Literal

from loguru import logger

from boxshell.core.exceptions import CommandFailedError
from boxshell.sandbox.commands import (
    base64_write_argvs,
    cat_argv,
    list_argv,
    mkdir_argv,
    parent_directory,
    parse_ls,
    remove_argv,
    write_argvs,
)
from boxshell.sandbox.executor import CommandExecutor
from boxshell.sandbox.models import ExecResult, ListResult, PathResult, ReadResult
from boxshell.sandbox.registry import SandboxRegistry


class SandboxOperations:
    """Single-command filesystem operations.

    Every operation requires an existing sandbox and runs its command
    through the executor as argv, so paths and contents are never parsed
    by a shell.

    Args:
        registry: Registry used to validate sandbox IDs.
        executor: Command executor.
    """

    def __init__(self, registry: SandboxRegistry, executor: CommandExecutor) -> None:
        self.registry = registry
        self.executor = executor

    async def _run(self, sandbox_id: str, operation: str, path: str, argv: list[str]) -> ExecResult:
        result = await self.executor.execute(sandbox_id, argv)
        if not result.ok:
            raise CommandFailedError(
                operation, path, result.text() or f"exit code {result.exit_code}"
            )
        return result

    async def write_file(self, sandbox_id: str, path: str, contents: str) -> PathResult:
        """Write ``contents`` to ``path`` exactly.

        Raises:
            SandboxNotFoundError: If the sandbox is unknown.
            InvalidPathError: If the path is empty or contains NUL.
            CommandFailedError: If a write command fails.
        """
        self.registry.get(sandbox_id)
        for argv in write_argvs(path, contents):
            await self._run(sandbox_id, "write_file", path, argv)
        logger.debug("File written", sandbox_id=sandbox_id, path=path, size=len(contents))
        return PathResult(path=path)

    async def read_file(self, sandbox_id: str, path: str) -> ReadResult:
        """Return the output of ``cat path``.

        A missing file is not an error here: the command's own message is
        returned as the contents.
        """
        self.registry.get(sandbox_id)
        result = await self.executor.execute(sandbox_id, cat_argv(path))
        return ReadResult(contents=result.text())

    async def list_directory(self, sandbox_id: str, path: str) -> ListResult:
        self.registry.get(sandbox_id)
        result = await self._run(sandbox_id, "readdir", path, list_argv(path))
        return ListResult(files=parse_ls(result.output))

    async def make_directory(self, sandbox_id: str, path: str) -> PathResult:
        self.registry.get(sandbox_id)
        await self._run(sandbox_id, "mkdir", path, mkdir_argv(path))
        return PathResult(path=path)

    async def remove(self, sandbox_id: str, path: str) -> PathResult:
        self.registry.get(sandbox_id)
        await self._run(sandbox_id, "rm", path, remove_argv(path))
        return PathResult(path=path)

    async def upload(
        self,
        sandbox_id: str,
        filename: str,
        target_path: str,
        content: str,
        encoding: Literal["utf8", "base64"] = "utf8",
    ) -> PathResult:
        """Write an uploaded file, creating its parent directory first.

        Args:
            sandbox_id: Target sandbox.
            filename: Client-side file name (for logs only).
            target_path: Destination path in the sandbox.
            content: Text, or base64 when ``encoding`` is ``"base64"``.
            encoding: How ``content`` is encoded.

        Raises:
            CommandFailedError: If the content is not valid base64 or a
                command fails.
        """
        self.registry.get(sandbox_id)

        if encoding == "base64":
            try:
                base64.b64decode("".join(content.split()), validate=True)
            except (binascii.Error, ValueError) as exc:
                raise CommandFailedError("upload", target_path, f"invalid base64 content: {exc}") from exc
            argvs = base64_write_argvs(target_path, content)
        else:
            argvs = write_argvs(target_path, content)

        directory = parent_directory(target_path)
        if directory:
            await self._run(sandbox_id, "upload", target_path, mkdir_argv(directory))

        for argv in argvs:
            await self._run(sandbox_id, "upload", target_path, argv)

        logger.info(
            "File uploaded",
            sandbox_id=sandbox_id,
            filename=filename,
            path=target_path,
            encoding=encoding,
        )
        return PathResult(path=target_path)
