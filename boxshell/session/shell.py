"""Interactive shell emulation on top of one-shot command execution.

Every command runs in a fresh process inside the sandbox, so the current
directory is remembered here and re-applied as a ``cd`` prefix on every
command. Only navigation (``cd``) changes the remembered directory, and
only to a path the sandbox's own shell resolved.
"""

from __future__ import annotations

import asyncio
import random
import re
import shlex

from loguru import logger

from boxshell.sandbox.commands import shell_join
from boxshell.sandbox.executor import CommandExecutor
from boxshell.sandbox.models import ExecResult, SpawnResult
from boxshell.sandbox.registry import SandboxRegistry


_CD = re.compile(r"^cd(?:\s+(?P<target>.*))?$", re.DOTALL)

NAVIGATION_FAILURES = (
    "no such file or directory",
    "permission denied",
    "can't cd to",
    "can't cd",
    "not a directory",
)


class ShellSessions:
    """Per-sandbox working directory state and command rewriting.

    Navigation for one sandbox is serialized by a per-sandbox lock, so a
    ``cd`` always completes before a later input reads the directory.
    Ordinary commands capture the directory under the lock and run outside
    it, so a long-running command does not hold up the session.

    Args:
        registry: Registry used to validate sandbox IDs.
        executor: Command executor.
        root: Initial directory and target of bare ``cd`` / ``cd ~``.
        rng: Random source for synthetic spawn PIDs.
    """

    def __init__(
        self,
        registry: SandboxRegistry,
        executor: CommandExecutor,
        root: str = "/workspace",
        rng: random.Random | None = None,
    ) -> None:
        self.registry = registry
        self.executor = executor
        self.root = root
        self._cwd: dict[str, str] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._rng = rng or random.Random()

    def initialize(self, sandbox_id: str) -> str:
        """Set the root as current directory unless state already exists."""
        return self._cwd.setdefault(sandbox_id, self.root)

    def has_state(self, sandbox_id: str) -> bool:
        return sandbox_id in self._cwd

    def discard(self, sandbox_id: str) -> None:
        """Forget a sandbox's directory; the next join starts from root."""
        self._cwd.pop(sandbox_id, None)
        lock = self._locks.get(sandbox_id)
        if lock is not None and not lock.locked():
            del self._locks[sandbox_id]

    def cwd(self, sandbox_id: str) -> str:
        return self._cwd.get(sandbox_id, self.root)

    def _lock(self, sandbox_id: str) -> asyncio.Lock:
        lock = self._locks.get(sandbox_id)
        if lock is None:
            lock = self._locks[sandbox_id] = asyncio.Lock()
        return lock

    async def handle_input(self, sandbox_id: str, text: str) -> str:
        """Run one line of terminal input and return what a shell would print.

        Raises:
            SandboxNotFoundError: If the sandbox is unknown.
        """
        result = await self.dispatch(sandbox_id, text)
        return result.text()

    async def dispatch(self, sandbox_id: str, text: str) -> ExecResult:
        """Route terminal input to navigation, ``pwd`` or execution.

        Returns:
            The result shown to the user. Navigation results carry exit
            code 0 (accepted) or 1 (rejected).

        Raises:
            SandboxNotFoundError: If the sandbox is unknown.
        """
        self.registry.get(sandbox_id)
        line = text.strip()
        if not line:
            return ExecResult(output="", exit_code=0)

        # Held while the directory is read or resolved; ordinary commands run outside it
        async with self._lock(sandbox_id):
            if line == "pwd":
                return ExecResult(output=self.cwd(sandbox_id), exit_code=0)

            match = _CD.match(line)
            if match:
                raw_target = (match.group("target") or "").strip()
                try:
                    tokens = shlex.split(raw_target)
                except ValueError:
                    return self._rejected(raw_target)
                if len(tokens) <= 1:
                    return await self._change_directory(
                        sandbox_id, raw_target, tokens[0] if tokens else ""
                    )

            cwd = self.cwd(sandbox_id)

        return await self._run(sandbox_id, cwd, line)

    async def _run(self, sandbox_id: str, cwd: str, command: str) -> ExecResult:
        # The remembered directory is not updated, even if the command cd's
        script = f"cd {shlex.quote(cwd)} && {command}"
        return await self.executor.run_shell(sandbox_id, script)

    @staticmethod
    def _rejected(raw_target: str) -> ExecResult:
        return ExecResult(output=f"cd: {raw_target}: No such file or directory", exit_code=1)

    async def _change_directory(self, sandbox_id: str, raw_target: str, target: str) -> ExecResult:
        if target in ("", "~"):
            self._cwd[sandbox_id] = self.root
            return ExecResult(output="", exit_code=0)

        if target.startswith("~/"):
            target = f"{self.root.rstrip('/')}/{target[2:]}"

        base = "/" if target.startswith("/") else self.cwd(sandbox_id)
        script = f"cd {shlex.quote(base)} && cd {shlex.quote(target)} && pwd"
        result = await self.executor.run_shell(sandbox_id, script)

        resolved = self._resolved_path(result)
        if resolved is None:
            logger.debug(
                "Navigation rejected",
                sandbox_id=sandbox_id,
                target=raw_target,
                output=result.text(),
            )
            return self._rejected(raw_target)

        self._cwd[sandbox_id] = resolved
        return ExecResult(output="", exit_code=0)

    @staticmethod
    def _resolved_path(result: ExecResult) -> str | None:
        if not result.ok:
            return None
        lowered = result.output.lower()
        if any(failure in lowered for failure in NAVIGATION_FAILURES):
            return None
        lines = result.output.strip().splitlines()
        if not lines:
            return None
        path = lines[-1].strip()
        return path if path.startswith("/") else None

    async def spawn(
        self, sandbox_id: str, command: str, args: list[str] | None = None
    ) -> SpawnResult:
        """Run a process-style request through the shell session.

        Args are shell-quoted and appended to ``command``.
        """
        result = await self.dispatch(sandbox_id, shell_join(command, args))
        return SpawnResult(
            pid=self._rng.randint(1, 9999),
            output=result.text(),
            exit_code=result.exit_code or 0,
        )
