"""In-memory sandbox registry: records and their engine handles."""

from __future__ import annotations

from boxshell.core.exceptions import SandboxNotFoundError
from boxshell.sandbox.models import Sandbox


class SandboxRegistry:
    """Owns the sandbox records and the sandbox → engine container mapping.

    Lookups never touch the engine. Handles are kept apart from records so
    they never reach clients.
    """

    def __init__(self) -> None:
        self._sandboxes: dict[str, Sandbox] = {}
        self._handles: dict[str, str] = {}
        self._issued: set[str] = set()

    def add(self, sandbox: Sandbox) -> None:
        """Register a new record.

        Raises:
            ValueError: If the ID was ever issued before.
        """
        if sandbox.id in self._issued:
            raise ValueError(f"Sandbox ID already issued: {sandbox.id}")
        self._issued.add(sandbox.id)
        self._sandboxes[sandbox.id] = sandbox

    def was_issued(self, sandbox_id: str) -> bool:
        return sandbox_id in self._issued

    def find(self, sandbox_id: str) -> Sandbox | None:
        return self._sandboxes.get(sandbox_id)

    def get(self, sandbox_id: str) -> Sandbox:
        """Return the record for ``sandbox_id``.

        Raises:
            SandboxNotFoundError: If the ID is unknown.
        """
        sandbox = self._sandboxes.get(sandbox_id)
        if sandbox is None:
            raise SandboxNotFoundError(sandbox_id)
        return sandbox

    def all(self) -> list[Sandbox]:
        return list(self._sandboxes.values())

    def set_handle(self, sandbox_id: str, container_id: str) -> None:
        self._handles[sandbox_id] = container_id

    def find_handle(self, sandbox_id: str) -> str | None:
        return self._handles.get(sandbox_id)

    def handle(self, sandbox_id: str) -> str:
        """Return the engine container ID for a sandbox.

        Raises:
            SandboxNotFoundError: If the sandbox or its handle is missing.
        """
        self.get(sandbox_id)
        container_id = self._handles.get(sandbox_id)
        if container_id is None:
            raise SandboxNotFoundError(sandbox_id, "no engine container")
        return container_id

    def remove(self, sandbox_id: str) -> None:
        """Drop the record and handle. Issued IDs stay reserved."""
        self._sandboxes.pop(sandbox_id, None)
        self._handles.pop(sandbox_id, None)

    def __len__(self) -> int:
        return len(self._sandboxes)

    def __contains__(self, sandbox_id: object) -> bool:
        return sandbox_id in self._sandboxes
