"""Sandbox records, file trees and execution results."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from boxshell.core.exceptions import InvalidStateTransitionError


class SandboxStatus(StrEnum):
    """Lifecycle status of a sandbox."""

    CREATING = "creating"  # Container requested, not yet usable
    RUNNING = "running"  # Started and seeded
    STOPPED = "stopped"  # Stopped during deletion
    ERROR = "error"  # Creation failed at some step


# Terminal states only leave the registry through deletion
VALID_TRANSITIONS: dict[SandboxStatus, set[SandboxStatus]] = {
    SandboxStatus.CREATING: {SandboxStatus.RUNNING, SandboxStatus.ERROR},
    SandboxStatus.RUNNING: {SandboxStatus.STOPPED},
    SandboxStatus.STOPPED: set(),
    SandboxStatus.ERROR: set(),
}


def validate_transition(current: SandboxStatus, target: SandboxStatus) -> None:
    """Validate that a status transition is allowed.

    Args:
        current: The current sandbox status.
        target: The desired new status.

    Raises:
        InvalidStateTransitionError: If the transition is not allowed.
    """
    if target not in VALID_TRANSITIONS[current]:
        raise InvalidStateTransitionError(current, target)


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, accepting either form."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Sandbox(CamelModel):
    """A sandbox record as held in the registry and returned to clients.

    Attributes:
        id: Opaque unique identifier, never reused.
        status: Current lifecycle status.
        port: Control port published on the host.
        preview_port: Host port published for the internal application port.
        control_url: Externally reachable control channel URL.
        preview_url: Externally reachable application URL.
        created_at: Creation timestamp (UTC).
    """

    id: str
    status: SandboxStatus = SandboxStatus.CREATING
    port: int | None = None
    preview_port: int | None = None
    control_url: str | None = None
    preview_url: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def transition(self, target: SandboxStatus) -> None:
        """Move to ``target`` status if the transition is allowed.

        Raises:
            InvalidStateTransitionError: If the transition is not allowed.
        """
        validate_transition(self.status, target)
        self.status = target


class FileContents(BaseModel):
    """Raw contents of a seeded file."""

    contents: str


class FileNode(BaseModel):
    """One entry of a file tree: either a file or a nested directory."""

    file: FileContents | None = None
    directory: dict[str, FileNode] | None = None

    @model_validator(mode="after")
    def _exactly_one_kind(self) -> FileNode:
        if (self.file is None) == (self.directory is None):
            raise ValueError("file tree node must have exactly one of 'file' or 'directory'")
        return self


FileNode.model_rebuild()

FileTree = dict[str, FileNode]


class ExecResult(BaseModel):
    """Result of one command execution inside a sandbox.

    Attributes:
        output: Demultiplexed, cleaned stdout and stderr text.
        error: Engine-level failure message; None when the command ran.
        exit_code: Exit code reported by the engine, when available.
    """

    output: str = ""
    error: str | None = None
    exit_code: int | None = None

    @property
    def ok(self) -> bool:
        """True when the command ran and did not report a nonzero exit."""
        return self.error is None and self.exit_code in (0, None)

    def text(self) -> str:
        """Output if any, otherwise the error message."""
        return self.output or self.error or ""


class DirectoryEntry(BaseModel):
    """One entry of a directory listing."""

    name: str
    type: Literal["file", "directory"]


def parse_file_tree(raw: dict[str, Any]) -> FileTree:
    """Validate a raw mapping into a file tree.

    Args:
        raw: Mapping of names to ``{"file": {...}}`` / ``{"directory": {...}}``.

    Returns:
        Validated file tree.
    """
    return {name: FileNode.model_validate(node) for name, node in raw.items()}


class PathResult(CamelModel):
    """Result of a write, mkdir, remove or upload."""

    success: bool = True
    path: str


class ReadResult(CamelModel):
    """Result of reading a file."""

    contents: str


class ListResult(CamelModel):
    """Result of listing a directory."""

    files: list[DirectoryEntry]


class SpawnResult(CamelModel):
    """Result of a spawned command.

    ``pid`` is a display placeholder, not a process ID in the sandbox.
    """

    pid: int
    output: str
    exit_code: int = 0
