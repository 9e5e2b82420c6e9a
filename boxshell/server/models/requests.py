"""Request schemas for REST API endpoints."""

from typing import Annotated, Literal

from pydantic import Field

from boxshell.sandbox.models import CamelModel, FileNode


class CreateSandboxRequest(CamelModel):
    """Request to create a new sandbox.

    Attributes:
        files: Optional file tree seeded under the workspace root
    """

    files: Annotated[
        dict[str, FileNode] | None,
        Field(default=None, description="File tree seeded under the workspace root"),
    ] = None


class WriteFileRequest(CamelModel):
    """Request to write a file inside a sandbox."""

    path: Annotated[str, Field(description="Destination path")]
    contents: Annotated[str, Field(description="Exact file contents")]


class PathRequest(CamelModel):
    """Request naming a single path (mkdir, remove)."""

    path: Annotated[str, Field(description="Target path")]


class SpawnRequest(CamelModel):
    """Request to run a command through the sandbox's shell session.

    Attributes:
        command: Command line, run as typed
        args: Optional arguments, shell-quoted and appended to command
    """

    command: Annotated[str, Field(min_length=1, description="Command to run")]
    args: Annotated[
        list[str] | None,
        Field(default=None, description="Arguments appended to the command"),
    ] = None


class UploadRequest(CamelModel):
    """Request to upload a file into a sandbox.

    Attributes:
        filename: Client-side file name
        target_path: Destination path inside the sandbox
        content: File content, as text or base64
        encoding: Encoding of content
    """

    filename: Annotated[str, Field(description="Client-side file name")]
    target_path: Annotated[str, Field(description="Destination path inside the sandbox")]
    content: Annotated[str, Field(description="File content")]
    encoding: Annotated[
        Literal["utf8", "base64"],
        Field(default="utf8", description="Encoding of content"),
    ] = "utf8"


class MountRequest(CamelModel):
    """Request to write a file tree into a running sandbox.

    Attributes:
        files: File tree written under the workspace root
    """

    files: Annotated[
        dict[str, FileNode],
        Field(description="File tree written under the workspace root"),
    ]
