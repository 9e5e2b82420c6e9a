"""WebSocket protocol message models."""
from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter

from boxshell.sandbox.models import (
    CamelModel,
    ListResult,
    PathResult,
    ReadResult,
    SandboxStatus,
    SpawnResult,
)
from boxshell.session.binding import FsOperationName


# Client -> Server Messages


class JoinMessage(CamelModel):
    """Bind the connection to a sandbox."""

    type: Literal["join"] = "join"
    sandbox_id: str = Field(..., min_length=1, description="Sandbox to join")


class TerminalInputMessage(CamelModel):
    """One line of terminal input."""

    type: Literal["terminal_input"] = "terminal_input"
    input: str = Field(..., description="Input as typed")


class ProcessOperationMessage(CamelModel):
    """Run a command through the shell session."""

    type: Literal["process_operation"] = "process_operation"
    command: str = Field(..., min_length=1, description="Command to run")
    args: list[str] | None = Field(default=None, description="Arguments to quote and append")


class FsOperationMessage(CamelModel):
    """Filesystem operation on the joined sandbox."""

    type: Literal["fs_operation"] = "fs_operation"
    operation: FsOperationName = Field(..., description="Operation to perform")
    path: str = Field(..., description="Target path")
    contents: str | None = Field(default=None, description="Contents for write_file")


# Union type for all client messages
ClientMessage = Annotated[
    JoinMessage | TerminalInputMessage | ProcessOperationMessage | FsOperationMessage,
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


# Server -> Client Messages


class JoinedMessage(CamelModel):
    """Acknowledges a join."""

    type: Literal["joined"] = "joined"
    sandbox_id: str
    status: SandboxStatus


class TerminalOutputMessage(CamelModel):
    """Output of one line of terminal input."""

    type: Literal["terminal_output"] = "terminal_output"
    output: str


class ProcessResultMessage(CamelModel):
    """Result of a process operation."""

    type: Literal["process_result"] = "process_result"
    operation: Literal["spawn"] = "spawn"
    result: SpawnResult


class FsResultMessage(CamelModel):
    """Result of a filesystem operation."""

    type: Literal["fs_result"] = "fs_result"
    operation: FsOperationName
    result: PathResult | ReadResult | ListResult


class ErrorMessage(CamelModel):
    """Reports a failed or malformed client message."""

    type: Literal["error"] = "error"
    message: str
    operation: str | None = None


# Union type for all server messages
ServerMessage = (
    JoinedMessage | TerminalOutputMessage | ProcessResultMessage | FsResultMessage | ErrorMessage
)


def to_wire(message: ServerMessage) -> dict[str, Any]:
    """Serialize a server message to its JSON wire form."""
    return message.model_dump(mode="json", by_alias=True, exclude_none=True)
