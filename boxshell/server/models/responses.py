"""Response schemas for REST API endpoints."""

from typing import Annotated, Any

from pydantic import BaseModel, Field

from boxshell.sandbox.models import CamelModel


class DeleteSandboxResponse(BaseModel):
    """Response from deleting a sandbox."""

    message: Annotated[str, Field(description="Human-readable status message")]


class PreviewUrlResponse(CamelModel):
    """Preview URL of a sandbox's application port.

    Attributes:
        url: Externally reachable application URL
        sandbox_id: Sandbox the URL belongs to
        port: Host port published for the application port
    """

    url: Annotated[str, Field(description="Externally reachable application URL")]
    sandbox_id: Annotated[str, Field(description="Sandbox identifier")]
    port: Annotated[int, Field(description="Published host port")]


class MountResponse(CamelModel):
    """Response from mounting a file tree into a sandbox.

    Attributes:
        success: Whether every entry was written
        message: Human-readable status message
        file_count: Number of top-level entries mounted
    """

    success: Annotated[bool, Field(description="Whether every entry was written")] = True
    message: Annotated[str, Field(description="Human-readable status message")]
    file_count: Annotated[int, Field(description="Number of top-level entries mounted")]


class ErrorResponse(BaseModel):
    """Error response for failed requests.

    Attributes:
        error: Human-readable error message
        code: Machine-readable error code
        details: Optional additional error details
    """

    error: Annotated[str, Field(description="Human-readable error message")]
    code: Annotated[str, Field(description="Machine-readable error code")]
    details: Annotated[
        dict[str, Any] | None,
        Field(default=None, description="Optional additional error details"),
    ] = None
