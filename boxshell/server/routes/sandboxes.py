"""Sandbox management routes and exception handlers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from boxshell.core.exceptions import (
    CommandFailedError,
    EngineOperationError,
    InvalidPathError,
    PreviewUnavailableError,
    SandboxCreationError,
    SandboxNotFoundError,
)
from boxshell.sandbox.models import ListResult, PathResult, ReadResult, Sandbox, SpawnResult
from boxshell.server.dependencies import get_service
from boxshell.server.models.requests import (
    CreateSandboxRequest,
    MountRequest,
    PathRequest,
    SpawnRequest,
    UploadRequest,
    WriteFileRequest,
)
from boxshell.server.models.responses import (
    DeleteSandboxResponse,
    ErrorResponse,
    MountResponse,
    PreviewUrlResponse,
)
from boxshell.service import SandboxService


router = APIRouter(prefix="/sandboxes", tags=["sandboxes"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=Sandbox,
    response_model_exclude_none=True,
)
async def create_sandbox(
    request: CreateSandboxRequest | None = None,
    service: SandboxService = Depends(get_service),
) -> Sandbox:
    """Create, start and seed a new sandbox.

    Args:
        request: Optional creation request with an initial file tree.
        service: Sandbox service dependency.

    Returns:
        The running sandbox.

    Raises:
        SandboxCreationError: If any creation step fails.
    """
    files = request.files if request is not None else None
    return await service.manager.create(files)


@router.get("", response_model=list[Sandbox], response_model_exclude_none=True)
async def list_sandboxes(
    service: SandboxService = Depends(get_service),
) -> list[Sandbox]:
    """List all registered sandboxes."""
    return service.manager.list()


@router.get("/{sandbox_id}", response_model=Sandbox, response_model_exclude_none=True)
async def get_sandbox(
    sandbox_id: str,
    service: SandboxService = Depends(get_service),
) -> Sandbox:
    """Get one sandbox record.

    Raises:
        SandboxNotFoundError: If the sandbox is unknown.
    """
    return service.manager.get(sandbox_id)


@router.delete("/{sandbox_id}", response_model=DeleteSandboxResponse)
async def delete_sandbox(
    sandbox_id: str,
    service: SandboxService = Depends(get_service),
) -> DeleteSandboxResponse:
    """Stop and remove a sandbox.

    Raises:
        SandboxNotFoundError: If the sandbox is unknown.
        EngineOperationError: If the engine fails to stop or remove it.
    """
    await service.delete(sandbox_id)
    return DeleteSandboxResponse(message=f"Sandbox {sandbox_id} deleted")


@router.get("/{sandbox_id}/url", response_model=PreviewUrlResponse)
async def get_preview_url(
    sandbox_id: str,
    service: SandboxService = Depends(get_service),
) -> PreviewUrlResponse:
    """Get the preview URL of a sandbox's application port.

    Raises:
        SandboxNotFoundError: If the sandbox is unknown.
        PreviewUnavailableError: If no application port is published.
    """
    url, port = await service.preview(sandbox_id)
    return PreviewUrlResponse(url=url, sandbox_id=sandbox_id, port=port)


@router.post("/{sandbox_id}/mount", response_model=MountResponse)
async def mount_files(
    sandbox_id: str,
    request: MountRequest,
    service: SandboxService = Depends(get_service),
) -> MountResponse:
    """Write a file tree into a running sandbox's workspace.

    Raises:
        SandboxNotFoundError: If the sandbox is unknown.
        CommandFailedError: If any write fails.
    """
    count = await service.manager.mount(sandbox_id, request.files)
    return MountResponse(message="Files mounted successfully", file_count=count)


@router.post("/{sandbox_id}/fs/write", response_model=PathResult)
async def write_file(
    sandbox_id: str,
    request: WriteFileRequest,
    service: SandboxService = Depends(get_service),
) -> PathResult:
    return await service.operations.write_file(sandbox_id, request.path, request.contents)


@router.get("/{sandbox_id}/fs/read", response_model=ReadResult)
async def read_file(
    sandbox_id: str,
    path: str = Query(..., description="File to read"),
    service: SandboxService = Depends(get_service),
) -> ReadResult:
    return await service.operations.read_file(sandbox_id, path)


@router.get("/{sandbox_id}/fs/list", response_model=ListResult)
async def list_directory(
    sandbox_id: str,
    path: str = Query(..., description="Directory to list"),
    service: SandboxService = Depends(get_service),
) -> ListResult:
    return await service.operations.list_directory(sandbox_id, path)


@router.post("/{sandbox_id}/fs/mkdir", response_model=PathResult)
async def make_directory(
    sandbox_id: str,
    request: PathRequest,
    service: SandboxService = Depends(get_service),
) -> PathResult:
    return await service.operations.make_directory(sandbox_id, request.path)


@router.post("/{sandbox_id}/fs/remove", response_model=PathResult)
async def remove_path(
    sandbox_id: str,
    request: PathRequest,
    service: SandboxService = Depends(get_service),
) -> PathResult:
    return await service.operations.remove(sandbox_id, request.path)


@router.post("/{sandbox_id}/spawn", response_model=SpawnResult)
async def spawn_process(
    sandbox_id: str,
    request: SpawnRequest,
    service: SandboxService = Depends(get_service),
) -> SpawnResult:
    """Run a command through the sandbox's shell session.

    The command runs in the session's current directory; ``cd`` and
    ``pwd`` behave as they do on the terminal.
    """
    return await service.shells.spawn(sandbox_id, request.command, request.args)


@router.post("/{sandbox_id}/upload", response_model=PathResult)
async def upload_file(
    sandbox_id: str,
    request: UploadRequest,
    service: SandboxService = Depends(get_service),
) -> PathResult:
    """Upload a text or base64 file, creating its parent directory."""
    return await service.operations.upload(
        sandbox_id,
        request.filename,
        request.target_path,
        request.content,
        request.encoding,
    )


def _error_response(status_code: int, error: ErrorResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(exclude_none=True),
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers for the FastAPI application.

    Registers handlers for all domain exceptions to return appropriate
    HTTP status codes and error responses.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(SandboxNotFoundError)
    async def not_found_handler(request: Request, exc: SandboxNotFoundError) -> JSONResponse:
        """Handle SandboxNotFoundError with 404 Not Found."""
        return _error_response(
            status.HTTP_404_NOT_FOUND,
            ErrorResponse(
                code="NOT_FOUND",
                error=str(exc),
                details={"sandbox_id": exc.sandbox_id},
            ),
        )

    @app.exception_handler(InvalidPathError)
    async def invalid_path_handler(request: Request, exc: InvalidPathError) -> JSONResponse:
        """Handle InvalidPathError with 400 Bad Request."""
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            ErrorResponse(code="INVALID_PATH", error=str(exc), details={"path": exc.path}),
        )

    @app.exception_handler(CommandFailedError)
    async def command_failed_handler(request: Request, exc: CommandFailedError) -> JSONResponse:
        """Handle CommandFailedError with 422 Unprocessable Entity."""
        logger.warning("Sandbox command failed", operation=exc.operation, path=exc.path)
        return _error_response(
            422,
            ErrorResponse(
                code="COMMAND_FAILED",
                error=str(exc),
                details={"operation": exc.operation, "path": exc.path},
            ),
        )

    @app.exception_handler(EngineOperationError)
    async def engine_error_handler(request: Request, exc: EngineOperationError) -> JSONResponse:
        """Handle EngineOperationError with 502 Bad Gateway."""
        logger.error(
            "Engine operation failed",
            operation=exc.operation,
            status_code=exc.status_code,
            error=exc.engine_message,
        )
        return _error_response(
            status.HTTP_502_BAD_GATEWAY,
            ErrorResponse(
                code="ENGINE_ERROR",
                error=str(exc),
                details={"operation": exc.operation, "engine_status": exc.status_code},
            ),
        )

    @app.exception_handler(PreviewUnavailableError)
    async def preview_unavailable_handler(
        request: Request, exc: PreviewUnavailableError
    ) -> JSONResponse:
        """Handle PreviewUnavailableError with 503 Service Unavailable."""
        return _error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            ErrorResponse(
                code="PREVIEW_UNAVAILABLE",
                error=str(exc),
                details={"sandbox_id": exc.sandbox_id},
            ),
        )

    @app.exception_handler(SandboxCreationError)
    async def creation_failed_handler(
        request: Request, exc: SandboxCreationError
    ) -> JSONResponse:
        """Handle SandboxCreationError with 500, returning the failed record."""
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorResponse(
                code="SANDBOX_CREATION_FAILED",
                error=str(exc),
                details={
                    "sandbox": exc.sandbox.model_dump(mode="json", by_alias=True, exclude_none=True),
                },
            ),
        )
