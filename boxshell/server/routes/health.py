"""Health check endpoints for liveness and readiness probes."""
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from boxshell import __version__
from boxshell.server.dependencies import get_service
from boxshell.service import SandboxService


router = APIRouter(prefix="/health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness probe."""

    status: Literal["alive"] = "alive"


class HealthResponse(BaseModel):
    """Response model for detailed health check."""

    status: Literal["healthy", "degraded"]
    version: str
    uptime_seconds: float
    engine: Literal["reachable", "unreachable"]
    sandboxes: int
    websocket_connections: int
    bound_connections: int


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Minimal liveness check - is the server responding?"""
    return LivenessResponse()


@router.get("", response_model=HealthResponse)
async def health(
    request: Request,
    service: SandboxService = Depends(get_service),
) -> HealthResponse:
    """Detailed health check.

    Returns:
        Server status (degraded when the container engine does not answer),
        version, uptime, sandbox count and WebSocket connection counts.
    """
    start_time: datetime = request.app.state.start_time
    uptime = (datetime.now(UTC) - start_time).total_seconds()
    reachable = await service.engine.ping()

    return HealthResponse(
        status="healthy" if reachable else "degraded",
        version=__version__,
        uptime_seconds=uptime,
        engine="reachable" if reachable else "unreachable",
        sandboxes=len(service.registry),
        websocket_connections=service.binder.open_count,
        bound_connections=service.binder.connection_count,
    )
