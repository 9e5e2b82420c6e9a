"""API route modules."""
from boxshell.server.routes.health import router as health_router
from boxshell.server.routes.sandboxes import router as sandboxes_router
from boxshell.server.routes.websocket import router as websocket_router


__all__ = ["health_router", "sandboxes_router", "websocket_router"]
