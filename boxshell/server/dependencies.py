"""FastAPI dependency injection providers."""

from __future__ import annotations

from boxshell.service import SandboxService


# Module-level service instance
_service: SandboxService | None = None


def set_service(service: SandboxService) -> None:
    """Set the global sandbox service instance.

    This should be called during application startup.

    Args:
        service: SandboxService instance to set.
    """
    global _service
    _service = service


def clear_service() -> None:
    """Clear the global sandbox service instance.

    This should be called during application shutdown.
    """
    global _service
    _service = None


def get_service() -> SandboxService:
    """Get the sandbox service instance.

    Returns:
        The current SandboxService instance.

    Raises:
        RuntimeError: If the service is not initialized.
    """
    if _service is None:
        raise RuntimeError("Sandbox service not initialized. Is the server running?")
    return _service
