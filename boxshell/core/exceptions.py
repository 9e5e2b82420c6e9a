# boxshell/core/exceptions.py
"""Custom exceptions for boxshell."""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from boxshell.sandbox.models import Sandbox, SandboxStatus


class BoxshellError(Exception):
    """Base exception for all boxshell errors."""

    pass


class SandboxNotFoundError(BoxshellError):
    """Raised when a sandbox ID is unknown or has no engine handle.

    HTTP Status: 404 Not Found
    """

    def __init__(self, sandbox_id: str, reason: str | None = None):
        """Initialize SandboxNotFoundError.

        Args:
            sandbox_id: ID of the missing sandbox.
            reason: Optional detail, e.g. a missing engine handle.
        """
        self.sandbox_id = sandbox_id
        self.reason = reason
        message = f"Sandbox not found: {sandbox_id}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class EngineOperationError(BoxshellError):
    """Raised when a container engine call fails.

    HTTP Status: 502 Bad Gateway
    """

    def __init__(self, operation: str, message: str, status_code: int | None = None):
        """Initialize EngineOperationError.

        Args:
            operation: Engine operation that failed (e.g. "container.start").
            message: Error message reported by the engine or transport.
            status_code: Engine HTTP status code, if a response was received.
        """
        self.operation = operation
        self.status_code = status_code
        self.engine_message = message
        super().__init__(f"Engine operation '{operation}' failed: {message}")


class SandboxCreationError(BoxshellError):
    """Raised when sandbox creation fails at any step.

    Carries the sandbox record (status ``error``) so callers can show
    the failed attempt.

    HTTP Status: 500 Internal Server Error
    """

    def __init__(self, sandbox: Sandbox, cause: BaseException):
        """Initialize SandboxCreationError.

        Args:
            sandbox: The failed sandbox record.
            cause: The underlying failure.
        """
        self.sandbox = sandbox
        self.cause = cause
        super().__init__(f"Failed to create sandbox {sandbox.id}: {cause}")


class CommandFailedError(BoxshellError):
    """Raised when a one-shot sandbox operation's command fails.

    HTTP Status: 422 Unprocessable Entity
    """

    def __init__(self, operation: str, path: str | None, message: str):
        self.operation = operation
        self.path = path
        super().__init__(f"{operation} failed: {message}")


class InvalidPathError(BoxshellError):
    """Raised when a sandbox path is empty or contains a NUL byte.

    HTTP Status: 400 Bad Request
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid path {path!r}: {reason}")


class NotConnectedError(BoxshellError):
    """Raised when a connection sends an operation before joining a sandbox."""

    def __init__(self, connection_id: str):
        self.connection_id = connection_id
        super().__init__("Not connected to a sandbox")


class PreviewUnavailableError(BoxshellError):
    """Raised when a sandbox publishes no application port.

    HTTP Status: 503 Service Unavailable
    """

    def __init__(self, sandbox_id: str):
        self.sandbox_id = sandbox_id
        super().__init__(f"Sandbox preview port not available: {sandbox_id}")


class InvalidStateTransitionError(BoxshellError):
    """Raised when attempting an invalid sandbox status transition.

    Attributes:
        current: The current sandbox status.
        target: The attempted target status.
    """

    def __init__(self, current: SandboxStatus, target: SandboxStatus):
        """Initialize InvalidStateTransitionError.

        Args:
            current: The current sandbox status.
            target: The target status that is not allowed from current state.
        """
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition from '{current}' to '{target}'")
