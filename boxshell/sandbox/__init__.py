"""Sandbox containers: engine client, registry, execution and lifecycle."""

from boxshell.sandbox.config import SandboxConfig
from boxshell.sandbox.engine import DockerEngine
from boxshell.sandbox.executor import CommandExecutor
from boxshell.sandbox.manager import SandboxManager
from boxshell.sandbox.models import ExecResult, Sandbox, SandboxStatus
from boxshell.sandbox.operations import SandboxOperations
from boxshell.sandbox.provider import ContainerEngine
from boxshell.sandbox.registry import SandboxRegistry


__all__ = [
    "CommandExecutor",
    "ContainerEngine",
    "DockerEngine",
    "ExecResult",
    "Sandbox",
    "SandboxConfig",
    "SandboxManager",
    "SandboxOperations",
    "SandboxRegistry",
    "SandboxStatus",
]
