"""Shared fixtures and helpers for all tests.

Provides an in-memory container engine that records every call and
answers exec requests with scripted, frame-encoded output.
"""
import struct
import uuid
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import Any

import pytest

from boxshell.core.exceptions import EngineOperationError
from boxshell.sandbox.config import SandboxConfig
from boxshell.sandbox.executor import CommandExecutor
from boxshell.sandbox.models import Sandbox, SandboxStatus
from boxshell.sandbox.registry import SandboxRegistry
from boxshell.service import SandboxService


def frame(payload: str | bytes, stream: int = 1) -> bytes:
    """Encode one multiplexed stream frame."""
    data = payload.encode() if isinstance(payload, str) else payload
    return struct.pack(">BxxxI", stream, len(data)) + data


@dataclass
class ExecRule:
    """Scripted answer for execs whose joined argv contains ``pattern``."""

    pattern: str
    chunks: list[bytes]
    exit_code: int | None = 0


@dataclass
class ExecCall:
    container_id: str
    argv: list[str]
    exit_code: int | None = 0


@dataclass
class FakeEngine:
    """In-memory ContainerEngine.

    Attributes:
        containers: Engine ID -> container description.
        execs: Exec ID -> recorded call.
        rules: Exec answers, latest match wins.
        failures: Operation name -> error raised on the next calls.
        published_port: Host port reported for 3000/tcp (None: unpublished).
    """

    containers: dict[str, dict[str, Any]] = field(default_factory=dict)
    execs: dict[str, ExecCall] = field(default_factory=dict)
    rules: list[ExecRule] = field(default_factory=list)
    failures: dict[str, EngineOperationError] = field(default_factory=dict)
    published_port: int | None = 49153
    reachable: bool = True
    closed: bool = False
    calls: list[tuple[str, str]] = field(default_factory=list)

    def on(
        self,
        pattern: str,
        output: str | bytes | list[bytes] = "",
        exit_code: int | None = 0,
        stream: int = 1,
    ) -> None:
        """Script the output of matching execs.

        ``str`` output is framed on ``stream``; ``bytes`` is sent as-is;
        a list of bytes is sent as separate chunks.
        """
        if isinstance(output, list):
            chunks = output
        elif isinstance(output, bytes):
            chunks = [output]
        else:
            chunks = [frame(output, stream)] if output else []
        self.rules.append(ExecRule(pattern, chunks, exit_code))

    def fail(self, operation: str, message: str = "boom", status_code: int | None = 500) -> None:
        self.failures[operation] = EngineOperationError(operation, message, status_code)

    def _check(self, operation: str, target: str = "") -> None:
        self.calls.append((operation, target))
        if operation in self.failures:
            raise self.failures[operation]

    def _container(self, operation: str, container_id: str) -> dict[str, Any]:
        container = self.containers.get(container_id)
        if container is None:
            raise EngineOperationError(operation, f"No such container: {container_id}", 404)
        return container

    @property
    def commands(self) -> list[list[str]]:
        return [call.argv for call in self.execs.values()]

    @property
    def scripts(self) -> list[str]:
        """The ``sh -c`` scripts executed, in order."""
        return [argv[2] for argv in self.commands if argv[:2] == ["sh", "-c"]]

    async def create_container(self, name: str, spec: dict[str, Any]) -> str:
        self._check("container.create", name)
        container_id = uuid.uuid4().hex * 2
        self.containers[container_id] = {
            "Id": container_id,
            "Names": [f"/{name}"],
            "Spec": spec,
            "State": "created",
        }
        return container_id

    async def start_container(self, container_id: str) -> None:
        self._check("container.start", container_id)
        self._container("container.start", container_id)["State"] = "running"

    async def stop_container(self, container_id: str) -> None:
        self._check("container.stop", container_id)
        self._container("container.stop", container_id)["State"] = "exited"

    async def remove_container(self, container_id: str, force: bool = False) -> None:
        self._check("container.remove", container_id)
        self._container("container.remove", container_id)
        del self.containers[container_id]

    async def inspect_container(self, container_id: str) -> dict[str, Any]:
        self._check("container.inspect", container_id)
        container = self._container("container.inspect", container_id)
        bindings = (
            [{"HostIp": "0.0.0.0", "HostPort": str(self.published_port)}]
            if self.published_port is not None
            else None
        )
        return {
            "Id": container_id,
            "State": {"Status": container["State"]},
            "NetworkSettings": {"Ports": {"3000/tcp": bindings}},
        }

    async def list_containers(
        self, all: bool = True, name: str | None = None
    ) -> list[dict[str, Any]]:
        self._check("container.list", name or "")
        return [
            {"Id": c["Id"], "Names": c["Names"], "State": c["State"]}
            for c in self.containers.values()
            if name is None or any(name in n for n in c["Names"])
        ]

    async def create_exec(self, container_id: str, argv: list[str]) -> str:
        self._check("exec.create", container_id)
        self._container("exec.create", container_id)
        exec_id = uuid.uuid4().hex
        self.execs[exec_id] = ExecCall(container_id, list(argv))
        return exec_id

    async def start_exec(self, exec_id: str) -> AsyncIterator[bytes]:
        self._check("exec.start", exec_id)
        call = self.execs[exec_id]
        joined = " ".join(call.argv)
        for rule in reversed(self.rules):
            if rule.pattern in joined:
                call.exit_code = rule.exit_code
                for chunk in rule.chunks:
                    yield chunk
                return

    async def inspect_exec(self, exec_id: str) -> dict[str, Any]:
        self._check("exec.inspect", exec_id)
        return {"ID": exec_id, "Running": False, "ExitCode": self.execs[exec_id].exit_code}

    async def ping(self) -> bool:
        return self.reachable

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def sandbox_config() -> SandboxConfig:
    return SandboxConfig(_env_file=None)


@pytest.fixture
def registry() -> SandboxRegistry:
    return SandboxRegistry()


@pytest.fixture
def executor(fake_engine: FakeEngine, registry: SandboxRegistry) -> CommandExecutor:
    return CommandExecutor(fake_engine, registry)


@pytest.fixture
def service(fake_engine: FakeEngine, sandbox_config: SandboxConfig) -> SandboxService:
    return SandboxService(config=sandbox_config, engine=fake_engine)


@pytest.fixture
async def sandbox(service: SandboxService) -> Sandbox:
    """A running sandbox created through the service."""
    return await service.manager.create()


@pytest.fixture
def make_sandbox(
    registry: SandboxRegistry, fake_engine: FakeEngine
) -> Callable[..., Sandbox]:
    """Factory registering a running sandbox backed by a fake container."""

    def _create(sandbox_id: str | None = None, container_id: str = "c0ffee") -> Sandbox:
        fake_engine.containers[container_id] = {
            "Id": container_id,
            "Names": [f"/boxshell-{container_id}"],
            "Spec": {},
            "State": "running",
        }
        sandbox = Sandbox(id=sandbox_id or str(uuid.uuid4()), status=SandboxStatus.RUNNING, port=8001)
        registry.add(sandbox)
        registry.set_handle(sandbox.id, container_id)
        return sandbox

    return _create
