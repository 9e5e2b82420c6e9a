"""Docker Engine API client for sandbox containers.

Talks to the engine's HTTP API directly (unix socket or TCP) with httpx,
so exec output arrives as the engine's raw multiplexed stream and is
decoded by ``boxshell.sandbox.demux``.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import urlparse

import httpx
from loguru import logger

from boxshell.core.exceptions import EngineOperationError
from boxshell.sandbox.provider import ContainerEngine


# Engine calls have no overall deadline; only connecting is bounded
_DEFAULT_TIMEOUT = httpx.Timeout(None, connect=10.0)


class DockerEngine(ContainerEngine):
    """Async Docker Engine API client.

    Args:
        docker_url: ``unix:///path/to/docker.sock`` or an ``http(s)://`` /
            ``tcp://`` engine URL.
        api_version: Optional API version to pin (e.g. ``"1.43"``).
        client: Pre-built client, mainly for tests.
    """

    def __init__(
        self,
        docker_url: str = "unix:///var/run/docker.sock",
        api_version: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.docker_url = docker_url
        self.api_version = api_version
        self._client = client or self._build_client(docker_url)

    @staticmethod
    def _build_client(docker_url: str) -> httpx.AsyncClient:
        parsed = urlparse(docker_url)
        if parsed.scheme == "unix":
            transport = httpx.AsyncHTTPTransport(uds=parsed.path)
            return httpx.AsyncClient(
                transport=transport,
                base_url="http://docker",
                timeout=_DEFAULT_TIMEOUT,
            )
        if parsed.scheme == "tcp":
            docker_url = "http://" + docker_url.removeprefix("tcp://")
        return httpx.AsyncClient(base_url=docker_url, timeout=_DEFAULT_TIMEOUT)

    def _path(self, path: str) -> str:
        if self.api_version:
            return f"/v{self.api_version}{path}"
        return path

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text.strip() or response.reason_phrase
        if isinstance(body, dict) and "message" in body:
            return str(body["message"])
        return str(body)

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        tolerated: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one engine request, mapping failures to EngineOperationError.

        Args:
            operation: Operation name used in errors and logs.
            method: HTTP method.
            path: Unversioned API path.
            tolerated: Non-2xx status codes that count as success.
            **kwargs: Passed through to ``httpx.AsyncClient.request``.

        Returns:
            The engine response.

        Raises:
            EngineOperationError: On transport failure or error status.
        """
        try:
            response = await self._client.request(method, self._path(path), **kwargs)
        except httpx.HTTPError as exc:
            raise EngineOperationError(operation, str(exc) or type(exc).__name__) from exc

        if response.status_code >= 400 or (
            response.status_code >= 300 and response.status_code not in tolerated
        ):
            message = self._error_message(response)
            logger.debug(
                "Engine request failed",
                operation=operation,
                status_code=response.status_code,
                error=message,
            )
            raise EngineOperationError(operation, message, response.status_code)
        return response

    async def create_container(self, name: str, spec: dict[str, Any]) -> str:
        response = await self._request(
            "container.create", "POST", "/containers/create",
            params={"name": name}, json=spec,
        )
        container_id: str = response.json()["Id"]
        for warning in response.json().get("Warnings") or []:
            logger.warning("Engine warning on create", container=name, warning=warning)
        return container_id

    async def start_container(self, container_id: str) -> None:
        # 304: already started
        await self._request(
            "container.start", "POST", f"/containers/{container_id}/start",
            tolerated=(304,),
        )

    async def stop_container(self, container_id: str) -> None:
        # 304: already stopped
        await self._request(
            "container.stop", "POST", f"/containers/{container_id}/stop",
            tolerated=(304,),
        )

    async def remove_container(self, container_id: str, force: bool = False) -> None:
        await self._request(
            "container.remove", "DELETE", f"/containers/{container_id}",
            params={"force": "true" if force else "false"},
        )

    async def inspect_container(self, container_id: str) -> dict[str, Any]:
        response = await self._request(
            "container.inspect", "GET", f"/containers/{container_id}/json",
        )
        data: dict[str, Any] = response.json()
        return data

    async def list_containers(
        self, all: bool = True, name: str | None = None
    ) -> list[dict[str, Any]]:
        params: dict[str, str] = {"all": "true" if all else "false"}
        if name:
            params["filters"] = json.dumps({"name": [name]})
        response = await self._request(
            "container.list", "GET", "/containers/json", params=params,
        )
        containers: list[dict[str, Any]] = response.json()
        return containers

    async def create_exec(self, container_id: str, argv: list[str]) -> str:
        response = await self._request(
            "exec.create", "POST", f"/containers/{container_id}/exec",
            json={
                "Cmd": argv,
                "AttachStdin": False,
                "AttachStdout": True,
                "AttachStderr": True,
                "Tty": False,
            },
        )
        exec_id: str = response.json()["Id"]
        return exec_id

    async def start_exec(self, exec_id: str) -> AsyncIterator[bytes]:
        """Start an exec and yield raw output chunks until the engine closes.

        Yields:
            Raw multiplexed bytes, in arrival order.

        Raises:
            EngineOperationError: If the engine rejects the start or the
                stream breaks.
        """
        try:
            async with self._client.stream(
                "POST",
                self._path(f"/exec/{exec_id}/start"),
                json={"Detach": False, "Tty": False},
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise EngineOperationError(
                        "exec.start", self._error_message(response), response.status_code
                    )
                async for chunk in response.aiter_raw():
                    yield chunk
        except httpx.HTTPError as exc:
            raise EngineOperationError("exec.start", str(exc) or type(exc).__name__) from exc

    async def inspect_exec(self, exec_id: str) -> dict[str, Any]:
        response = await self._request("exec.inspect", "GET", f"/exec/{exec_id}/json")
        data: dict[str, Any] = response.json()
        return data

    async def ping(self) -> bool:
        try:
            await self._request("system.ping", "GET", "/_ping")
        except EngineOperationError:
            return False
        return True

    async def aclose(self) -> None:
        await self._client.aclose()
