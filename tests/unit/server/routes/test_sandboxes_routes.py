"""Tests for sandbox HTTP routes."""
import base64

from httpx import AsyncClient

from boxshell.sandbox.models import Sandbox
from boxshell.service import SandboxService
from tests.conftest import FakeEngine


class TestCreateSandbox:
    """Tests for POST /api/sandboxes."""

    async def test_create_without_body(self, client: AsyncClient) -> None:
        response = await client.post("/api/sandboxes")

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "running"
        assert data["controlUrl"] == f"ws://localhost:{data['port']}"
        assert data["previewUrl"] == "http://localhost:49153"
        assert "createdAt" in data

    async def test_create_with_files(self, client: AsyncClient, fake_engine: FakeEngine) -> None:
        response = await client.post(
            "/api/sandboxes",
            json={"files": {"index.js": {"file": {"contents": "console.log(1)"}}}},
        )

        assert response.status_code == 201
        assert ["mkdir", "-p", "--", "/workspace"] in fake_engine.commands

    async def test_invalid_file_tree(self, client: AsyncClient) -> None:
        response = await client.post("/api/sandboxes", json={"files": {"x": {}}})
        assert response.status_code == 422

    async def test_optional_fields_omitted(
        self, client: AsyncClient, fake_engine: FakeEngine
    ) -> None:
        fake_engine.published_port = None

        response = await client.post("/api/sandboxes")

        assert "previewUrl" not in response.json()
        assert "previewPort" not in response.json()

    async def test_creation_failure_returns_record(
        self, client: AsyncClient, fake_engine: FakeEngine
    ) -> None:
        fake_engine.fail("container.start", "port is already allocated")

        response = await client.post("/api/sandboxes")

        assert response.status_code == 500
        data = response.json()
        assert data["code"] == "SANDBOX_CREATION_FAILED"
        assert data["details"]["sandbox"]["status"] == "error"
        assert "port is already allocated" in data["error"]


class TestReadRoutes:
    """Tests for listing and fetching sandboxes."""

    async def test_list(self, client: AsyncClient, sandbox: Sandbox) -> None:
        response = await client.get("/api/sandboxes")

        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == [sandbox.id]

    async def test_get(self, client: AsyncClient, sandbox: Sandbox) -> None:
        response = await client.get(f"/api/sandboxes/{sandbox.id}")

        assert response.status_code == 200
        assert response.json()["id"] == sandbox.id

    async def test_get_unknown(self, client: AsyncClient) -> None:
        response = await client.get("/api/sandboxes/nope")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"


class TestDeleteSandbox:
    """Tests for DELETE /api/sandboxes/{id}."""

    async def test_delete(
        self, client: AsyncClient, sandbox: Sandbox, service: SandboxService
    ) -> None:
        response = await client.delete(f"/api/sandboxes/{sandbox.id}")

        assert response.status_code == 200
        assert sandbox.id in response.json()["message"]
        assert service.manager.find(sandbox.id) is None

    async def test_delete_unknown(self, client: AsyncClient) -> None:
        response = await client.delete("/api/sandboxes/nope")
        assert response.status_code == 404

    async def test_engine_failure(
        self, client: AsyncClient, sandbox: Sandbox, fake_engine: FakeEngine
    ) -> None:
        fake_engine.fail("container.stop", "daemon busy")

        response = await client.delete(f"/api/sandboxes/{sandbox.id}")

        assert response.status_code == 502
        assert response.json()["code"] == "ENGINE_ERROR"


class TestPreviewUrl:
    """Tests for GET /api/sandboxes/{id}/url."""

    async def test_url(self, client: AsyncClient, sandbox: Sandbox) -> None:
        response = await client.get(f"/api/sandboxes/{sandbox.id}/url")

        assert response.status_code == 200
        assert response.json() == {
            "url": "http://localhost:49153",
            "sandboxId": sandbox.id,
            "port": 49153,
        }

    async def test_unavailable(self, client: AsyncClient, fake_engine: FakeEngine) -> None:
        fake_engine.published_port = None
        created = (await client.post("/api/sandboxes")).json()

        response = await client.get(f"/api/sandboxes/{created['id']}/url")

        assert response.status_code == 503
        assert response.json()["code"] == "PREVIEW_UNAVAILABLE"


class TestMountFiles:
    """Tests for POST /api/sandboxes/{id}/mount."""

    async def test_mount(
        self, client: AsyncClient, sandbox: Sandbox, fake_engine: FakeEngine
    ) -> None:
        response = await client.post(
            f"/api/sandboxes/{sandbox.id}/mount",
            json={
                "files": {
                    "package.json": {"file": {"contents": "{}"}},
                    "src": {"directory": {"app.js": {"file": {"contents": "run()"}}}},
                }
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Files mounted successfully",
            "fileCount": 2,
        }
        written = {argv[-1] for argv in fake_engine.commands if argv[:2] == ["sh", "-c"]}
        assert written == {"/workspace/package.json", "/workspace/src/app.js"}

    async def test_mount_unknown_sandbox(self, client: AsyncClient) -> None:
        response = await client.post("/api/sandboxes/missing/mount", json={"files": {}})

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_mount_requires_files(self, client: AsyncClient, sandbox: Sandbox) -> None:
        response = await client.post(f"/api/sandboxes/{sandbox.id}/mount", json={})
        assert response.status_code == 422

    async def test_mount_write_failure(
        self, client: AsyncClient, sandbox: Sandbox, fake_engine: FakeEngine
    ) -> None:
        fake_engine.on("printf", "sh: can't create: Read-only file system", exit_code=1)

        response = await client.post(
            f"/api/sandboxes/{sandbox.id}/mount",
            json={"files": {"a.txt": {"file": {"contents": "x"}}}},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "COMMAND_FAILED"


class TestFilesystemRoutes:
    """Tests for /fs/* routes."""

    async def test_write(
        self, client: AsyncClient, sandbox: Sandbox, fake_engine: FakeEngine
    ) -> None:
        response = await client.post(
            f"/api/sandboxes/{sandbox.id}/fs/write",
            json={"path": "/workspace/a.txt", "contents": "hi"},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "path": "/workspace/a.txt"}
        assert fake_engine.commands[-1][-2:] == ["hi", "/workspace/a.txt"]

    async def test_write_failure(
        self, client: AsyncClient, sandbox: Sandbox, fake_engine: FakeEngine
    ) -> None:
        fake_engine.on("printf", "Read-only file system", exit_code=1)

        response = await client.post(
            f"/api/sandboxes/{sandbox.id}/fs/write",
            json={"path": "/ro/a", "contents": "hi"},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "COMMAND_FAILED"

    async def test_invalid_path(self, client: AsyncClient, sandbox: Sandbox) -> None:
        response = await client.post(
            f"/api/sandboxes/{sandbox.id}/fs/mkdir", json={"path": ""}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PATH"

    async def test_read(
        self, client: AsyncClient, sandbox: Sandbox, fake_engine: FakeEngine
    ) -> None:
        fake_engine.on("cat", "contents")

        response = await client.get(
            f"/api/sandboxes/{sandbox.id}/fs/read", params={"path": "/workspace/a.txt"}
        )

        assert response.json() == {"contents": "contents"}

    async def test_read_requires_path(self, client: AsyncClient, sandbox: Sandbox) -> None:
        response = await client.get(f"/api/sandboxes/{sandbox.id}/fs/read")
        assert response.status_code == 422

    async def test_list(
        self, client: AsyncClient, sandbox: Sandbox, fake_engine: FakeEngine
    ) -> None:
        fake_engine.on("ls -la", "drwxr-xr-x 2 root root 4096 Jan 1 00:00 src")

        response = await client.get(
            f"/api/sandboxes/{sandbox.id}/fs/list", params={"path": "/workspace"}
        )

        assert response.json() == {"files": [{"name": "src", "type": "directory"}]}

    async def test_remove(
        self, client: AsyncClient, sandbox: Sandbox, fake_engine: FakeEngine
    ) -> None:
        response = await client.post(
            f"/api/sandboxes/{sandbox.id}/fs/remove", json={"path": "/workspace/tmp"}
        )

        assert response.status_code == 200
        assert fake_engine.commands[-1] == ["rm", "-rf", "--", "/workspace/tmp"]

    async def test_unknown_sandbox(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/sandboxes/nope/fs/write", json={"path": "/a", "contents": ""}
        )
        assert response.status_code == 404


class TestSpawnAndUpload:
    """Tests for /spawn and /upload."""

    async def test_spawn(
        self, client: AsyncClient, sandbox: Sandbox, fake_engine: FakeEngine
    ) -> None:
        fake_engine.on("npm", "added 1 package", exit_code=0)

        response = await client.post(
            f"/api/sandboxes/{sandbox.id}/spawn",
            json={"command": "npm", "args": ["install", "left pad"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["output"] == "added 1 package"
        assert data["exitCode"] == 0
        assert isinstance(data["pid"], int)
        assert fake_engine.scripts[-1] == "cd /workspace && npm install 'left pad'"

    async def test_upload_base64(
        self, client: AsyncClient, sandbox: Sandbox, fake_engine: FakeEngine
    ) -> None:
        encoded = base64.b64encode(b"binary\x00data").decode()

        response = await client.post(
            f"/api/sandboxes/{sandbox.id}/upload",
            json={
                "filename": "blob.bin",
                "targetPath": "/workspace/assets/blob.bin",
                "content": encoded,
                "encoding": "base64",
            },
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "path": "/workspace/assets/blob.bin"}
        assert ["mkdir", "-p", "--", "/workspace/assets"] in fake_engine.commands

    async def test_upload_invalid_base64(self, client: AsyncClient, sandbox: Sandbox) -> None:
        response = await client.post(
            f"/api/sandboxes/{sandbox.id}/upload",
            json={
                "filename": "x",
                "targetPath": "/workspace/x",
                "content": "%%%",
                "encoding": "base64",
            },
        )

        assert response.status_code == 422
        assert response.json()["code"] == "COMMAND_FAILED"
