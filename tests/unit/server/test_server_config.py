"""Tests for server and sandbox configuration."""
import os
from unittest.mock import patch

import pytest

import boxshell.server.main as main_module
from boxshell.sandbox.config import SandboxConfig
from boxshell.server.config import ServerConfig
from boxshell.server.main import get_config


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_default_values(self) -> None:
        """ServerConfig has sensible defaults."""
        config = ServerConfig(_env_file=None)

        assert config.host == "127.0.0.1"
        assert config.port == 3001
        assert config.log_level == "INFO"
        assert config.command_timeout_seconds is None

    def test_env_override_port(self) -> None:
        """Port can be overridden via environment variable."""
        with patch.dict(os.environ, {"BOXSHELL_PORT": "9000"}):
            config = ServerConfig(_env_file=None)
            assert config.port == 9000

    def test_env_override_timeout(self) -> None:
        with patch.dict(os.environ, {"BOXSHELL_COMMAND_TIMEOUT_SECONDS": "2.5"}):
            config = ServerConfig(_env_file=None)
            assert config.command_timeout_seconds == 2.5

    def test_invalid_port_rejected(self) -> None:
        with patch.dict(os.environ, {"BOXSHELL_PORT": "70000"}), pytest.raises(ValueError):
            ServerConfig(_env_file=None)


class TestSandboxConfig:
    """Tests for SandboxConfig."""

    def test_default_values(self) -> None:
        config = SandboxConfig(_env_file=None)

        assert config.docker_url == "unix:///var/run/docker.sock"
        assert config.image == "node:alpine"
        assert config.workspace_root == "/workspace"
        assert config.app_port == 3000
        assert config.memory_limit_mb == 512
        assert config.cpu_shares == 512
        assert config.control_port_start == 8000
        assert config.control_port_range == 1000
        assert config.container_prefix == "boxshell-"
        assert config.teardown_on_shutdown is True

    def test_env_override_image(self) -> None:
        with patch.dict(os.environ, {"BOXSHELL_SANDBOX_IMAGE": "node:22-alpine"}):
            assert SandboxConfig(_env_file=None).image == "node:22-alpine"

    def test_server_prefix_does_not_leak(self) -> None:
        with patch.dict(os.environ, {"BOXSHELL_IMAGE": "other"}):
            assert SandboxConfig(_env_file=None).image == "node:alpine"


class TestGetConfig:
    """Tests for the get_config dependency."""

    def test_raises_when_not_initialized(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(main_module, "_config", None)
        with pytest.raises(RuntimeError, match="not initialized"):
            get_config()

    def test_returns_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        config = ServerConfig(_env_file=None)
        monkeypatch.setattr(main_module, "_config", config)
        assert get_config() is config
