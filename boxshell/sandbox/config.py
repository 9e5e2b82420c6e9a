"""Sandbox engine and container settings with environment variable support."""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SandboxConfig(BaseSettings):
    """Inputs to sandbox creation.

    All settings can be overridden via environment variables with the
    BOXSHELL_SANDBOX_ prefix. Example: BOXSHELL_SANDBOX_IMAGE=node:22-alpine.
    """

    model_config = SettingsConfigDict(
        env_prefix="BOXSHELL_SANDBOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Engine connection
    docker_url: str = Field(
        default="unix:///var/run/docker.sock",
        description="Docker Engine endpoint (unix:// socket path or http(s):// URL)",
    )
    docker_api_version: str | None = Field(
        default=None,
        description="Pin the Engine API version, e.g. '1.43' (default: unversioned paths)",
    )

    # Container shape
    image: str = Field(
        default="node:alpine",
        description="Base image for new sandboxes",
    )
    keepalive_command: list[str] = Field(
        default_factory=lambda: ["/bin/sh", "-c", "while true; do sleep 1000; done"],
        description="Long-lived container command",
    )
    workspace_root: str = Field(
        default="/workspace",
        description="Container working directory and shell session root",
    )
    app_port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="Internal application port published on an engine-assigned host port",
    )
    memory_limit_mb: int = Field(
        default=512,
        ge=16,
        description="Container memory ceiling in MiB",
    )
    cpu_shares: int = Field(
        default=512,
        ge=2,
        description="Relative CPU weight",
    )

    # Control port allocation
    control_port_start: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="First host port of the control port range",
    )
    control_port_range: int = Field(
        default=1000,
        ge=1,
        description="Number of ports in the control port range",
    )

    # URLs handed to clients
    public_host: str = Field(
        default="localhost",
        description="Host name used in control and preview URLs",
    )

    # Naming and teardown
    container_prefix: str = Field(
        default="boxshell-",
        description="Prefix for engine container names",
    )
    teardown_on_shutdown: bool = Field(
        default=True,
        description="Remove all managed containers when the server stops",
    )
    teardown_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Upper bound on the shutdown sweep of leftover containers",
    )
