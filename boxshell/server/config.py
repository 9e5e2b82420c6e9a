"""Server configuration with environment variable support."""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseSettings):
    """Server configuration with environment variable support.

    All settings can be overridden via environment variables with BOXSHELL_ prefix.
    Example: BOXSHELL_PORT=9000 overrides the port setting.
    """

    model_config = SettingsConfigDict(
        env_prefix="BOXSHELL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server binding
    host: str = Field(
        default="127.0.0.1",
        description="Host to bind the server to",
    )
    port: int = Field(
        default=3001,
        ge=1,
        le=65535,
        description="Port to bind the server to",
    )

    log_level: str = Field(
        default="INFO",
        description="Minimum log level (DEBUG, INFO, WARNING, ERROR)",
    )

    # Timeouts
    command_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Per-command timeout inside sandboxes (default: none)",
    )
