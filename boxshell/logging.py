"""Logging configuration for the boxshell server and CLI.

Console output uses a fixed terminal palette so server logs and the
startup summary read the same way.
"""

import sys
from typing import TYPE_CHECKING

from loguru import logger


if TYPE_CHECKING:
    from loguru import Record


COLORS = {
    "amber": "#E0A43A",  # Warnings
    "moss": "#6F9A5B",  # Success
    "slate": "#8A9BA8",  # Secondary text, debug
    "chalk": "#ECEFF1",  # Primary text
    "brick": "#B5483A",  # Errors
    "steel": "#5C8DC4",  # Info, identifiers
    "ash": "#56626B",  # Separators, trace
}

RESET = "\033[0m"


def _log_format(record: "Record") -> str:
    """Build the loguru format string for a single record.

    Structured ``extra`` fields (``logger.info("msg", sandbox_id=...)``)
    are appended as key=value pairs.

    Args:
        record: Loguru record containing log metadata, message, and level.

    Returns:
        Format string with loguru color tags.
    """
    level = record["level"].name

    level_colors = {
        "TRACE": f"<fg {COLORS['ash']}>",
        "DEBUG": f"<fg {COLORS['slate']}>",
        "INFO": f"<fg {COLORS['steel']}>",
        "SUCCESS": f"<fg {COLORS['moss']}>",
        "WARNING": f"<fg {COLORS['amber']}>",
        "ERROR": f"<fg {COLORS['brick']}>",
        "CRITICAL": f"<fg {COLORS['brick']}><bold>",
    }

    color = level_colors.get(level, f"<fg {COLORS['chalk']}>")
    close = "</>"

    fmt = (
        f"<fg {COLORS['slate']}>{{time:HH:mm:ss}}{close}"
        f" <fg {COLORS['ash']}>│{close} "
        f"{color}{{level: <8}}{close}"
        f"<fg {COLORS['ash']}>│{close} "
        f"<fg {COLORS['slate']}>{{name}}{close}"
        f"<fg {COLORS['ash']}>:{close}"
        f"<fg {COLORS['chalk']}>{{message}}{close}"
    )

    extra = record["extra"]
    if extra:
        extra_str = " ".join(f"{k}={v!r}" for k, v in extra.items())
        # Escape braces to prevent loguru format string injection
        extra_str = extra_str.replace("{", "{{").replace("}", "}}")
        # Escape tags so command output in extras is not parsed as markup
        extra_str = extra_str.replace("<", r"\<")
        fmt += f" <fg {COLORS['slate']}>│ {extra_str}{close}"

    fmt += "\n"

    if record["exception"]:
        fmt += "{exception}\n"

    return fmt


def configure_logging(level: str = "INFO") -> None:
    """Configure loguru with the boxshell console format.

    Removes the default handler and installs a single stderr handler.

    Args:
        level: Minimum log level to display (e.g., "DEBUG", "INFO", "WARNING").
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=_log_format,
        colorize=True,
    )


def _ansi_color(hex_color: str) -> str:
    """Convert hex color code to ANSI 24-bit escape sequence.

    Args:
        hex_color: Hex color string with or without # prefix (e.g., "#E0A43A").

    Returns:
        ANSI escape code for 24-bit RGB foreground color.
    """
    hex_color = hex_color.lstrip("#")
    r, g, b = int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16)
    return f"\033[38;2;{r};{g};{b}m"


def log_server_startup(host: str, port: int, docker_url: str, image: str, version: str) -> None:
    """Write the server startup summary to stderr.

    Args:
        host: Server bind host address.
        port: Server bind port number.
        docker_url: Container engine endpoint in use.
        image: Base image used for new sandboxes.
        version: Application version string.
    """
    amber = _ansi_color(COLORS["amber"])
    moss = _ansi_color(COLORS["moss"])
    steel = _ansi_color(COLORS["steel"])
    slate = _ansi_color(COLORS["slate"])

    config_lines = [
        f"  {slate}Version:{RESET} {amber}v{version}{RESET}",
        f"  {slate}Server:{RESET}  {steel}http://{host}:{port}{RESET}",
        f"  {slate}Engine:{RESET}  {moss}{docker_url}{RESET}",
        f"  {slate}Image:{RESET}   {moss}{image}{RESET}",
        "",
    ]
    sys.stderr.write("\n".join(config_lines) + "\n")
    sys.stderr.flush()
