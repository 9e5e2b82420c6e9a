"""Command builders for filesystem work inside a sandbox.

Every builder returns an argv list. Paths and contents travel as separate
arguments, never spliced into a shell string: where a redirect is needed
the script is a fixed literal and the data arrives as ``$1``/``$2``.
"""

from __future__ import annotations

import shlex

from boxshell.core.exceptions import InvalidPathError
from boxshell.sandbox.models import DirectoryEntry


# Stay well below the kernel's per-argument limit (MAX_ARG_STRLEN, 128 KiB)
WRITE_CHUNK_SIZE = 64 * 1024

_WRITE_SCRIPT = 'printf "%s" "$1" > "$2"'
_APPEND_SCRIPT = 'printf "%s" "$1" >> "$2"'
_B64_WRITE_SCRIPT = 'printf "%s" "$1" | base64 -d > "$2"'
_B64_APPEND_SCRIPT = 'printf "%s" "$1" | base64 -d >> "$2"'


def validate_path(path: str) -> str:
    """Reject paths no command could act on.

    Raises:
        InvalidPathError: If the path is empty or contains a NUL byte.
    """
    if not path or not path.strip():
        raise InvalidPathError(path, "path must not be empty")
    if "\0" in path:
        raise InvalidPathError(path, "path contains null byte")
    return path


def parent_directory(path: str) -> str:
    """Directory part of ``path`` ("" when there is none)."""
    return path[: path.rfind("/")] if "/" in path else ""


def mkdir_argv(path: str) -> list[str]:
    return ["mkdir", "-p", "--", validate_path(path)]


def remove_argv(path: str) -> list[str]:
    return ["rm", "-rf", "--", validate_path(path)]


def cat_argv(path: str) -> list[str]:
    return ["cat", "--", validate_path(path)]


def list_argv(path: str) -> list[str]:
    return ["ls", "-la", "--", validate_path(path)]


def _chunked_writes(
    path: str, data: str, chunk_size: int, first: str, rest: str
) -> list[list[str]]:
    pieces = [data[i:i + chunk_size] for i in range(0, len(data), chunk_size)] or [""]
    return [
        ["sh", "-c", first if index == 0 else rest, "sh", piece, path]
        for index, piece in enumerate(pieces)
    ]


def write_argvs(path: str, contents: str) -> list[list[str]]:
    """Commands that write ``contents`` to ``path`` exactly.

    The first command truncates, later ones append.
    """
    validate_path(path)
    return _chunked_writes(path, contents, WRITE_CHUNK_SIZE, _WRITE_SCRIPT, _APPEND_SCRIPT)


def base64_write_argvs(path: str, encoded: str) -> list[list[str]]:
    """Commands that decode base64 ``encoded`` into ``path`` inside the sandbox.

    Pieces are cut on 4-character boundaries so each decodes on its own.
    """
    validate_path(path)
    encoded = "".join(encoded.split())
    return _chunked_writes(path, encoded, WRITE_CHUNK_SIZE, _B64_WRITE_SCRIPT, _B64_APPEND_SCRIPT)


def shell_join(command: str, args: list[str] | None = None) -> str:
    """Append shell-quoted ``args`` to a free-form ``command``."""
    if not args:
        return command
    return " ".join([command, *(shlex.quote(arg) for arg in args)])


def parse_ls(output: str) -> list[DirectoryEntry]:
    """Parse ``ls -la`` output into directory entries.

    Skips the ``total`` line and the ``.``/``..`` entries. Names keep
    embedded spaces; symlink targets (``name -> target``) are dropped.

    Args:
        output: Text printed by ``ls -la``.

    Returns:
        Entries in listing order.
    """
    entries: list[DirectoryEntry] = []
    for line in output.splitlines():
        line = line.rstrip()
        if not line or line.startswith("total "):
            continue
        parts = line.split(None, 8)
        if len(parts) < 9:
            continue
        permissions, name = parts[0], parts[8]
        if permissions.startswith("l") and " -> " in name:
            name = name.split(" -> ", 1)[0]
        if name in (".", ".."):
            continue
        kind = "directory" if permissions.startswith("d") else "file"
        entries.append(DirectoryEntry(name=name, type=kind))
    return entries
