"""Interactive sessions: shell state and connection bindings."""

from boxshell.session.binding import FsOperationName, SessionBinder
from boxshell.session.shell import ShellSessions


__all__ = ["FsOperationName", "SessionBinder", "ShellSessions"]
