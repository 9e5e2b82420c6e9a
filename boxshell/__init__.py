"""Boxshell: container sandboxes with an interactive shell over HTTP and WebSocket."""

__version__ = "0.1.0"
