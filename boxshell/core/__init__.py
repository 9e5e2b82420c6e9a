"""Core types and exceptions shared across boxshell."""
