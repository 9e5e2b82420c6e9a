"""HTTP and WebSocket server for boxshell."""
