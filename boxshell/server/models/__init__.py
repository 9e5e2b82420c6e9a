"""Request, response and WebSocket protocol schemas."""
