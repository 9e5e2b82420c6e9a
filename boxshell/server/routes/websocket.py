"""WebSocket endpoint for interactive sandbox sessions."""
import json
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger
from pydantic import ValidationError

from boxshell.core.exceptions import BoxshellError
from boxshell.server.dependencies import get_service
from boxshell.server.models.websocket import (
    ClientMessage,
    ErrorMessage,
    FsOperationMessage,
    FsResultMessage,
    JoinedMessage,
    JoinMessage,
    ProcessOperationMessage,
    ProcessResultMessage,
    ServerMessage,
    TerminalInputMessage,
    TerminalOutputMessage,
    client_message_adapter,
    to_wire,
)
from boxshell.service import SandboxService


router = APIRouter(tags=["websocket"])


def _operation_name(message: ClientMessage) -> str:
    if isinstance(message, FsOperationMessage):
        return message.operation
    if isinstance(message, ProcessOperationMessage):
        return "spawn"
    return message.type


async def handle_message(
    service: SandboxService, connection_id: str, message: ClientMessage
) -> ServerMessage:
    """Dispatch one validated client message and build the reply.

    Domain failures become ``error`` replies; the connection stays open.

    Args:
        service: Sandbox service.
        connection_id: Identifier of the sending connection.
        message: Validated client message.

    Returns:
        The message to send back.
    """
    binder = service.binder
    try:
        match message:
            case JoinMessage():
                sandbox = binder.join(connection_id, message.sandbox_id)
                return JoinedMessage(sandbox_id=sandbox.id, status=sandbox.status)
            case TerminalInputMessage():
                output = await binder.terminal_input(connection_id, message.input)
                return TerminalOutputMessage(output=output)
            case ProcessOperationMessage():
                result = await binder.process_operation(connection_id, message.command, message.args)
                return ProcessResultMessage(result=result)
            case FsOperationMessage():
                fs_result = await binder.fs_operation(
                    connection_id, message.operation, message.path, message.contents
                )
                return FsResultMessage(operation=message.operation, result=fs_result)
    except BoxshellError as exc:
        logger.debug("Operation failed", connection_id=connection_id, error=str(exc))
        return ErrorMessage(message=str(exc), operation=_operation_name(message))
    raise ValueError(f"Unhandled message type: {message.type}")


def parse_client_message(raw: str) -> ClientMessage | ErrorMessage:
    """Validate raw socket text into a client message.

    Returns:
        The parsed message, or an error reply describing why it was rejected.
    """
    try:
        data: Any = json.loads(raw)
    except ValueError:
        return ErrorMessage(message="Invalid message: not valid JSON")
    try:
        return client_message_adapter.validate_python(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        detail = f"{location}: {first['msg']}" if location else first["msg"]
        return ErrorMessage(message=f"Invalid message: {detail}")


@router.websocket("/ws/sandbox")
async def sandbox_websocket(websocket: WebSocket) -> None:
    """WebSocket endpoint for terminal, process and filesystem operations.

    Protocol:
        Client -> Server:
            {"type": "join", "sandboxId": "uuid"}
            {"type": "terminal_input", "input": "ls -la"}
            {"type": "process_operation", "command": "npm", "args": ["install"]}
            {"type": "fs_operation", "operation": "write_file", "path": "...", "contents": "..."}

        Server -> Client:
            {"type": "joined", "sandboxId": "uuid", "status": "running"}
            {"type": "terminal_output", "output": "..."}
            {"type": "process_result", "operation": "spawn", "result": {...}}
            {"type": "fs_result", "operation": "read_file", "result": {...}}
            {"type": "error", "message": "...", "operation": "..."}

    Args:
        websocket: The WebSocket connection.
    """
    service = get_service()
    connection_id = str(uuid4())
    await websocket.accept()
    service.binder.connect(connection_id)
    logger.info(
        "websocket_connected",
        connection_id=connection_id,
        active_connections=service.binder.open_count,
    )

    try:
        while True:
            raw = await websocket.receive_text()
            parsed = parse_client_message(raw)
            if isinstance(parsed, ErrorMessage):
                await websocket.send_json(to_wire(parsed))
                continue
            reply = await handle_message(service, connection_id, parsed)
            await websocket.send_json(to_wire(reply))
    except WebSocketDisconnect:
        logger.info("websocket_disconnected", connection_id=connection_id)
    except Exception as e:
        logger.exception("websocket_error", connection_id=connection_id, error=str(e))
    finally:
        service.binder.disconnect(connection_id)
        logger.info("websocket_cleanup", active_connections=service.binder.open_count)
