"""Sandbox container teardown utilities.

Sweeps engine containers left behind by sandboxes during server shutdown.
"""
import asyncio

from loguru import logger

from boxshell.core.exceptions import EngineOperationError
from boxshell.sandbox.provider import ContainerEngine


_TEARDOWN_TIMEOUT = 5.0


async def _remove_matching(engine: ContainerEngine, prefix: str) -> int:
    containers = await engine.list_containers(all=True, name=prefix)
    container_ids = [
        str(container["Id"])
        for container in containers
        if any(name.lstrip("/").startswith(prefix) for name in container.get("Names") or [])
    ]
    if not container_ids:
        logger.debug("No sandbox containers to clean up")
        return 0

    logger.info("Tearing down sandbox containers", count=len(container_ids))
    removed = 0
    for container_id in container_ids:
        try:
            await engine.remove_container(container_id, force=True)
            removed += 1
        except EngineOperationError as exc:
            logger.warning(
                "Failed to remove container",
                container=container_id,
                error=exc.engine_message,
            )
    return removed


async def teardown_sandbox_containers(
    engine: ContainerEngine,
    prefix: str,
    timeout: float = _TEARDOWN_TIMEOUT,
) -> int:
    """Force-remove every container whose name starts with ``prefix``.

    Handles an unreachable engine or a slow sweep by logging and returning.

    Args:
        engine: Container engine client.
        prefix: Container name prefix used for sandboxes.
        timeout: Upper bound for the whole sweep.

    Returns:
        Number of containers removed.
    """
    try:
        removed = await asyncio.wait_for(_remove_matching(engine, prefix), timeout=timeout)
    except TimeoutError:
        logger.warning("Timed out removing sandbox containers", timeout=timeout)
        return 0
    except EngineOperationError as exc:
        logger.debug("Engine not available, skipping sandbox teardown", error=str(exc))
        return 0

    if removed:
        logger.info("Sandbox containers removed", count=removed)
    return removed
