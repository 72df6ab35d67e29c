"""Fire-and-forget coroutine scheduling."""
import asyncio
from collections.abc import Coroutine
from typing import Any

from webstrate_assets.utils.logging import logger

# Strong references so the event loop doesn't drop running tasks.
_pending: set[asyncio.Task] = set()


def _on_done(task: asyncio.Task) -> None:
    _pending.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Background task {} failed: {}", task.get_name(), exc)


def spawn(coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
    """Schedule `coro` without waiting for it. Failures are logged, never raised."""
    task = asyncio.create_task(coro, name=name)
    _pending.add(task)
    task.add_done_callback(_on_done)
    return task


async def drain() -> None:
    """Wait for every background task scheduled on this loop (shutdown and tests)."""
    loop = asyncio.get_running_loop()
    while True:
        tasks = [task for task in _pending if task.get_loop() is loop and not task.done()]
        if not tasks:
            return
        await asyncio.gather(*tasks, return_exceptions=True)
