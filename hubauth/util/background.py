"""Fire-and-forget background tasks."""

import asyncio
from typing import Any, Coroutine

import logfire

# Strong references so pending tasks are not garbage collected
_background_tasks: set[asyncio.Task[Any]] = set()


def fire_and_forget(coro: Coroutine[Any, Any, Any], *, name: str = "task") -> asyncio.Task[Any]:
    """Schedule a coroutine without waiting for it.

    Failures are logged and otherwise ignored.
    """

    def _done(task: asyncio.Task[Any]) -> None:
        _background_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logfire.warn(
                "Background task failed",
                task=name,
                error=str(exc),
                error_type=type(exc).__name__,
            )

    task = asyncio.create_task(coro, name=name)
    _background_tasks.add(task)
    task.add_done_callback(_done)
    return task


async def drain_background_tasks() -> None:
    """Wait for all scheduled background tasks to finish."""
    while _background_tasks:
        await asyncio.gather(*list(_background_tasks), return_exceptions=True)
        # Let the done callbacks drop the finished tasks
        await asyncio.sleep(0)
