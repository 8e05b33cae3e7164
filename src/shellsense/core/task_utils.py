"""Helpers for background asyncio tasks.

Shell readers and analysis passes run as background tasks. Their failures
are logged from a done-callback instead of disappearing with the task.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any


def log_task_exception(
    task: asyncio.Task[Any],
    logger: Any,
    event: str,
    *,
    level: str = "error",
) -> BaseException | None:
    """Log the exception of a finished task, if it has one.

    Returns:
        The exception, or None when the task succeeded or was cancelled.
    """
    if task.cancelled():
        return None
    exc = task.exception()
    if exc is not None:
        log_fn = getattr(logger, level, logger.error)
        log_fn(event, error=str(exc), task_name=task.get_name())
    return exc


def spawn_logged(
    coro: Coroutine[Any, Any, Any],
    logger: Any,
    event: str,
    *,
    name: str | None = None,
    tracked: set[asyncio.Task[Any]] | None = None,
) -> asyncio.Task[Any]:
    """Start ``coro`` as a task whose failure is logged under ``event``.

    When ``tracked`` is given the task is added to it and removed again on
    completion, so owners can cancel whatever is still running at teardown.
    """
    task = asyncio.get_running_loop().create_task(coro, name=name)
    if tracked is not None:
        tracked.add(task)

    def _done(t: asyncio.Task[Any]) -> None:
        if tracked is not None:
            tracked.discard(t)
        log_task_exception(t, logger, event)

    task.add_done_callback(_done)
    return task


__all__ = ["log_task_exception", "spawn_logged"]
