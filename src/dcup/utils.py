"""Helpers shared by the lifecycle flows and the session registry."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Coroutine
from pathlib import Path
from typing import Any

from dcup.logger import logger


def write_json_atomic(path: Path, data: Any, *, indent: int | None = None) -> None:
    """Replace *path* with *data* as JSON via a temporary sibling and a rename.

    Separate ``dcup`` invocations share the session file, so a reader sees
    either the previous registry or the new one in full. Parent directories
    are created on demand.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".json.tmp")
    tmp.write_text(json.dumps(data, indent=indent))
    tmp.rename(path)


def create_background_task(
    coro: Coroutine[Any, Any, Any],
    *,
    name: str | None = None,
) -> asyncio.Task[Any]:
    """Schedule *coro* and log its failure if nobody awaits it.

    Used for work that outlives the call that started it: the build
    process reader and the rest of an ``up`` flow after spawn. Callers may
    still await the task and see the exception themselves.
    """
    task = asyncio.create_task(coro, name=name)
    task.add_done_callback(_log_task_exception)
    return task


def _log_task_exception(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    # Reading the exception marks it retrieved, so asyncio stays quiet on GC
    exc = task.exception()
    if exc is not None:
        logger.error("Background task failed", task_name=task.get_name(), exc_info=exc)
