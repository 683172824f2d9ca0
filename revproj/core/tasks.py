"""Best-effort background work.

Outbound notifications (email, CRM updates) must never decide the outcome of
the request that triggered them. Routes hand them to FastAPI's
``BackgroundTasks`` wrapped in :func:`run_best_effort`, which bounds each call
with a timeout and logs any failure instead of raising it. Nothing is retried.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


async def run_best_effort(
    name: str,
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
    **kwargs: Any,
) -> Any | None:
    """Await ``func(*args, **kwargs)`` and swallow any failure.

    Args:
        name: Task label used in log events
        func: Coroutine function to run
        timeout: Seconds before the call is abandoned (None disables the bound)

    Returns:
        The coroutine result, or None if it failed or timed out
    """
    try:
        result = await asyncio.wait_for(func(*args, **kwargs), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("best_effort_task_timeout", task=name, timeout=timeout)
        return None
    except Exception as exc:
        logger.error(
            "best_effort_task_failed",
            task=name,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return None

    logger.debug("best_effort_task_completed", task=name)
    return result
