"""Utilities for safe async task management.

Provides a wrapper for long-running background tasks that ensures:
- Errors are logged rather than silently swallowed
- Cancellation on shutdown is logged and propagated
"""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

from translation_service.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def create_safe_task(
    coro: Coroutine[Any, Any, T],
    task_name: str,
) -> asyncio.Task[T | None]:
    """Create a background task with proper error handling.

    Unlike raw asyncio.create_task(), this wrapper logs failures with full
    context and names the task for easier debugging.

    Args:
        coro: The coroutine to run
        task_name: Descriptive name for logging and debugging

    Returns:
        The created asyncio.Task

    Example:
        task = create_safe_task(
            sweep_expired(cache, interval_seconds=30),
            task_name="export_cache_sweeper",
        )
    """

    async def wrapped() -> T | None:
        try:
            result = await coro
        except asyncio.CancelledError:
            logger.info("background_task_cancelled", task=task_name)
            raise
        except Exception as e:
            logger.exception(
                "background_task_failed",
                task=task_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
        logger.debug("background_task_completed", task=task_name)
        return result

    task = asyncio.create_task(wrapped(), name=task_name)
    logger.debug("background_task_created", task=task_name)
    return task
