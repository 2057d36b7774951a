from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from persistence.errors import AdapterIOError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


async def retry_storage_operation(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    delay: float = 1.0,
    sleep: Sleep = asyncio.sleep,
    label: str = "storage operation",
) -> T:
    """
    Await `operation()` and retry it when the adapter fails.

    Only AdapterIOError is retried; the store has already rolled its mirror back when
    it raises, so running the operation again is safe. Everything else (missing records,
    id collisions, validation errors) propagates on the first attempt. The wait before
    retry N is `delay * N` seconds. The last adapter error is re-raised once all attempts
    are used up.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except AdapterIOError as e:
            if attempt == attempts:
                logger.error("RETRY: %s failed after %d attempts: %r", label, attempts, e)
                raise
            wait = delay * attempt
            logger.warning("RETRY: %s failed (attempt %d/%d), retrying in %.2fs: %r", label, attempt, attempts, wait, e)
            await sleep(wait)

    raise AssertionError("unreachable")
