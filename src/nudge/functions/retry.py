"""Bounded exponential backoff for idempotent reads.

Mutations must never go through here: a timed-out write may still have
landed on the other side.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from nudge.errors import RemoteServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Timeouts and remote failures are worth another try; ownership/validation errors are not
RETRYABLE: tuple[type[BaseException], ...] = (RemoteServiceError, ConnectionError, OSError)


async def retry_idempotent(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    retry_on: tuple[type[BaseException], ...] = RETRYABLE,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Run ``operation`` up to ``attempts`` times, doubling the delay between tries.

    The last failure is re-raised unchanged.
    """
    if attempts < 1:
        msg = "attempts must be >= 1"
        raise ValueError(msg)

    delay = base_delay
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            if attempt == attempts:
                raise
            logger.warning("Read failed (attempt %d/%d): %s, retrying in %.1fs", attempt, attempts, e, delay)
            await sleep(delay)
            delay = min(delay * 2, max_delay)
    raise AssertionError("unreachable")
