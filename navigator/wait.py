"""Bounded polling used to synchronize with a lazily rendered host UI."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import WaitTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


async def wait_until(
    check: Callable[[], Optional[T]],
    interval: float = 0.5,
    max_attempts: int = 10,
    sleep: SleepFunc = asyncio.sleep,
) -> T:
    """
    Poll ``check`` until it returns something other than None.

    The first check runs immediately, then one check every ``interval``
    seconds, ``max_attempts`` checks in total. There is no sleep after the
    last failed check.

    Returns:
        The first non-None value returned by ``check``.

    Raises:
        WaitTimeout: when every attempt returned None.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    for attempt in range(1, max_attempts + 1):
        result = check()
        if result is not None:
            logger.debug(f"Condition met on attempt {attempt}/{max_attempts}")
            return result
        if attempt < max_attempts:
            await sleep(interval)
    logger.debug(f"Condition not met after {max_attempts} attempts")
    raise WaitTimeout(max_attempts)


__all__ = ["SleepFunc", "wait_until"]
