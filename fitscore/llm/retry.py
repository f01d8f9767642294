"""Bounded retry with a fixed delay."""

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


async def retry_async(
    fn: Callable[[], Awaitable[Any]],
    attempts: int = 3,
    delay: float = 2.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    give_up_on: tuple[type[BaseException], ...] = (),
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Any:
    """
    Await ``fn()`` until it succeeds or the attempts run out.

    Args:
        fn: Zero-argument coroutine function
        attempts: Total number of calls, at least 1
        delay: Seconds to wait between calls
        retry_on: Exceptions that trigger another attempt
        give_up_on: Exceptions re-raised immediately, even if in retry_on

    Returns:
        The first successful result

    Raises:
        The last exception once attempts are exhausted
    """
    attempts = max(attempts, 1)
    last_error = None

    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except give_up_on:
            raise
        except retry_on as e:
            last_error = e
            if attempt == attempts:
                break
            logger.warning(f"Attempt {attempt}/{attempts} failed: {e}; retrying in {delay}s")
            await sleep(delay)

    logger.error(f"All {attempts} attempts failed: {last_error}")
    raise last_error
