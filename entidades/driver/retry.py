"""Bounded retry for detail page visits.

run_with_retry() re-runs an async operation from scratch until it succeeds
or the attempt budget is spent. The operation must be self-contained: every
attempt navigates and extracts anew, and nothing from a failed attempt is
reused by the next one.

Example::

    detail = await run_with_retry(
        lambda: visit(stub.url),
        max_attempts=3,
        delay=5.0,
        description=stub.url,
    )
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from entidades.common.exceptions import (
    RetriesExhausted,
    ScraperAssumptionException,
    TransientException,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    TransientException,
    ScraperAssumptionException,
)


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    delay: float,
    *,
    retry_on: tuple[type[BaseException], ...] = RETRYABLE_EXCEPTIONS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    description: str = "operation",
    log_prefix: str = "",
) -> T:
    """Run operation until it succeeds, at most max_attempts times.

    Args:
        operation: Zero-argument coroutine function performing one attempt.
        max_attempts: Upper bound on calls to operation (at least 1).
        delay: Seconds to pause between a failed attempt and the next one.
        retry_on: Exception types that count as a failed attempt. Anything
            else propagates immediately.
        sleep: Pause implementation, asyncio.sleep by default.
        description: What is being attempted, for logs and errors.
        log_prefix: Prefix for log messages (e.g. "Worker 3: ").

    Returns:
        The value returned by the first successful attempt.

    Raises:
        RetriesExhausted: If every attempt failed. The last attempt's error
            is attached as last_error and as the exception's cause.
        ValueError: If max_attempts is less than 1.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    last_error: BaseException | None = None
    for attempt in range(1, max_attempts + 1):
        logger.debug(f"{log_prefix}Processing {description} (attempt {attempt})")
        try:
            return await operation()
        except retry_on as e:
            last_error = e
            logger.warning(
                f"{log_prefix}Attempt {attempt} failed for {description}: {e}",
                extra={"attempt": attempt, "max_attempts": max_attempts},
            )

        if attempt < max_attempts:
            logger.info(
                f"{log_prefix}Waiting {delay}s before retrying {description}"
            )
            await sleep(delay)

    assert last_error is not None
    raise RetriesExhausted(description, max_attempts, last_error) from last_error
