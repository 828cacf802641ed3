"""Batch retry with exponential backoff.

A batch that fails with a retryable ClassificationError (transport or
service trouble) may be resubmitted a few times before the pipeline
records it as failed. Anything not marked retryable is raised at once.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from .exceptions import ProcessorError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def backoff_delay(
    attempt: int, base_delay: float, max_delay: float, jitter: bool = True
) -> float:
    """Seconds to wait after failed attempt number `attempt` (1-based).

    The delay doubles per attempt up to max_delay; jitter scales it
    by a random factor between 0.5 and 1.5.
    """
    delay = min(base_delay * 2 ** (attempt - 1), max_delay)
    if jitter:
        delay *= random.uniform(0.5, 1.5)
    return delay


async def retry_async(
    func: Callable[P, Awaitable[T]],
    *args: P.args,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    **kwargs: P.kwargs,
) -> T:
    """Await func until it succeeds or a retry would not help.

    Args:
        func: Coroutine function, normally Classifier.classify_batch.
        *args: Positional arguments for func.
        max_attempts: Total calls allowed, the first one included.
        base_delay: Wait after the first failure, in seconds.
        max_delay: Upper bound for any single wait.
        jitter: Randomize waits so parallel callers spread out.
        **kwargs: Keyword arguments for func.

    Raises:
        ProcessorError: The last retryable error once attempts run out,
            or the first non-retryable one.
        ValueError: If max_attempts is less than 1.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    name = getattr(func, "__name__", repr(func))
    attempt = 1
    while True:
        try:
            return await func(*args, **kwargs)
        except ProcessorError as e:
            if not e.retryable:
                logger.debug("%s failed, not retryable: %s", name, e)
                raise
            if attempt >= max_attempts:
                if max_attempts > 1:
                    logger.warning(
                        "%s still failing after %d attempts: %s", name, attempt, e
                    )
                raise

            delay = backoff_delay(attempt, base_delay, max_delay, jitter)
            logger.info(
                "%s failed (attempt %d of %d), next try in %.2fs: %s",
                name,
                attempt,
                max_attempts,
                delay,
                e,
            )
            await asyncio.sleep(delay)
            attempt += 1
