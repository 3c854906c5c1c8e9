"""Retry with exponential backoff for blob store uploads."""
import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger

from listingmedia.exceptions import NetworkError

T = TypeVar('T')

RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (NetworkError, ConnectionError, TimeoutError)


async def with_retry(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = 2,
    backoff_factor: float = 2.0,
    initial_delay: float = 0.5,
    retry_exceptions: tuple[type[Exception], ...] = RETRYABLE_EXCEPTIONS,
    label: str | None = None,
    **kwargs: Any
) -> T:
    """
    Execute an async function, retrying transient failures with exponential backoff.

    Only uploads go through here. Blob deletions are attempted exactly once.

    :param fn: Async function to execute
    :param args: Positional arguments to pass to fn
    :param max_retries: Maximum number of retry attempts (default 2)
    :param backoff_factor: Multiplier for delay between retries (default 2.0)
    :param initial_delay: Initial delay in seconds (default 0.5)
    :param retry_exceptions: Tuple of exception types to retry on
    :param label: Name used in log messages (defaults to fn's name)
    :param kwargs: Keyword arguments to pass to fn
    :return: Result of fn
    :raises: The last exception if all attempts fail
    """
    name = label or getattr(fn, '__name__', repr(fn))
    delay = initial_delay
    attempt = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except retry_exceptions as e:
            if attempt >= max_retries:
                logger.error(f"Giving up on {name} after {attempt + 1} attempts: {e}")
                raise
            attempt += 1
            logger.warning(
                f"{name} failed with {type(e).__name__}: {e}. "
                f"Retry {attempt}/{max_retries} in {delay:.1f}s"
            )
            await asyncio.sleep(delay)
            delay *= backoff_factor
