"""Retry utilities with exponential backoff for coroutines."""

import asyncio
from functools import wraps
from typing import Awaitable, Callable, Tuple, Type

import structlog

log = structlog.stdlib.get_logger()


def async_exponential_backoff_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[None]] | None = None,
) -> Callable:
    """
    Decorator that retries a coroutine function with exponential backoff.

    If the raised exception carries a ``retry_after`` attribute (seconds), that
    value is used instead of the computed delay, still capped at ``max_delay``.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        exceptions: Tuple of exception types to catch and retry
        sleep: Optional awaitable sleep function (defaults to asyncio.sleep)

    Returns:
        Decorated coroutine function with retry logic
    """

    def decorator(func: Callable[..., Awaitable]) -> Callable[..., Awaitable]:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            do_sleep = sleep or asyncio.sleep

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        log.error(
                            "max_retries_reached",
                            function=func.__name__,
                            max_retries=max_retries,
                            error=str(e),
                        )
                        raise

                    delay = min(base_delay * (2**attempt), max_delay)
                    retry_after = getattr(e, "retry_after", None)
                    if retry_after is not None:
                        delay = min(float(retry_after), max_delay)

                    log.warning(
                        "retrying_after_error",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay_seconds=delay,
                        error=str(e),
                    )

                    await do_sleep(delay)

        return wrapper

    return decorator
