"""Backoff and timeout helpers for single provider calls."""

import asyncio
import functools
from typing import Any, Awaitable, Callable, TypeVar

from .errors import TimeoutError
from .logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


def retry_async(
    max_attempts: int = 3,
    backoff_factor: float = 2.0,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    exceptions: tuple = (Exception,),
    give_up_on: tuple = (),
):
    """
    Retry an async call with exponential backoff.

    Only for single-shot calls. The refinement loop never retries a failed
    generation or evaluation; a new iteration is a new attempt.

    Args:
        exceptions: Exception types that trigger another attempt
        give_up_on: Subclasses of those that are re-raised at once
            (e.g. a rejected API key will not fix itself)

    Example:
        @retry_async(max_attempts=3, exceptions=(httpx.RequestError,))
        async def submit():
            ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            delay = initial_delay
            attempt = 0

            while True:
                attempt += 1
                try:
                    return await func(*args, **kwargs)
                except give_up_on:
                    raise
                except exceptions as e:
                    if attempt >= max_attempts:
                        logger.error(
                            f"{func.__name__} gave up",
                            extra={
                                "function": func.__name__,
                                "attempts": attempt,
                                "error": str(e),
                            }
                        )
                        raise

                    logger.warning(
                        f"{func.__name__} failed, retrying in {delay}s",
                        extra={
                            "function": func.__name__,
                            "attempt": attempt,
                            "error_type": type(e).__name__,
                            "error": str(e),
                        }
                    )
                    await asyncio.sleep(delay)
                    delay = min(delay * backoff_factor, max_delay)

        return wrapper
    return decorator


async def timeout_async(coro: Awaitable[Any], seconds: float | None):
    """
    Await ``coro``, bounded by ``seconds`` when given.

    Raises:
        TimeoutError: The bound was exceeded
    """
    if seconds is None:
        return await coro
    try:
        return await asyncio.wait_for(coro, timeout=seconds)
    except asyncio.TimeoutError:
        raise TimeoutError(f"Call exceeded {seconds}s limit")
