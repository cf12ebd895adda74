#!/usr/bin/env python3
"""
Retry logic with exponential backoff using tenacity
Provides decorators for resilient file operations
"""

from functools import wraps
from typing import Callable, Type

from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .constants import MAX_RETRIES, RETRY_BACKOFF_FACTOR, RETRY_INITIAL_DELAY, RETRY_MAX_DELAY
from .exceptions import CacheWriteError, RetryExhaustedError
from .logger import log


def retry_on_error(
    max_attempts: int = MAX_RETRIES,
    initial_delay: float = RETRY_INITIAL_DELAY,
    backoff: float = RETRY_BACKOFF_FACTOR,
    exceptions: tuple[Type[Exception], ...] = (Exception,),
) -> Callable:
    """
    Decorator for retrying functions with exponential backoff.

    When every attempt fails, RetryExhaustedError is raised from the last
    error.

    Args:
        max_attempts: Maximum number of attempts
        initial_delay: Initial delay in seconds
        backoff: Exponential backoff multiplier
        exceptions: Tuple of exception types to retry on

    Returns:
        Decorated function with retry logic

    Example:
        >>> @retry_on_error(max_attempts=3, exceptions=(OSError,))
        ... def write_state(path, text):
        ...     path.write_text(text)
    """

    def decorator(func: Callable) -> Callable:
        @retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(
                multiplier=backoff,
                min=initial_delay,
                max=RETRY_MAX_DELAY,
            ),
            retry=retry_if_exception_type(exceptions),
        )
        def attempt(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except exceptions as e:
                log.warning(f"Retry attempt for {func.__name__}: {e}")
                raise

        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return attempt(*args, **kwargs)
            except RetryError as e:
                last = e.last_attempt.exception()
                raise RetryExhaustedError(
                    f"{func.__name__} failed after {max_attempts} attempts: {last}"
                ) from last

        return wrapper

    return decorator


def retry_cache_write(func: Callable) -> Callable:
    """
    Specialized retry decorator for cache writes.

    Retries on OS errors and surfaces the final failure as CacheWriteError.

    Example:
        >>> @retry_cache_write
        ... def save(cache, path):
        ...     path.write_text(cache.model_dump_json())
    """
    retried = retry_on_error(
        max_attempts=MAX_RETRIES,
        initial_delay=RETRY_INITIAL_DELAY,
        backoff=RETRY_BACKOFF_FACTOR,
        exceptions=(OSError,),
    )(func)

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return retried(*args, **kwargs)
        except RetryExhaustedError as e:
            raise CacheWriteError(str(e)) from e

    return wrapper
