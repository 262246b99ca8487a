"""
Retry with exponential backoff for record-store I/O.

The matching core never retries; only the repositories wrap their
database calls so a briefly locked SQLite file does not fail a request.
"""

import time
import functools
from typing import Callable, Optional, Tuple, Type

from .logger import get_logger


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


TRANSIENT_STORE_MESSAGES = (
    "database is locked",
    "database table is locked",
    "disk i/o error",
    "unable to open database file",
    "connection",
    "timeout",
)


def is_transient_store_error(exception: Exception) -> bool:
    """True for store errors that are worth another attempt."""
    error_str = str(exception).lower()
    return any(keyword in error_str for keyword in TRANSIENT_STORE_MESSAGES)


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 0.1,
    max_delay: float = 5.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    retry_if: Optional[Callable[[Exception], bool]] = None,
    on_retry: Optional[Callable] = None,
):
    """
    Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Multiplier applied to the delay after each attempt
        exceptions: Exception types that may be retried
        retry_if: Optional predicate; a caught exception it rejects is re-raised as is
        on_retry: Optional callback function(attempt, exception, delay)

    Example:
        @exponential_backoff(max_retries=3, exceptions=(OperationalError,))
        def load(session, item_id):
            return session.get(ItemRow, item_id)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if retry_if is not None and not retry_if(e):
                        raise
                    if attempt >= max_retries:
                        get_logger().error(
                            "Store operation failed",
                            operation=func.__name__,
                            attempts=attempt + 1,
                            error=str(e),
                        )
                        get_logger().record_error(type(e).__name__)
                        raise RetryError(
                            f"Failed after {max_retries + 1} attempts: {e}"
                        ) from e

                    current_delay = min(delay, max_delay)
                    get_logger().warning(
                        "Retrying store operation",
                        operation=func.__name__,
                        attempt=attempt + 1,
                        delay=current_delay,
                    )
                    if on_retry:
                        on_retry(attempt + 1, e, current_delay)
                    time.sleep(current_delay)
                    delay *= exponential_base

        return wrapper
    return decorator
