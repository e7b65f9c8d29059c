"""
Retry helpers for calls to the AI provider.

- Error categorization (transient vs permanent)
- Exponential backoff retry decorator
"""
import time
from typing import Callable
from functools import wraps
import logging

from app.constants import (
    DEFAULT_RETRY_MAX_ATTEMPTS,
    DEFAULT_RETRY_BASE_DELAY,
    DEFAULT_RETRY_BACKOFF_FACTOR,
    DEFAULT_RETRY_MAX_DELAY,
)

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API-related errors."""
    pass


class TransientAPIError(APIError):
    """Transient error that should be retried (timeouts, 5xx, rate limits)."""
    pass


class PermanentAPIError(APIError):
    """Permanent error that should not be retried (bad request, auth, unparseable output)."""
    pass


def retry_with_backoff(
    max_attempts: int = DEFAULT_RETRY_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_RETRY_BASE_DELAY,
    backoff_factor: float = DEFAULT_RETRY_BACKOFF_FACTOR,
    max_delay: float = DEFAULT_RETRY_MAX_DELAY,
    exceptions: tuple = (TransientAPIError, ConnectionError, TimeoutError)
):
    """
    Decorator for retrying functions with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts
        base_delay: Initial delay in seconds
        backoff_factor: Multiplier for delay after each failure
        max_delay: Maximum delay between retries
        exceptions: Tuple of exceptions to catch and retry

    Example:
        @retry_with_backoff(max_attempts=3, base_delay=2.0)
        def ask_model(messages):
            return client.chat.completions.create(model=model, messages=messages)
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay
            last_exception = None

            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)

                except exceptions as e:
                    last_exception = e

                    if attempt < max_attempts - 1:
                        logger.warning(
                            f"Attempt {attempt + 1}/{max_attempts} failed for {func.__name__}: {e}. "
                            f"Retrying in {delay:.1f}s..."
                        )
                        time.sleep(delay)
                        delay = min(delay * backoff_factor, max_delay)
                    else:
                        logger.error(
                            f"All {max_attempts} attempts failed for {func.__name__}: {e}"
                        )

                except PermanentAPIError as e:
                    logger.error(f"Permanent error in {func.__name__}: {e}")
                    raise

            raise last_exception

        return wrapper
    return decorator
