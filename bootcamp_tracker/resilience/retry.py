"""Retry logic with exponential backoff and jitter

Implements smart retry logic that:
1. Only retries transient errors (dropped connections, timeouts)
2. Uses exponential backoff with jitter to prevent thundering herd
3. Gives up after max retries to avoid infinite loops
"""

import asyncio
import random
import logging
from typing import Callable, Any, TypeVar

import psycopg

from bootcamp_tracker.config import STORE_MAX_RETRIES
from bootcamp_tracker.exceptions import ConnectionError as StoreConnectionError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Retry configuration
MAX_RETRIES = STORE_MAX_RETRIES
BASE_DELAY = 0.2  # seconds
MAX_DELAY = 5.0  # seconds
JITTER = 0.1  # 10% random jitter


def is_retryable_error(exc: Exception) -> bool:
    """
    Determine if error is transient and should be retried.

    Retryable errors:
    - Store connection failures (ConnectionError from our hierarchy)
    - psycopg OperationalError (server gone, pool exhausted)
    - asyncio timeouts

    Non-retryable errors:
    - Missing documents, version conflicts, validation failures
    - Query errors (retrying the same statement fails the same way)

    Args:
        exc: The exception to check

    Returns:
        True if error should be retried, False otherwise
    """
    if isinstance(exc, StoreConnectionError):
        return True

    if isinstance(exc, psycopg.OperationalError):
        return True

    if isinstance(exc, asyncio.TimeoutError):
        return True

    # Default: don't retry unknown errors
    return False


def calculate_backoff(attempt: int) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Formula: delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY) + jitter
    Jitter is random value between -10% and +10% of delay

    Args:
        attempt: The retry attempt number (0-indexed)

    Returns:
        Delay in seconds

    Example:
        Attempt 0: ~0.2s
        Attempt 1: ~0.4s
        Attempt 2: ~0.8s
    """
    delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY)

    # Add jitter to prevent thundering herd
    jitter_amount = random.uniform(-JITTER * delay, JITTER * delay)
    final_delay = delay + jitter_amount

    return max(final_delay, 0.0)


async def retry_with_backoff(
    func: Callable[..., T],
    *args: Any,
    max_retries: int = MAX_RETRIES,
    **kwargs: Any
) -> T:
    """
    Retry async function with exponential backoff.

    Only retries transient errors. Gives up after max_retries attempts.

    Args:
        func: Async function to retry
        max_retries: Maximum number of retry attempts
        *args, **kwargs: Arguments to pass to func

    Returns:
        Result from func

    Raises:
        Last exception if all retries exhausted or non-retryable error

    Example:
        snapshot = await retry_with_backoff(store.get_document, "users", user_id)
    """
    name = getattr(func, "__name__", repr(func))

    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)

        except Exception as e:
            if not is_retryable_error(e):
                raise

            if attempt == max_retries:
                logger.error(f"[RETRY] All {max_retries} retries exhausted for {name}")
                raise

            backoff = calculate_backoff(attempt)

            from bootcamp_tracker.monitoring.prometheus_metrics import track_store_retry
            track_store_retry(name)

            logger.info(
                f"[RETRY] Attempt {attempt + 1}/{max_retries} for {name} "
                f"after {backoff:.2f}s (error: {type(e).__name__})"
            )

            await asyncio.sleep(backoff)

    raise RuntimeError("Retry logic failed unexpectedly")
