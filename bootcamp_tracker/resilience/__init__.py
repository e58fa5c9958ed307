"""Retry logic for transient document store failures"""

from bootcamp_tracker.resilience.retry import retry_with_backoff, is_retryable_error

__all__ = [
    "retry_with_backoff",
    "is_retryable_error",
]
