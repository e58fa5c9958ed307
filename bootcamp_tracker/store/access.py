"""Instrumented store calls: metrics plus retry of transient failures"""

from typing import Any, Awaitable, Callable, TypeVar

from bootcamp_tracker.monitoring.prometheus_metrics import track_store_operation
from bootcamp_tracker.resilience.retry import retry_with_backoff

T = TypeVar("T")


async def store_call(
    operation: str,
    collection: str,
    func: Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any
) -> T:
    """
    Run one document store call with retry and metrics

    Example:
        snapshot = await store_call("get_document", "users", store.get_document, "users", uid)
    """
    with track_store_operation(operation, collection):
        return await retry_with_backoff(func, *args, **kwargs)
