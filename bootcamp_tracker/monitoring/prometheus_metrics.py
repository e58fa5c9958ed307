"""Prometheus metrics definitions and helpers"""
import logging
import time
from contextlib import contextmanager
from typing import Iterable

from prometheus_client import Counter, Gauge, Histogram

from bootcamp_tracker.config import ENABLE_PROMETHEUS

logger = logging.getLogger(__name__)


class PrometheusMetrics:
    """Container for all Prometheus metrics"""

    def __init__(self):
        if not ENABLE_PROMETHEUS:
            logger.info("Prometheus metrics disabled")
            self._enabled = False
            return

        # HTTP Request Metrics
        self.http_requests_total = Counter(
            'http_requests_total',
            'Total HTTP requests',
            ['method', 'endpoint', 'status']
        )

        self.http_request_duration_seconds = Histogram(
            'http_request_duration_seconds',
            'HTTP request latency',
            ['method', 'endpoint'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0]
        )

        self.http_errors_total = Counter(
            'http_errors_total',
            'Total HTTP errors',
            ['method', 'endpoint', 'error_type']
        )

        # Document store metrics
        self.store_operations_total = Counter(
            'store_operations_total',
            'Total document store operations',
            ['operation', 'collection', 'status']
        )

        self.store_operation_duration_seconds = Histogram(
            'store_operation_duration_seconds',
            'Document store operation latency',
            ['operation'],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0]
        )

        self.store_retries_total = Counter(
            'store_retries_total',
            'Retries of transient document store failures',
            ['operation']
        )

        self.store_listeners = Gauge(
            'store_listeners',
            'Active document store listeners'
        )

        # Progress metrics
        self.status_updates_total = Counter(
            'module_status_updates_total',
            'Module status updates',
            ['status', 'result']
        )

        self.version_conflicts_total = Counter(
            'progress_version_conflicts_total',
            'Status updates that re-read after a concurrent write'
        )

        self.achievements_unlocked_total = Counter(
            'achievements_unlocked_total',
            'Achievements unlocked',
            ['achievement']
        )

        self._enabled = True
        logger.info("Prometheus metrics initialized")

    @property
    def enabled(self) -> bool:
        """Check if metrics are enabled"""
        return self._enabled


# Global metrics instance
metrics = PrometheusMetrics()


@contextmanager
def track_request(method: str, endpoint: str):
    """Track HTTP request metrics"""
    if not metrics.enabled:
        yield
        return

    start_time = time.time()
    status_code = 500

    try:
        yield
        status_code = 200
    except Exception as e:
        metrics.http_errors_total.labels(
            method=method,
            endpoint=endpoint,
            error_type=type(e).__name__
        ).inc()
        raise
    finally:
        duration = time.time() - start_time
        metrics.http_request_duration_seconds.labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

        metrics.http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status=status_code
        ).inc()


@contextmanager
def track_store_operation(operation: str, collection: str = ""):
    """Track document store call count and latency"""
    if not metrics.enabled:
        yield
        return

    start_time = time.time()
    status = "error"

    try:
        yield
        status = "success"
    finally:
        duration = time.time() - start_time
        metrics.store_operation_duration_seconds.labels(
            operation=operation
        ).observe(duration)

        metrics.store_operations_total.labels(
            operation=operation,
            collection=collection,
            status=status
        ).inc()


def track_store_retry(operation: str) -> None:
    if not metrics.enabled:
        return
    metrics.store_retries_total.labels(operation=operation).inc()


def track_status_update(status: str, result: str) -> None:
    """result: 'success', 'conflict' or 'error'"""
    if not metrics.enabled:
        return
    metrics.status_updates_total.labels(status=status, result=result).inc()
    if result == "conflict":
        metrics.version_conflicts_total.inc()


def track_achievements_unlocked(achievement_ids: Iterable[str]) -> None:
    if not metrics.enabled:
        return
    for achievement_id in achievement_ids:
        metrics.achievements_unlocked_total.labels(achievement=achievement_id).inc()


def update_listener_gauge(count: int) -> None:
    if not metrics.enabled:
        return
    metrics.store_listeners.set(count)
