"""Monitoring infrastructure for bootcamp-tracker"""
from bootcamp_tracker.monitoring.sentry_config import init_sentry, capture_exception, set_user_context
from bootcamp_tracker.monitoring.prometheus_metrics import (
    metrics,
    track_request,
    track_store_operation,
    track_store_retry,
    track_status_update,
    track_achievements_unlocked,
)

__all__ = [
    "init_sentry",
    "capture_exception",
    "set_user_context",
    "metrics",
    "track_request",
    "track_store_operation",
    "track_store_retry",
    "track_status_update",
    "track_achievements_unlocked",
]
