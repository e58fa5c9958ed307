"""Tests for monitoring infrastructure"""
import pytest
from unittest.mock import patch
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient


class TestSentryIntegration:
    """Test Sentry configuration and integration"""

    def test_sentry_initialization_disabled(self):
        """Test Sentry doesn't initialize when disabled"""
        with patch('bootcamp_tracker.monitoring.sentry_config.ENABLE_SENTRY', False):
            with patch('sentry_sdk.init') as mock_init:
                from bootcamp_tracker.monitoring import init_sentry
                init_sentry()
                mock_init.assert_not_called()

    def test_sentry_initialization_no_dsn(self):
        """Test Sentry handles missing DSN gracefully"""
        with patch('bootcamp_tracker.monitoring.sentry_config.ENABLE_SENTRY', True), \
                patch('bootcamp_tracker.monitoring.sentry_config.SENTRY_DSN', ''), \
                patch('sentry_sdk.init') as mock_init:
            from bootcamp_tracker.monitoring import init_sentry
            init_sentry()
            mock_init.assert_not_called()

    def test_set_user_context(self):
        """Test setting user context"""
        with patch('bootcamp_tracker.monitoring.sentry_config.ENABLE_SENTRY', True):
            with patch('sentry_sdk.set_user') as mock_set_user:
                from bootcamp_tracker.monitoring import set_user_context
                set_user_context("uid-123")
                mock_set_user.assert_called_once_with({"id": "uid-123"})

    def test_capture_exception_tags_context(self):
        """Test exception capture"""
        with patch('bootcamp_tracker.monitoring.sentry_config.ENABLE_SENTRY', True), \
                patch('sentry_sdk.set_tag') as mock_set_tag, \
                patch('sentry_sdk.capture_exception') as mock_capture:
            from bootcamp_tracker.monitoring import capture_exception
            error = ValueError("Test error")
            capture_exception(error, operation="update_module_status")
            mock_set_tag.assert_called_once_with("operation", "update_module_status")
            mock_capture.assert_called_once_with(error)


class TestPrometheusMetrics:
    """Test Prometheus metrics tracking"""

    def test_global_metrics_enabled(self):
        from bootcamp_tracker.monitoring.prometheus_metrics import metrics
        assert metrics.enabled is True

    def test_metrics_disabled(self):
        """Test metrics when disabled"""
        with patch('bootcamp_tracker.monitoring.prometheus_metrics.ENABLE_PROMETHEUS', False):
            from bootcamp_tracker.monitoring.prometheus_metrics import PrometheusMetrics
            assert PrometheusMetrics().enabled is False

    def test_track_request_context_manager(self):
        """Test request tracking context manager"""
        from bootcamp_tracker.monitoring import track_request

        with track_request("GET", "/api/test"):
            pass

    def test_track_request_reraises(self):
        from bootcamp_tracker.monitoring import track_request

        with pytest.raises(RuntimeError):
            with track_request("GET", "/api/test"):
                raise RuntimeError("boom")

    def test_track_store_operation_counts(self):
        from bootcamp_tracker.monitoring.prometheus_metrics import metrics, track_store_operation

        counter = metrics.store_operations_total.labels(
            operation="get_document", collection="monitoring_test", status="success"
        )
        before = counter._value.get()
        with track_store_operation("get_document", "monitoring_test"):
            pass
        assert counter._value.get() == before + 1

    def test_version_conflicts_counted(self):
        from bootcamp_tracker.monitoring.prometheus_metrics import metrics, track_status_update

        before = metrics.version_conflicts_total._value.get()
        track_status_update("completed", "conflict")
        assert metrics.version_conflicts_total._value.get() == before + 1

    def test_update_listener_gauge(self):
        from bootcamp_tracker.monitoring.prometheus_metrics import metrics, update_listener_gauge

        update_listener_gauge(3)
        assert metrics.store_listeners._value.get() == 3
        update_listener_gauge(0)


class TestRequestMetricsMiddleware:
    """Test request metrics middleware"""

    def _app(self):
        from bootcamp_tracker.api.middleware import setup_request_metrics

        app = FastAPI()
        setup_request_metrics(app)

        @app.get("/items/{item_id}")
        async def get_item(item_id: int):
            return {"id": item_id}

        @app.get("/error")
        async def error_endpoint():
            raise HTTPException(status_code=500, detail="Test error")

        return app

    def test_labels_by_route_template(self):
        from bootcamp_tracker.monitoring.prometheus_metrics import metrics

        counter = metrics.http_requests_total.labels(method="GET", endpoint="/items/{item_id}", status=200)
        before = counter._value.get()

        response = TestClient(self._app()).get("/items/7")

        assert response.status_code == 200
        assert counter._value.get() == before + 1

    def test_middleware_handles_errors(self):
        response = TestClient(self._app()).get("/error")
        assert response.status_code == 500
