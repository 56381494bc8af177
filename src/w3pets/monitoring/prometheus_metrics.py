"""
Prometheus metrics for monitoring application performance.

Metrics exported:
- w3pets_requests_total: Total HTTP requests
- w3pets_request_duration_seconds: Request duration histogram
- w3pets_errors_total: Unhandled errors by type
- w3pets_auth_events_total: Signup, verification, login, refresh and reset outcomes
- w3pets_seller_onboardings_total: Seller onboarding outcomes
"""

import re
import time
from typing import Optional

from prometheus_client import (
    Counter,
    Histogram,
    CollectorRegistry,
)
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from w3pets.utils.logger import get_logger

logger = get_logger(__name__)


class PrometheusMetrics:
    """
    Prometheus metrics collector for the W3Pets API.

    Tracks:
    - HTTP request metrics (rate, duration, status codes)
    - Authentication and onboarding outcomes
    - Error rates
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize Prometheus metrics.

        Args:
            registry: Prometheus registry (a private one is created if not provided)
        """
        self.registry = registry or CollectorRegistry()

        # HTTP request metrics
        self.requests_total = Counter(
            "w3pets_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry,
        )

        self.request_duration = Histogram(
            "w3pets_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=self.registry,
        )

        # Error metrics
        self.errors_total = Counter(
            "w3pets_errors_total",
            "Total errors",
            ["error_type", "endpoint"],
            registry=self.registry,
        )

        # Account metrics
        self.auth_events_total = Counter(
            "w3pets_auth_events_total",
            "Authentication events",
            ["event", "outcome"],
            registry=self.registry,
        )

        self.onboardings_total = Counter(
            "w3pets_seller_onboardings_total",
            "Seller onboarding attempts",
            ["outcome"],
            registry=self.registry,
        )

        logger.info("Prometheus metrics initialized")

    def track_request(
        self,
        method: str,
        endpoint: str,
        status_code: int,
        duration: float,
    ):
        """
        Track HTTP request metrics.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: Normalized request path
            status_code: HTTP status code
            duration: Request duration in seconds
        """
        self.requests_total.labels(
            method=method,
            endpoint=endpoint,
            status_code=status_code,
        ).inc()

        self.request_duration.labels(
            method=method,
            endpoint=endpoint,
        ).observe(duration)

    def track_error(self, error_type: str, endpoint: str):
        """Track error occurrence."""
        self.errors_total.labels(
            error_type=error_type,
            endpoint=endpoint,
        ).inc()

    def track_auth_event(self, event: str, outcome: str = "success"):
        """
        Track an authentication event.

        Args:
            event: signup, verify_email, login, refresh, logout, password_reset
            outcome: success or failed
        """
        self.auth_events_total.labels(event=event, outcome=outcome).inc()

    def track_onboarding(self, outcome: str):
        """Track a seller onboarding attempt (success or failed)."""
        self.onboardings_total.labels(outcome=outcome).inc()


# Global metrics instance
_metrics: Optional[PrometheusMetrics] = None


def get_metrics() -> PrometheusMetrics:
    """Get global metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = PrometheusMetrics()
    return _metrics


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Middleware for automatic request metrics collection.
    """

    def __init__(self, app):
        super().__init__(app)
        self.metrics = get_metrics()

    async def dispatch(self, request: Request, call_next):
        # Skip metrics endpoint itself
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.time()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            self.metrics.track_error(type(e).__name__, self._normalize_endpoint(request.url.path))
            raise
        finally:
            self.metrics.track_request(
                method=request.method,
                endpoint=self._normalize_endpoint(request.url.path),
                status_code=status_code,
                duration=time.time() - start_time,
            )

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """
        Normalize endpoint path for metrics labels.

        Replaces numeric ids and emailed tokens with placeholders to keep
        label cardinality bounded.
        """
        path = re.sub(r"/verify-email/[^/]+", "/verify-email/{token}", path)
        path = re.sub(r"/\d+", "/{id}", path)
        return path
