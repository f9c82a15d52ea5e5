"""
Prometheus Metrics Middleware

Provides request/response metrics for monitoring:
- HTTP request latency (p50, p95, p99)
- Request count by endpoint and status
- Active request gauge
- Chat response cache hit/miss counts
- Retrieval strategy hit counts

Usage:
    from recruitchat.middleware.metrics import setup_metrics

    # In main.py
    app = FastAPI()
    setup_metrics(app)

Metrics Endpoint:
    GET /metrics - Prometheus-format metrics
"""

import time
import logging
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CONTENT_TYPE_LATEST,
    generate_latest,
    REGISTRY,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

logger = logging.getLogger(__name__)

# ==================== Prometheus Metrics ====================

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

ACTIVE_REQUESTS = Gauge(
    "http_requests_active",
    "Number of active HTTP requests",
    ["method", "endpoint"]
)

CHAT_CACHE_HITS = Counter(
    "chat_cache_hits_total",
    "Chat replies served from the response cache"
)

CHAT_CACHE_MISSES = Counter(
    "chat_cache_misses_total",
    "Cacheable chat queries that missed the response cache"
)

# Generation calls can take seconds, hence the wider buckets
GENERATION_LATENCY = Histogram(
    "chat_generation_seconds",
    "Chat completion latency",
    ["call_site"],  # answer, criteria, ranking
    buckets=[0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0]
)

STRATEGY_HITS = Counter(
    "chat_strategy_total",
    "Retrieval strategy that produced the result",
    ["strategy"]
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for Prometheus metrics collection.

    Records:
    - Request latency
    - Request count by status code
    - Active request count
    """

    def __init__(self, app: FastAPI, app_name: str = "recruitchat"):
        super().__init__(app)
        self.app_name = app_name

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        """Process request and record metrics."""
        endpoint = self._get_endpoint(request)
        method = request.method

        # Skip metrics endpoint
        if endpoint == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.labels(method=method, endpoint=endpoint).inc()
        start_time = time.perf_counter()
        status = "500"

        try:
            response = await call_next(request)
            status = str(response.status_code)
        except Exception as e:
            logger.error(f"Request error: {e}")
            raise
        finally:
            duration = time.perf_counter() - start_time

            REQUEST_LATENCY.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).observe(duration)

            REQUEST_COUNT.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).inc()

            ACTIVE_REQUESTS.labels(
                method=method,
                endpoint=endpoint
            ).dec()

        return response

    def _get_endpoint(self, request: Request) -> str:
        """
        Get normalized endpoint path from request.

        Uses the route pattern instead of the actual path to avoid
        high label cardinality.
        """
        for route in request.app.routes:
            match, _ = route.matches(request.scope)
            if match == Match.FULL:
                return route.path

        return request.url.path


def metrics_endpoint(request: Request) -> Response:
    """Prometheus scrape endpoint."""
    return PlainTextResponse(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )


def setup_metrics(app: FastAPI) -> None:
    """
    Configure Prometheus metrics for FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(PrometheusMiddleware, app_name="recruitchat")
    app.add_route("/metrics", metrics_endpoint, methods=["GET"])

    logger.info("Prometheus metrics configured")


# ==================== Helper Functions ====================

def record_cache_hit() -> None:
    CHAT_CACHE_HITS.inc()


def record_cache_miss() -> None:
    CHAT_CACHE_MISSES.inc()


def record_strategy_hit(strategy: str) -> None:
    """Count the retrieval strategy that answered a query."""
    STRATEGY_HITS.labels(strategy=strategy).inc()


def record_generation_latency(call_site: str, duration: float) -> None:
    GENERATION_LATENCY.labels(call_site=call_site).observe(duration)
