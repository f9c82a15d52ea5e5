"""
Middleware Package

Contains FastAPI middleware for:
- Prometheus metrics collection
- Chat cache and retrieval strategy counters
"""

from recruitchat.middleware.metrics import (
    PrometheusMiddleware,
    setup_metrics,
    REQUEST_LATENCY,
    REQUEST_COUNT,
    ACTIVE_REQUESTS,
    CHAT_CACHE_HITS,
    CHAT_CACHE_MISSES,
    STRATEGY_HITS,
)

__all__ = [
    "PrometheusMiddleware",
    "setup_metrics",
    "REQUEST_LATENCY",
    "REQUEST_COUNT",
    "ACTIVE_REQUESTS",
    "CHAT_CACHE_HITS",
    "CHAT_CACHE_MISSES",
    "STRATEGY_HITS",
]
