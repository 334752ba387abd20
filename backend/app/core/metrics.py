"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Event CRUD metrics
event_operations = Counter(
    'event_operations_total',
    'Event store operations',
    ['operation', 'result']  # list/show/create/update/delete, success/invalid/not_found/error
)

# HTTP metrics
request_latency = Histogram(
    'http_request_latency_seconds',
    'HTTP request latency',
    ['method', 'status_code'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Event list cache operations',
    ['operation', 'result']  # get/set/version/invalidate, hit/miss/ok/stale/error
)


def metrics_endpoint() -> Response:
    """Render every registered metric in the Prometheus text format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_event_operation(operation: str, result: str):
    event_operations.labels(operation=operation, result=result).inc()


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()


def observe_request(method: str, status_code: int, seconds: float):
    request_latency.labels(method=method, status_code=str(status_code)).observe(seconds)
