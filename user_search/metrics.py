"""
Prometheus metrics for the user search service.

Tracks remote directory calls, local cache effectiveness, deny-list
short-circuits, and HTTP traffic.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "user_search_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "user_search_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Remote directory metrics
remote_calls_total = Counter(
    "user_search_remote_calls_total",
    "Total calls to the remote user directory",
    ["operation", "status"],
)

remote_results_per_search = Histogram(
    "user_search_remote_results_per_search",
    "Number of users returned per remote search",
    buckets=(0, 1, 5, 10, 20, 50, 100, 500, 1000),
)

# Local cache metrics
cache_lookups_total = Counter(
    "user_search_cache_lookups_total",
    "Local store lookups",
    ["kind", "result"],
)

# Deny-list metrics
deny_list_short_circuits_total = Counter(
    "user_search_deny_list_short_circuits_total",
    "Searches answered empty by the deny-list without any I/O",
)

deny_list_additions_total = Counter(
    "user_search_deny_list_additions_total",
    "Queries added to the deny-list after returning zero results",
)


def track_remote_call(operation: str, status: str) -> None:
    """Record a remote directory call."""
    remote_calls_total.labels(operation=operation, status=status).inc()


def track_cache_lookup(kind: str, hit: bool) -> None:
    """Record a local store lookup as hit or miss."""
    cache_lookups_total.labels(kind=kind, result="hit" if hit else "miss").inc()


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
