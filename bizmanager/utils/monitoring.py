"""Prometheus metrics for the business manager API.

Request metrics are labelled with the matched route template (``/people/{person_id}``)
and a status class (``2xx``, ``4xx``) rather than raw paths and codes, so a busy
directory does not create one series per person. Auth metrics count each
credential operation by outcome.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

API_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)

api_requests_total = Counter(
    "bizmanager_http_requests_total",
    "API requests by route template and status class",
    ["method", "route", "status_class"],
)

api_request_latency_seconds = Histogram(
    "bizmanager_http_request_latency_seconds",
    "API request latency by route template",
    ["method", "route"],
    buckets=API_LATENCY_BUCKETS,
)

auth_events_total = Counter(
    "bizmanager_auth_events_total",
    "Authentication events by outcome",
    ["event", "outcome"],
)


def status_class(status_code: int) -> str:
    return f"{status_code // 100}xx"


def observe_request(method: str, route: str, status_code: int, duration_seconds: float) -> None:
    api_requests_total.labels(method=method, route=route, status_class=status_class(status_code)).inc()
    api_request_latency_seconds.labels(method=method, route=route).observe(duration_seconds)


def record_auth_event(event: str, outcome: str) -> None:
    """Count a login, registration or reset attempt; outcome is success, rejected or error."""

    auth_events_total.labels(event=event, outcome=outcome).inc()
