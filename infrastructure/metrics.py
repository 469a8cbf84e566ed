"""Prometheus metrics for the TrackShare feed service.

Metrics carry the feed vocabulary (endpoint, source category, strategy) so
dashboards show which upstream is degrading, not just HTTP status codes.

Metrics:
    trackshare_feed_requests_total           Counter by endpoint and status
    trackshare_feed_latency_seconds          Histogram of handler latency by endpoint
    trackshare_source_failures_total         Counter by endpoint and source
    trackshare_recommendation_fallbacks_total  Times trending replaced the blend
    trackshare_share_links_total             Counter by action (created/opened/expired)
    trackshare_trending_cache_total          Counter by result (hit/miss)
    trackshare_circuit_breaker_trips_total   Times a breaker tripped to OPEN
    trackshare_circuit_breaker_rejected_total  Calls rejected while OPEN

Usage::

    from infrastructure.metrics import LatencyTimer, record_feed_request

    with LatencyTimer() as t:
        page = build_page()
    record_feed_request(endpoint="activity", status="success", latency_seconds=t.elapsed)
"""

from __future__ import annotations

import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

feed_requests_total = Counter(
    "trackshare_feed_requests_total",
    "Feed requests by endpoint and status",
    ["endpoint", "status"],
    registry=REGISTRY,
)

feed_latency_seconds = Histogram(
    "trackshare_feed_latency_seconds",
    "Feed handler latency in seconds",
    ["endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
    registry=REGISTRY,
)

source_failures_total = Counter(
    "trackshare_source_failures_total",
    "Event sources or strategies that failed and contributed nothing",
    ["endpoint", "source"],
    registry=REGISTRY,
)

recommendation_fallbacks_total = Counter(
    "trackshare_recommendation_fallbacks_total",
    "Recommendation requests served from the trending source",
    ["reason"],
    registry=REGISTRY,
)

share_links_total = Counter(
    "trackshare_share_links_total",
    "Share link operations",
    ["action"],
    registry=REGISTRY,
)

trending_cache_total = Counter(
    "trackshare_trending_cache_total",
    "Trending chart cache lookups",
    ["result"],
    registry=REGISTRY,
)

circuit_breaker_trips_total = Counter(
    "trackshare_circuit_breaker_trips_total",
    "Number of times a circuit breaker tripped to OPEN state",
    ["breaker_name"],
    registry=REGISTRY,
)

circuit_breaker_rejected_total = Counter(
    "trackshare_circuit_breaker_rejected_total",
    "Calls rejected because the circuit was OPEN",
    ["breaker_name"],
    registry=REGISTRY,
)


def record_feed_request(*, endpoint: str, status: str, latency_seconds: float) -> None:
    """Record a completed feed request.

    Args:
        endpoint: ``activity``, ``notifications``, ``recommendations``, ...
        status: ``success``, ``partial``, ``fallback`` or ``error``.
        latency_seconds: Handler wall-clock time.
    """
    feed_requests_total.labels(endpoint=endpoint, status=status).inc()
    feed_latency_seconds.labels(endpoint=endpoint).observe(latency_seconds)


def record_source_failure(endpoint: str, source: str) -> None:
    source_failures_total.labels(endpoint=endpoint, source=source).inc()


def record_recommendation_fallback(reason: str) -> None:
    """Reason is ``anonymous``, ``all_failed`` or ``empty``."""
    recommendation_fallbacks_total.labels(reason=reason).inc()


def record_share_link(action: str) -> None:
    share_links_total.labels(action=action).inc()


def record_trending_cache(hit: bool) -> None:
    trending_cache_total.labels(result="hit" if hit else "miss").inc()


def record_circuit_trip(breaker_name: str) -> None:
    circuit_breaker_trips_total.labels(breaker_name=breaker_name).inc()


def record_circuit_rejected(breaker_name: str) -> None:
    circuit_breaker_rejected_total.labels(breaker_name=breaker_name).inc()


def get_metrics_response() -> tuple[bytes, str]:
    """Prometheus text exposition of the service registry.

    Returns:
        Tuple of (body_bytes, content_type_string).
    """
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST


class LatencyTimer:
    """Context manager measuring wall-clock time into ``elapsed``."""

    def __init__(self) -> None:
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> LatencyTimer:
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_: object) -> None:
        self.elapsed = time.perf_counter() - self._start
