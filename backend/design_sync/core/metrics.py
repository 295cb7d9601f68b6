"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)

REGISTRY = CollectorRegistry()

EVENTS_BROADCAST = Counter(
    "dsync_events_broadcast_total",
    "Events broadcast to live-sync subscribers",
    labelnames=("event",),
    registry=REGISTRY,
)

DELIVERY_FAILURES = Counter(
    "dsync_delivery_failures_total",
    "Subscribers dropped after a failed delivery",
    registry=REGISTRY,
)

SUBSCRIBERS = Gauge(
    "dsync_subscribers",
    "Connected live-sync subscribers",
    registry=REGISTRY,
)

WATCH_SESSIONS = Gauge(
    "dsync_watch_sessions",
    "Active directory watch sessions",
    registry=REGISTRY,
)

DISCOVERY_PASSES = Counter(
    "dsync_discovery_passes_total",
    "Directory discovery passes executed",
    registry=REGISTRY,
)

CLEANUP_DELETED = Counter(
    "dsync_cleanup_deleted_total",
    "Assets removed by retention cleanup",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "EVENTS_BROADCAST",
    "DELIVERY_FAILURES",
    "SUBSCRIBERS",
    "WATCH_SESSIONS",
    "DISCOVERY_PASSES",
    "CLEANUP_DELETED",
    "metrics_response",
]
