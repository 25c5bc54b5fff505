"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

SYNC_STAGE_COUNT = Counter(
    "vexcel_sync_stage_total",
    "Outcomes of each synced-operation stage",
    labelnames=("stage", "outcome"),
    registry=REGISTRY,
)

SYNC_DURATION = Histogram(
    "vexcel_sync_duration_seconds",
    "Duration of a full synced operation",
    registry=REGISTRY,
)

STORE_REQUEST_COUNT = Counter(
    "vexcel_store_requests_total",
    "Requests issued to external file stores",
    labelnames=("store", "action", "status"),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "SYNC_STAGE_COUNT",
    "SYNC_DURATION",
    "STORE_REQUEST_COUNT",
    "metrics_response",
]
