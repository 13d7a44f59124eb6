from __future__ import annotations

import os
from fastapi.responses import Response
from prometheus_client import (
    Counter,
    Histogram,
    CONTENT_TYPE_LATEST,
    REGISTRY,
    generate_latest,
    start_http_server,
)

# ---------------------------------------------------------------------------
# Projection APIs
# ---------------------------------------------------------------------------

PROJECTION_REQUESTS = Counter(
    "mps_projection_requests_total",
    "Number of balance projection requests",
    labelnames=("item_type",),
)

PROJECTION_DURATION = Histogram(
    "mps_projection_duration_seconds",
    "Balance projection processing time",
    labelnames=("item_type",),
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2, float("inf")),
)

PROJECTION_WEEKS = Histogram(
    "mps_projection_weeks",
    "Number of weeks returned per projection request",
    buckets=(1, 4, 8, 13, 26, 53, 106, 260, float("inf")),
)

# ---------------------------------------------------------------------------
# Storage writes
# ---------------------------------------------------------------------------

MPS_DB_WRITE_TOTAL = Counter(
    "mps_db_write_total",
    "Number of successful MPS table write transactions",
    labelnames=("entity",),
)

MPS_DB_WRITE_ERROR_TOTAL = Counter(
    "mps_db_write_error_total",
    "Number of failed MPS table write transactions",
    labelnames=("entity", "error_type"),
)

MPS_DB_WRITE_LATENCY = Histogram(
    "mps_db_write_latency_seconds",
    "Latency of MPS table write transactions",
    labelnames=("entity",),
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, float("inf")),
)

SALES_PLAN_ROWS_WRITTEN = Counter(
    "mps_sales_plan_rows_written_total",
    "Number of sales plan rows written by batch upserts",
)


# ---------------------------------------------------------------------------
# Metrics endpoint helpers
# ---------------------------------------------------------------------------


def metrics_snapshot() -> Response:
    """Return Prometheus exposition text for FastAPI /metrics endpoint."""
    payload = generate_latest(REGISTRY)
    return Response(payload, media_type=CONTENT_TYPE_LATEST)


def start_metrics_server(port: int | None = None) -> None:
    """Optional standalone metrics server for worker processes."""
    target_port = port or int(os.getenv("METRICS_PORT", "9000"))
    start_http_server(target_port)
