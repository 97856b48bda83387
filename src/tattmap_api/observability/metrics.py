from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.responses import Response

operation_total = Counter(
    "tm_operation_total",
    "Count of critical operations.",
    labelnames=("operation", "outcome", "error_code"),
)
operation_duration_seconds = Histogram(
    "tm_operation_duration_seconds",
    "Duration of critical operations in seconds.",
    labelnames=("operation", "outcome"),
    buckets=(
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
    ),
)

search_results_total = Counter(
    "tm_search_results_total",
    "Artists returned by searches, after exact geo refinement.",
    labelnames=("search_mode", "strategy"),
)

search_refined_out_total = Counter(
    "tm_search_refined_out_total",
    "Candidate rows dropped by exact in-process geo refinement.",
    labelnames=("search_mode",),
)

like_change_total = Counter(
    "tm_like_change_total",
    "Likes created or removed.",
    labelnames=("action",),
)

upload_bytes_total = Counter(
    "tm_upload_bytes_total",
    "Total uploaded bytes.",
    labelnames=("mime", "outcome"),
)


def render_metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
