from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

# ---------------------------------------------------------------------------
# HTTP request metrics
# ---------------------------------------------------------------------------
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests to the API",
    ["method", "path", "status"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "Duration of HTTP requests in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10],
)

# ---------------------------------------------------------------------------
# Webhook ingestion
# ---------------------------------------------------------------------------
webhook_events_total = Counter(
    "webhook_events_total",
    "Change notifications received on /api/webhook",
    ["status"],
)
watchers_created_total = Counter(
    "watchers_created_total",
    "Watchers created from first-seen webhook URLs",
)

# ---------------------------------------------------------------------------
# changedetection.io API calls
# ---------------------------------------------------------------------------
upstream_requests_total = Counter(
    "upstream_requests_total",
    "Requests sent to the changedetection.io API",
    ["operation", "status"],
)
upstream_request_duration_seconds = Histogram(
    "upstream_request_duration_seconds",
    "Duration of changedetection.io API requests in seconds",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
)
preview_failures_total = Counter(
    "preview_failures_total",
    "Snapshot fetches for list previews that failed and were dropped",
)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
