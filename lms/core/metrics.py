"""Prometheus metrics inventory.

Every metric the service exposes is defined here; other modules import the
one they need and update it where the event happens.  HTTP-level metrics are
fed by MetricsMiddleware; the sync metrics are fed by the webhook router and
the services.

Useful queries:
  rate(lms_webhooks_total{outcome="rejected"}[5m])   signature failures
  increase(lms_line_items_skipped_total[1h])          orders for unknown products
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# --- HTTP ---

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# --- Storefront sync ---

WEBHOOKS_RECEIVED = Counter(
    "lms_webhooks_total",
    "Webhook deliveries by topic and outcome",
    ["topic", "outcome"],  # outcome: processed|rejected|failed
)

ENROLLMENTS_CREATED = Counter(
    "lms_enrollments_created_total",
    "Enrollments created from order line items",
)

LINE_ITEMS_SKIPPED = Counter(
    "lms_line_items_skipped_total",
    "Order line items that did not produce an enrollment",
    ["reason"],  # no_product|no_course|duplicate
)

ENROLLMENTS_CANCELLED = Counter(
    "lms_enrollments_cancelled_total",
    "Enrollments cancelled by refunded or cancelled orders",
)

# --- Learning ---

COURSE_COMPLETIONS = Counter(
    "lms_course_completions_total",
    "Enrollments moved to completed by the progress tracker",
)
