"""Prometheus metrics definitions for the JSON layout."""

from prometheus_client import Counter, Histogram

LINES_RENDERED_TOTAL = Counter(
    "jsonlayout_lines_rendered_total",
    "Total log lines rendered",
)

PROPERTY_RENDER_FAILURES_TOTAL = Counter(
    "jsonlayout_property_render_failures_total",
    "Property templates that raised during rendering",
    ["fault"],            # exception class name
)

RENDER_DURATION = Histogram(
    "jsonlayout_render_duration_seconds",
    "Time to render one log line",
    buckets=[0.00001, 0.00005, 0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05],
)
