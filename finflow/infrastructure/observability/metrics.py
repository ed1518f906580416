"""Prometheus metrics for entity writes, API errors and request latency"""

from prometheus_client import Counter, Histogram

# Entity write metrics
entity_write_counter = Counter(
    "finflow_entity_writes_total",
    "Owned records written",
    ["entity", "operation"],  # create | update | delete
)

payment_link_counter = Counter(
    "finflow_payment_links_total",
    "UPI payment links issued",
)

# Error metrics
api_error_counter = Counter(
    "finflow_api_errors_total",
    "Requests that ended in an error response",
    ["category"],  # authentication | validation | not_found | conflict | internal
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_write(entity: str, operation: str) -> None:
    """Count a successful write to an owned table"""
    entity_write_counter.labels(entity=entity, operation=operation).inc()
