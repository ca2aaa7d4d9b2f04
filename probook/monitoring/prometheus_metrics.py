"""
Prometheus metrics for the booking platform.

Service timings come from ``@BaseService.measure_operation``; the domain
counters below track lifecycle transitions, notification deliveries and
post-commit side effects that failed and need reconciliation.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

OPERATION_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
DISPATCH_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)

operation_seconds = Histogram(
    "probook_service_operation_duration_seconds",
    "Duration of service operations",
    ["service", "operation"],
    buckets=OPERATION_BUCKETS,
    registry=REGISTRY,
)
operation_outcomes = Counter(
    "probook_service_operations_total",
    "Service operations by outcome; error_type is empty on success",
    ["service", "operation", "outcome", "error_type"],
    registry=REGISTRY,
)
booking_transitions = Counter(
    "probook_booking_transitions_total",
    "Booking status changes",
    ["from_status", "to_status", "forced"],
    registry=REGISTRY,
)
side_effect_failures = Counter(
    "probook_side_effect_failures_total",
    "Post-commit steps (capture, earnings, notification) that failed and were contained",
    ["step"],
    registry=REGISTRY,
)
notification_deliveries = Counter(
    "probook_notification_deliveries_total",
    "Notification delivery attempts",
    ["channel", "status"],
    registry=REGISTRY,
)
notification_dispatch_seconds = Histogram(
    "probook_notification_dispatch_seconds",
    "Time spent inside a channel provider's send",
    ["channel"],
    buckets=DISPATCH_BUCKETS,
    registry=REGISTRY,
)
audit_writes = Counter(
    "probook_audit_writes_total",
    "Audit rows written",
    ["resource_type", "action"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin recording facade so call sites never touch label plumbing."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        operation_seconds.labels(service, operation).observe(duration)
        operation_outcomes.labels(service, operation, status, error_type or "").inc()

    @staticmethod
    def record_booking_transition(from_status: str, to_status: str, forced: bool = False) -> None:
        booking_transitions.labels(from_status, to_status, "true" if forced else "false").inc()

    @staticmethod
    def record_side_effect_failure(step: str) -> None:
        side_effect_failures.labels(step).inc()

    @staticmethod
    def record_notification_delivery(channel: str, status: str, duration: float) -> None:
        notification_deliveries.labels(channel, status).inc()
        notification_dispatch_seconds.labels(channel).observe(max(duration, 0.0))

    @staticmethod
    def record_audit_write(resource_type: str, action: str) -> None:
        audit_writes.labels(resource_type, action).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Exposition-format dump of ``REGISTRY``."""
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
