"""
Prometheus metrics for the booking engine.

Service timings come from the @measure_operation decorator; booking and
ledger counters are recorded by the services at commit time.
"""

from threading import Lock
from time import monotonic
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry so tests and multiple app instances don't collide on the global one
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "rentals_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "rentals_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "rentals_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

bookings_created_total = Counter(
    "rentals_bookings_created_total",
    "Bookings committed, by pricing mode",
    ["pricing_mode"],
    registry=REGISTRY,
)

booking_conflicts_total = Counter(
    "rentals_booking_conflicts_total",
    "Booking attempts rejected because the slot was taken",
    ["source"],  # precheck | version | constraint | deadlock
    registry=REGISTRY,
)

booking_cancellations_total = Counter(
    "rentals_booking_cancellations_total",
    "Bookings canceled, by refund tier",
    ["tier"],  # full | partial | none
    registry=REGISTRY,
)

ledger_entries_total = Counter(
    "rentals_ledger_entries_total",
    "Credit ledger entries written",
    ["kind"],  # charge | refund | grant
    registry=REGISTRY,
)

audit_writes_total = Counter(
    "rentals_audit_writes_total",
    "Activity records written",
    ["entity_type", "action"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None
    _cache_ts: Optional[float] = None
    _cache_ttl_seconds: float = 1.0

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'create_booking')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_booking_created(pricing_mode: str) -> None:
        bookings_created_total.labels(pricing_mode=pricing_mode).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_booking_conflict(source: str) -> None:
        booking_conflicts_total.labels(source=source).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_booking_cancellation(tier: str) -> None:
        booking_cancellations_total.labels(tier=tier).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_ledger_entry(kind: str) -> None:
        ledger_entries_total.labels(kind=kind).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_audit_write(entity_type: str, action: str) -> None:
        audit_writes_total.labels(entity_type=entity_type, action=action).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format (cached briefly)."""
        now = monotonic()
        payload = PrometheusMetrics._cache_payload
        ts = PrometheusMetrics._cache_ts
        ttl = PrometheusMetrics._cache_ttl_seconds
        if payload is not None and ts is not None and (now - ts) <= ttl:
            return payload

        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_payload = cast(bytes, generate_latest(REGISTRY))
            PrometheusMetrics._cache_ts = monotonic()
            return PrometheusMetrics._cache_payload

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_ts = None
            PrometheusMetrics._cache_payload = None


# Singleton instance
prometheus_metrics = PrometheusMetrics()
