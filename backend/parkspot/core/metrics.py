"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking lifecycle
booking_attempts = Counter(
    'parking_booking_attempts_total',
    'Total spot booking attempts',
    ['status']  # created, unavailable, error
)

booking_transitions = Counter(
    'parking_booking_transitions_total',
    'Bookings leaving the active state',
    ['status']  # completed, cancelled
)

booking_latency = Histogram(
    'parking_booking_latency_seconds',
    'Spot reservation latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

reservation_retries = Counter(
    'parking_reservation_retries_total',
    'Spot reservation retries caused by version conflicts'
)

# Search
nearby_searches = Counter(
    'parking_nearby_searches_total',
    'Nearby spot searches'
)

# Cache
cache_operations = Counter(
    'parking_cache_operations_total',
    'Listing cache operations',
    ['operation', 'result']  # get, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(status: str):
    """Record booking attempt. Status: created, unavailable, error"""
    booking_attempts.labels(status=status).inc()


def record_booking_transition(status: str):
    booking_transitions.labels(status=status).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
