"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Allocation metrics
allocation_attempts = Counter(
    'allocation_attempts_total',
    'Allocation batch attempts',
    ['status']  # success, conflict, error
)

tickets_assigned = Counter(
    'tickets_assigned_total',
    'Game tickets assigned to members'
)

tickets_released = Counter(
    'tickets_released_total',
    'Game tickets returned to available',
    ['reason']  # revoke, release, withdraw
)

# Inventory metrics
tickets_generated = Counter(
    'tickets_generated_total',
    'Game tickets created by backfill',
    ['trigger']  # seat, games, backfill
)

# Request ledger metrics
request_operations = Counter(
    'ticket_request_operations_total',
    'Ticket request ledger operations',
    ['operation', 'result']  # create/update/withdraw/decline, ok/rejected
)

# Schedule ingestion
schedule_ingest_latency = Histogram(
    'schedule_ingest_latency_seconds',
    'Schedule ingestion latency (upsert + backfill)',
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Render the default registry in the Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def record_allocation_attempt(status: str):
    """Record allocation batch. Status: success, conflict, error"""
    allocation_attempts.labels(status=status).inc()


def record_tickets_generated(trigger: str, count: int):
    if count:
        tickets_generated.labels(trigger=trigger).inc(count)


def record_tickets_released(reason: str, count: int):
    if count:
        tickets_released.labels(reason=reason).inc(count)


def record_request_operation(operation: str, ok: bool = True):
    request_operations.labels(operation=operation, result="ok" if ok else "rejected").inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
