"""
Prometheus metrics endpoint.

Exposes request and batch code metrics for monitoring.
"""
from fastapi import APIRouter, Request, Response
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter(tags=["monitoring"])

# ============================================
# HTTP Request Metrics
# ============================================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# ============================================
# Webhook Metrics
# ============================================

webhook_requests_total = Counter(
    'webhook_requests_total',
    'Total number of webhook requests received',
    ['method', 'status', 'endpoint']
)

webhook_events_total = Counter(
    'webhook_events_total',
    'Webhook processing runs by outcome',
    ['status']
)

# ============================================
# Batch Code Metrics
# ============================================

code_generation_duration = Histogram(
    'code_generation_duration_seconds',
    'Time spent generating and assigning a batch code',
    ['type', 'success'],
    buckets=[0.1, 0.5, 1, 2, 5, 10]
)

code_generation_errors_total = Counter(
    'code_generation_errors_total',
    'Total number of code generation errors',
    ['error_type']
)

active_code_generation_jobs = Gauge(
    'active_code_generation_jobs',
    'Number of webhook processing runs in flight'
)

reconcile_required_total = Counter(
    'batch_code_reconcile_required_total',
    'Codes written to Monday.com that could not be recorded locally'
)


# ============================================
# Metrics Helper Functions
# ============================================

UNMATCHED_ROUTE = "unmatched"


def route_template(request: Request) -> str:
    """
    Path template of the route that handled the request.

    Labels use the template (``/api/monday/items/{item_id}``) so item ids
    and unknown paths do not each create a new series.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


def track_request(method: str, endpoint: str, status: int, duration_seconds: float):
    """
    Record HTTP request metrics.

    Called by the logging middleware after each request.
    """
    http_requests_total.labels(
        method=method,
        endpoint=endpoint,
        status=status
    ).inc()

    http_request_duration.labels(
        method=method,
        endpoint=endpoint
    ).observe(duration_seconds)


def track_webhook_request(method: str, status: int, endpoint: str):
    """Record an inbound webhook request by response status."""
    webhook_requests_total.labels(method=method, status=str(status), endpoint=endpoint).inc()


def track_webhook_event(status: str):
    """Record a webhook processing outcome (success, error, skipped)."""
    webhook_events_total.labels(status=status).inc()


def track_code_generation(code_type: str, success: bool, duration_seconds: float):
    """Record how long a code assignment took."""
    code_generation_duration.labels(
        type=code_type,
        success=str(success).lower()
    ).observe(duration_seconds)


def track_error(error_type: str):
    """Record a processing error by kind."""
    code_generation_errors_total.labels(error_type=error_type).inc()


def increment_active_jobs():
    active_code_generation_jobs.inc()


def decrement_active_jobs():
    active_code_generation_jobs.dec()


def track_reconcile_required():
    reconcile_required_total.inc()


# ============================================
# Prometheus Endpoint
# ============================================

@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns all registered metrics in Prometheus format.
    """
    return Response(
        generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
        headers={"Cache-Control": "no-store, max-age=0"}
    )
