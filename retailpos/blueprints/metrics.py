"""
HTTP metrics for the POS.

Traffic is recorded per Flask endpoint. /metrics is unauthenticated: keep it
behind the internal network.
"""
import time

from flask import Blueprint, Response, request, g
from prometheus_client import Counter, Histogram, Gauge, CONTENT_TYPE_LATEST, generate_latest

from retailpos.metrics import registry, register_in

metrics_bp = Blueprint('metrics', __name__)

REQUEST_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)

http_requests_total = Counter(
    'pos_http_requests_total',
    'HTTP requests handled, by endpoint and status',
    ['method', 'endpoint', 'http_status'],
    registry=register_in
)

http_request_duration_seconds = Histogram(
    'pos_http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    buckets=REQUEST_LATENCY_BUCKETS,
    registry=register_in
)

http_requests_in_flight = Gauge(
    'pos_http_requests_in_flight',
    'HTTP requests currently being served',
    registry=register_in
)


def setup_metrics_instrumentation(app):
    """Time every request and count it by endpoint and status code."""

    @app.before_request
    def start_request_timer():
        g._metrics_started_at = time.perf_counter()
        http_requests_in_flight.inc()

    @app.after_request
    def record_request(response):
        started_at = g.get('_metrics_started_at')
        if started_at is not None:
            endpoint = request.endpoint or 'unknown'
            http_request_duration_seconds.labels(
                method=request.method, endpoint=endpoint
            ).observe(time.perf_counter() - started_at)
            http_requests_total.labels(
                method=request.method, endpoint=endpoint, http_status=response.status_code
            ).inc()
        return response

    @app.teardown_request
    def finish_request(exception=None):
        # Runs even when a handler raised, so the gauge cannot drift upwards
        if g.pop('_metrics_started_at', None) is not None:
            http_requests_in_flight.dec()


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus text exposition of every registered metric."""
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
