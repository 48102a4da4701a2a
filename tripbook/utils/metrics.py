"""Prometheus metrics for import and sync operations."""

from prometheus_client import Counter, Histogram

trip_sync_total = Counter(
    "trip_sync_total",
    "Total trip sync attempts",
    ["outcome", "phase"],
)

trip_sync_latency_ms = Histogram(
    "trip_sync_latency_ms",
    "Trip sync latency in milliseconds",
    ["outcome"],
    buckets=[50, 100, 250, 500, 1000, 2000, 5000, 10000, 30000],
)

trip_import_total = Counter(
    "trip_import_total",
    "Total trip import/refresh attempts",
    ["operation", "outcome"],
)

evidence_uploads_total = Counter(
    "evidence_uploads_total",
    "Total evidence files uploaded during sync",
)


class PrometheusTripMetrics:
    """Prometheus-based trip metrics implementation."""

    def record_sync(self, outcome: str, phase: str, latency_ms: float) -> None:
        """Record a sync attempt."""
        trip_sync_total.labels(outcome=outcome, phase=phase).inc()
        trip_sync_latency_ms.labels(outcome=outcome).observe(latency_ms)

    def record_import(self, operation: str, outcome: str) -> None:
        """Record an import or refresh attempt."""
        trip_import_total.labels(operation=operation, outcome=outcome).inc()

    def inc_uploads(self, count: int) -> None:
        """Count uploaded evidence files."""
        evidence_uploads_total.inc(count)
