"""Prometheus metrics for the audit trail.

Counts flushed records and failures per storage backend, and tracks how long
flushes take.
"""

from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram, start_http_server

if TYPE_CHECKING:
    from chronicle.config.models.observability import MetricsConfig

RECORDS_FLUSHED = Counter(
    "chronicle_audit_records_flushed_total",
    "Total number of audit records handed to storage",
    labelnames=["backend"],
)

FLUSH_ERRORS = Counter(
    "chronicle_audit_flush_errors_total",
    "Total number of failed audit flushes",
    labelnames=["backend", "error_type"],
)

FLUSH_LATENCY = Histogram(
    "chronicle_audit_flush_latency_seconds",
    "Audit flush latency in seconds",
    labelnames=["backend"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

RECORDS_WRITTEN = Counter(
    "chronicle_audit_records_written_total",
    "Total number of audit records persisted by a storage backend",
    labelnames=["backend"],
)

INDEX_COMPACTIONS = Counter(
    "chronicle_audit_index_compactions_total",
    "Number of times the cache index dropped expired record ids",
    labelnames=["prefix"],
)


def setup_metrics(config: "MetricsConfig") -> bool:
    """Expose metrics over HTTP when enabled.

    Returns:
        True if the exporter was started
    """
    if not config.enabled:
        return False
    start_http_server(config.port)
    return True
