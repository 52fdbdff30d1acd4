"""
Prometheus collectors for the output engine.
Import this module (or loganalytics_output) at app startup to register them.
"""

from prometheus_client import Counter, Histogram


# --- Delivery Metrics ---

DELIVERY_CHUNKS_TOTAL = Counter(
    "loganalytics_delivery_chunks_total",
    "Total number of chunks posted to the Data Collector API",
    ["stream", "outcome"],
)

DELIVERY_DOCUMENTS_TOTAL = Counter(
    "loganalytics_delivery_documents_total",
    "Total number of documents posted to the Data Collector API",
    ["stream", "outcome"],
)

DELIVERY_LATENCY_MS = Histogram(
    "loganalytics_delivery_latency_ms",
    "Chunk post latency in milliseconds",
    ["stream"],
    buckets=[5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000],
)

# --- Buffer Metrics ---

FLUSH_TOTAL = Counter(
    "loganalytics_flush_total",
    "Total number of batch flushes handed to the dispatcher",
    ["trigger"],
)

FLUSH_SUPPRESSED_TOTAL = Counter(
    "loganalytics_flush_suppressed_total",
    "Flushes skipped because one was already in flight for the same key",
)

DOCUMENTS_DROPPED_TOTAL = Counter(
    "loganalytics_documents_dropped_total",
    "Records dropped before buffering",
    ["reason"],
)


class MetricsRegistry:
    """Centralized access to the output's metrics."""

    delivery_chunks_total = DELIVERY_CHUNKS_TOTAL
    delivery_documents_total = DELIVERY_DOCUMENTS_TOTAL
    delivery_latency_ms = DELIVERY_LATENCY_MS
    flush_total = FLUSH_TOTAL
    flush_suppressed_total = FLUSH_SUPPRESSED_TOTAL
    documents_dropped_total = DOCUMENTS_DROPPED_TOTAL


# Singleton instance
metrics_registry = MetricsRegistry()
