from .registry import (
    DELIVERY_CHUNKS_TOTAL,
    DELIVERY_DOCUMENTS_TOTAL,
    DELIVERY_LATENCY_MS,
    FLUSH_TOTAL,
    FLUSH_SUPPRESSED_TOTAL,
    DOCUMENTS_DROPPED_TOTAL,
    MetricsRegistry,
    metrics_registry,
)

__all__ = [
    "DELIVERY_CHUNKS_TOTAL",
    "DELIVERY_DOCUMENTS_TOTAL",
    "DELIVERY_LATENCY_MS",
    "FLUSH_TOTAL",
    "FLUSH_SUPPRESSED_TOTAL",
    "DOCUMENTS_DROPPED_TOTAL",
    "MetricsRegistry",
    "metrics_registry",
]
