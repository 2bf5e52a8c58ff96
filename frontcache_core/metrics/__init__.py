"""Metrics module - Cache telemetry."""

from frontcache_core.metrics.collector import (
    MetricsCollector,
    CacheMetrics,
    Timer,
)

__all__ = [
    "MetricsCollector",
    "CacheMetrics",
    "Timer",
]
