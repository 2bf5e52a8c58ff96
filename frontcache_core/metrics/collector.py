"""FrontCache Metrics Collector - Hit/Miss Telemetry.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter, deque
from dataclasses import asdict, dataclass
from typing import Any, Callable, Deque, Dict, List

logger = logging.getLogger(__name__)

COUNTERS = (
    "requests",
    "hits",
    "misses",
    "sets",
    "deletes",
    "evictions",
    "expirations",
    "network_failures",
    "fallbacks",
)


@dataclass
class CacheMetrics:
    """Counter snapshot.

    Attributes:
        requests: Lookups issued
        hits: Lookups answered from cache
        misses: Lookups not answered from cache
        sets: Stores
        deletes: Explicit removals
        evictions: Capacity or memory evictions
        expirations: TTL removals
        network_failures: Fetches that raised
        fallbacks: Responses served from cache after a network failure
        latency_avg_ms: Average fetch latency
        latency_p99_ms: P99 fetch latency
    """

    requests: int = 0
    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    evictions: int = 0
    expirations: int = 0
    network_failures: int = 0
    fallbacks: int = 0
    latency_avg_ms: float = 0.0
    latency_p99_ms: float = 0.0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate."""
        return self.hits / self.requests if self.requests > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["hit_rate"] = self.hit_rate
        return data


class MetricsCollector:
    """Collects cache counters and fetch latencies.

    Both the object cache and the resource cache feed one of these.
    Counters only grow until ``reset()``; the hit rate and latency
    figures are derived on read.

    Example:
        collector = MetricsCollector()
        with Timer(collector):
            response = await client.send(request)

        print(f"Hit rate: {collector.get_metrics().hit_rate:.2%}")
    """

    def __init__(self, latency_samples: int = 10000):
        """Initialize collector.

        Args:
            latency_samples: Latency samples kept for percentiles
        """
        self._counts: Counter = Counter()
        self._latencies: Deque[float] = deque(maxlen=latency_samples)
        self._lock = threading.Lock()
        self._exporters: List[Callable[[CacheMetrics], None]] = []

    def _incr(self, *names: str) -> None:
        with self._lock:
            self._counts.update(names)

    def record_hit(self) -> None:
        self._incr("requests", "hits")

    def record_miss(self) -> None:
        self._incr("requests", "misses")

    def record_set(self) -> None:
        self._incr("sets")

    def record_delete(self) -> None:
        self._incr("deletes")

    def record_eviction(self) -> None:
        self._incr("evictions")

    def record_expiration(self) -> None:
        self._incr("expirations")

    def record_network_failure(self) -> None:
        self._incr("network_failures")

    def record_fallback(self) -> None:
        self._incr("fallbacks")

    def record_latency(self, ms: float) -> None:
        """Record fetch latency.

        Args:
            ms: Latency in milliseconds
        """
        with self._lock:
            self._latencies.append(ms)

    def get_metrics(self) -> CacheMetrics:
        """Take a consistent snapshot of all counters."""
        with self._lock:
            counts = {name: self._counts[name] for name in COUNTERS}
            samples = sorted(self._latencies)

        avg = sum(samples) / len(samples) if samples else 0.0
        p99 = samples[min(int(len(samples) * 0.99), len(samples) - 1)] if samples else 0.0
        return CacheMetrics(latency_avg_ms=avg, latency_p99_ms=p99, **counts)

    def reset(self) -> None:
        """Zero every counter and drop latency samples."""
        with self._lock:
            self._counts.clear()
            self._latencies.clear()

    def add_exporter(self, exporter: Callable[[CacheMetrics], None]) -> None:
        """Register a callback that receives snapshots from export()."""
        self._exporters.append(exporter)

    def export(self) -> None:
        """Push a snapshot to every exporter."""
        metrics = self.get_metrics()
        for exporter in self._exporters:
            try:
                exporter(metrics)
            except Exception as e:
                logger.error(f"Exporter error: {e}")

    def to_prometheus(self, prefix: str = "frontcache") -> str:
        """Render metrics in Prometheus text format.

        Args:
            prefix: Metric name prefix

        Returns:
            Prometheus exposition text
        """
        metrics = self.get_metrics()
        lines = []
        for name, kind, value, help_text in (
            ("requests_total", "counter", metrics.requests, "Total cache lookups"),
            ("hits_total", "counter", metrics.hits, "Total cache hits"),
            ("misses_total", "counter", metrics.misses, "Total cache misses"),
            ("evictions_total", "counter", metrics.evictions, "Total evictions"),
            ("network_failures_total", "counter", metrics.network_failures, "Failed fetches"),
            ("fallbacks_total", "counter", metrics.fallbacks, "Cached responses served offline"),
            ("hit_rate", "gauge", f"{metrics.hit_rate:.4f}", "Cache hit rate"),
            ("latency_p99_ms", "gauge", f"{metrics.latency_p99_ms:.2f}", "P99 fetch latency"),
        ):
            lines.append(f"# HELP {prefix}_{name} {help_text}")
            lines.append(f"# TYPE {prefix}_{name} {kind}")
            lines.append(f"{prefix}_{name} {value}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        metrics = self.get_metrics()
        return f"MetricsCollector(hits={metrics.hits}, hit_rate={metrics.hit_rate:.2%})"


class Timer:
    """Records the duration of a block as fetch latency."""

    def __init__(self, collector: MetricsCollector):
        self._collector = collector
        self._start = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._collector.record_latency((time.perf_counter() - self._start) * 1000)


__all__ = ["MetricsCollector", "CacheMetrics", "Timer"]
