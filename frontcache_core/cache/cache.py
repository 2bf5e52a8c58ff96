"""FrontCache Cache - Keyed Object Cache with TTL, Eviction and Persistence.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from frontcache_core.cache.entry import CacheEntry
from frontcache_core.cache.sweeper import TTLSweeper
from frontcache_core.eviction.hybrid import HybridPolicy
from frontcache_core.eviction.lru import LRUPolicy
from frontcache_core.metrics.collector import MetricsCollector
from frontcache_core.store.backend import PersistenceAdapter, PersistenceHandle
from frontcache_core.store.memory import MemoryAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheConfig:
    """Cache configuration.

    Attributes:
        name: Cache name
        max_entries: Maximum entries before LRU eviction
        ttl: Entry time to live in seconds
        max_memory_bytes: Memory budget before hybrid eviction
        persistence_enabled: Save snapshots to a persistence adapter
        persistence_key: Record key of the snapshot
        persistence_store: Store name opened on the adapter
        sweep_interval: Seconds between TTL sweeps (default ttl / 2)
        on_evict: Called with (key, value) for every eviction and expiry sweep
        on_error: Called with the exception for recoverable failures
    """

    name: str = "cache"
    max_entries: int = 100
    ttl: float = 300.0
    max_memory_bytes: int = 10 * 1024 * 1024
    persistence_enabled: bool = False
    persistence_key: str = "app-cache"
    persistence_store: str = "frontcache"
    sweep_interval: Optional[float] = None
    on_evict: Optional[Callable[[str, Any], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None

    def __post_init__(self):
        if self.max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if self.ttl <= 0:
            raise ValueError("ttl must be positive")
        if self.max_memory_bytes < 0:
            raise ValueError("max_memory_bytes must not be negative")
        if self.sweep_interval is not None and self.sweep_interval <= 0:
            raise ValueError("sweep_interval must be positive")

    @property
    def effective_sweep_interval(self) -> float:
        """Get the sweep interval, defaulting to half the TTL."""
        if self.sweep_interval is not None:
            return self.sweep_interval
        return self.ttl / 2


@dataclass
class CacheStats:
    """Cache statistics.

    Attributes:
        size: Current entry count
        memory_usage_bytes: Sum of entry sizes
        total_requests: Number of get calls
        total_hits: Gets answered from cache
        total_misses: Gets not answered from cache
        evictions: Capacity and memory evictions
        expirations: Entries removed for age
    """

    size: int = 0
    memory_usage_bytes: int = 0
    total_requests: int = 0
    total_hits: int = 0
    total_misses: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate."""
        if self.total_requests == 0:
            return 0.0
        return self.total_hits / self.total_requests

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "size": self.size,
            "memory_usage_bytes": self.memory_usage_bytes,
            "total_requests": self.total_requests,
            "total_hits": self.total_hits,
            "total_misses": self.total_misses,
            "hit_rate": self.hit_rate,
            "evictions": self.evictions,
            "expirations": self.expirations,
        }


class Cache:
    """Keyed object cache for API-derived data.

    Features:
    - TTL expiry checked on every read, plus a background sweeper
    - LRU eviction at entry capacity
    - Recency/frequency hybrid eviction over a memory budget
    - Best-effort snapshot persistence through a PersistenceAdapter
    - Hit/miss statistics
    - Thread-safe operations

    Recoverable failures (persistence, callbacks) are reported to
    ``config.on_error`` and never raised from cache operations.

    Example:
        cache = Cache(CacheConfig(max_entries=200, ttl=300))

        cache.set("memories:42", payload)
        payload = cache.get("memories:42")

        with Cache(config) as cache:  # runs the TTL sweeper
            ...
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        adapter: Optional[PersistenceAdapter] = None,
        clock: Callable[[], float] = time.time,
        collector: Optional[MetricsCollector] = None,
    ):
        """Initialize cache.

        Args:
            config: Cache configuration
            adapter: Persistence adapter (in-memory if persistence is
                enabled and none is given)
            clock: Time source returning epoch seconds
            collector: Metrics collector to record into
        """
        self.config = config or CacheConfig()
        self._clock = clock
        self._metrics = collector or MetricsCollector()

        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

        self._lru = LRUPolicy()
        self._hybrid = HybridPolicy()
        self._sweeper = TTLSweeper(
            self.cleanup_expired,
            interval=self.config.effective_sweep_interval,
            name=self.config.name,
        )

        self._adapter: Optional[PersistenceAdapter] = None
        self._handle: Optional[PersistenceHandle] = None
        if self.config.persistence_enabled:
            self._adapter = adapter or MemoryAdapter()
            self._open_persistence()

    def start(self) -> None:
        """Start the TTL sweeper."""
        self._sweeper.start()

    def stop(self) -> None:
        """Stop the TTL sweeper."""
        self._sweeper.stop()

    def get(self, key: str, default: Any = None) -> Any:
        """Get value from cache.

        Args:
            key: Cache key
            default: Returned when the key is absent or expired

        Returns:
            Cached value or default
        """
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)

            if entry is None:
                self._metrics.record_miss()
                return default

            if entry.is_expired(self.config.ttl, now):
                del self._entries[key]
                self._metrics.record_expiration()
                self._metrics.record_miss()
                return default

            entry.touch(now)
            self._metrics.record_hit()
            return entry.value

    def set(self, key: str, value: Any) -> bool:
        """Set value in cache.

        Evicts the least recently used entry when a new key would exceed
        ``max_entries``, then evicts by hybrid score until the memory
        budget holds. Persists a snapshot afterwards if enabled.

        Args:
            key: Cache key
            value: Value to cache

        Returns:
            True if stored, False if an unexpected error was reported
        """
        try:
            with self._lock:
                now = self._clock()
                entry = CacheEntry(key=key, value=value, created_at=now)

                is_new = self._entries.pop(key, None) is None
                if is_new and len(self._entries) >= self.config.max_entries:
                    self._evict_lru(now)

                self._entries[key] = entry
                self._metrics.record_set()
                self._evict_by_memory(now)
                self._save()
        except Exception as e:
            self._report_error(e)
            return False
        return True

    def has(self, key: str) -> bool:
        """Check if key is present and fresh.

        Leaves statistics untouched. Expired entries are removed.

        Args:
            key: Cache key

        Returns:
            True if present and within TTL
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False

            if entry.is_expired(self.config.ttl, self._clock()):
                del self._entries[key]
                return False

            return True

    def delete(self, key: str) -> bool:
        """Delete key from cache.

        Args:
            key: Cache key

        Returns:
            True if deleted, False if absent
        """
        with self._lock:
            if self._entries.pop(key, None) is None:
                return False
            self._metrics.record_delete()
            self._save()
        return True

    def clear(self) -> int:
        """Remove all entries, reset statistics, drop the snapshot.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._metrics.reset()

            if self._adapter is not None:
                try:
                    self._adapter.delete(self._handle, self.config.persistence_key)
                except Exception as e:
                    self._report_error(e)

        return count

    def keys(self) -> List[str]:
        """Get all stored keys, including not yet swept expired ones."""
        with self._lock:
            return list(self._entries.keys())

    def mget(self, keys: Iterable[str]) -> List[Any]:
        """Get multiple values.

        Each key is looked up independently; a failing key yields None.

        Args:
            keys: Keys to look up

        Returns:
            Values (or None) in input order
        """
        results = []
        for key in keys:
            try:
                results.append(self.get(key))
            except Exception as e:
                self._report_error(e)
                results.append(None)
        return results

    def mset(self, pairs: Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]) -> int:
        """Set multiple values.

        Args:
            pairs: Mapping or iterable of (key, value)

        Returns:
            Number of values stored
        """
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        count = 0
        for key, value in items:
            if self.set(key, value):
                count += 1
        return count

    def cleanup_expired(self) -> int:
        """Remove every expired entry.

        Invokes ``on_evict`` for each removal. Run periodically by the
        TTL sweeper.

        Returns:
            Number removed
        """
        with self._lock:
            now = self._clock()
            expired = [
                key for key, entry in self._entries.items()
                if entry.is_expired(self.config.ttl, now)
            ]
            for key in expired:
                entry = self._entries.pop(key)
                self._metrics.record_expiration()
                self._notify_evict(key, entry.value)
        return len(expired)

    def evict_lru(self) -> bool:
        """Evict the least recently used entry.

        Returns:
            True if an entry was evicted
        """
        with self._lock:
            return self._evict_lru(self._clock())

    def evict_by_memory(self) -> int:
        """Evict by hybrid score until within the memory budget.

        Returns:
            Number evicted
        """
        with self._lock:
            return self._evict_by_memory(self._clock())

    def memory_usage(self) -> int:
        """Get total size of stored entries in bytes."""
        with self._lock:
            return sum(e.size_bytes for e in self._entries.values())

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Get full cache entry without touching it.

        Args:
            key: Cache key

        Returns:
            CacheEntry or None
        """
        with self._lock:
            return self._entries.get(key)

    def get_stats(self) -> CacheStats:
        """Get cache statistics.

        Size and memory are recomputed from the live entries.

        Returns:
            CacheStats instance
        """
        metrics = self._metrics.get_metrics()
        with self._lock:
            return CacheStats(
                size=len(self._entries),
                memory_usage_bytes=sum(e.size_bytes for e in self._entries.values()),
                total_requests=metrics.requests,
                total_hits=metrics.hits,
                total_misses=metrics.misses,
                evictions=metrics.evictions,
                expirations=metrics.expirations,
            )

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    def _evict_lru(self, now: float) -> bool:
        key = self._lru.choose_eviction(self._entries, now)
        if key is None:
            return False
        self._evict(key)
        return True

    def _evict_by_memory(self, now: float) -> int:
        budget = self.config.max_memory_bytes
        usage = sum(e.size_bytes for e in self._entries.values())
        if usage <= budget:
            return 0

        evicted = 0
        for key in self._hybrid.rank(self._entries, now):
            if usage <= budget:
                break
            usage -= self._entries[key].size_bytes
            self._evict(key)
            evicted += 1

        logger.debug(f"Cache {self.config.name} evicted {evicted} entries over memory budget")
        return evicted

    def _evict(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._metrics.record_eviction()
        self._notify_evict(key, entry.value)

    def _notify_evict(self, key: str, value: Any) -> None:
        if self.config.on_evict is None:
            return
        try:
            self.config.on_evict(key, value)
        except Exception as e:
            self._report_error(e)

    def _report_error(self, error: Exception) -> None:
        logger.error(f"Cache {self.config.name} error: {error}")
        if self.config.on_error is None:
            return
        try:
            self.config.on_error(error)
        except Exception as e:
            logger.error(f"Cache {self.config.name} on_error callback failed: {e}")

    def _save(self) -> None:
        # Call with self._lock held.
        if self._adapter is None:
            return
        snapshot = {key: entry.to_dict() for key, entry in self._entries.items()}
        try:
            self._adapter.put(self._handle, self.config.persistence_key, snapshot)
        except Exception as e:
            self._report_error(e)

    def _open_persistence(self) -> None:
        """Open the adapter and re-admit fresh entries from the snapshot."""
        try:
            self._handle = self._adapter.open(self.config.persistence_store)
            data = self._adapter.get(self._handle, self.config.persistence_key)
        except Exception as e:
            self._report_error(e)
            return

        if data is None:
            return
        if not isinstance(data, dict):
            self._report_error(ValueError(f"Corrupted snapshot for {self.config.persistence_key!r}"))
            return

        now = self._clock()
        restored = 0
        for key, raw in data.items():
            try:
                entry = CacheEntry.from_dict(raw)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed snapshot entry {key!r}: {e}")
                continue
            if not entry.is_expired(self.config.ttl, now):
                self._entries[key] = entry
                restored += 1

        logger.info(f"Cache {self.config.name} restored {restored} of {len(data)} entries")

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __enter__(self) -> "Cache":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def __repr__(self) -> str:
        return f"Cache(name={self.config.name!r}, entries={len(self._entries)})"


_default_cache: Optional[Cache] = None
_default_lock = threading.Lock()


def default_cache() -> Cache:
    """Get the process-wide convenience cache, creating it on first use."""
    global _default_cache
    with _default_lock:
        if _default_cache is None:
            _default_cache = Cache(CacheConfig(name="default"))
        return _default_cache


def set_default_cache(cache: Cache) -> None:
    """Replace the process-wide convenience cache.

    Args:
        cache: Cache to hand out from default_cache()
    """
    global _default_cache
    with _default_lock:
        _default_cache = cache


def reset_default_cache() -> None:
    """Stop and forget the process-wide convenience cache."""
    global _default_cache
    with _default_lock:
        if _default_cache is not None:
            _default_cache.stop()
        _default_cache = None


__all__ = [
    "Cache",
    "CacheConfig",
    "CacheStats",
    "default_cache",
    "set_default_cache",
    "reset_default_cache",
]
