"""FrontCache - Client-Side Caching for Web Applications.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

A client-side caching toolkit with:
- Keyed object cache with TTL expiry and hit-rate telemetry
- LRU capacity eviction and hybrid memory-budget eviction
- Durable snapshots (memory, file, Redis)
- Request-level caching with pluggable strategies
- Versioned response namespaces purged on activation
- Offline write queue replayed on reconnect

Architecture:
    ┌─────────────────────────────────────────────────────────────────┐
    │                        FrontCache System                        │
    ├─────────────────────────────────────────────────────────────────┤
    │  ┌─────────────┐  ┌─────────────┐  ┌─────────────┐             │
    │  │   Cache     │  │  APICache   │  │  Sweeper    │   OBJECT    │
    │  │  get/set    │  │ cached_fetch│  │  TTL purge  │   CACHE     │
    │  └──────┬──────┘  └──────┬──────┘  └──────┬──────┘             │
    │         │                │                │                     │
    │  ┌──────┴────────────────┴────────────────┴──────┐             │
    │  │              Eviction Policies                 │   EVICTION  │
    │  │        ┌─────┐            ┌────────┐          │   LAYER     │
    │  │        │ LRU │            │ Hybrid │          │             │
    │  │        └─────┘            └────────┘          │             │
    │  └──────────────────────┬────────────────────────┘             │
    │                         │                                       │
    │  ┌──────────────────────┴────────────────────────┐             │
    │  │            Persistence Adapters                │   STORAGE   │
    │  │   ┌────────┐  ┌────────┐  ┌────────┐         │   LAYER     │
    │  │   │ Memory │  │  File  │  │ Redis  │         │             │
    │  │   └────────┘  └────────┘  └────────┘         │             │
    │  └──────────────────────┬────────────────────────┘             │
    │                         │                                       │
    │  ┌──────────────────────┴────────────────────────┐             │
    │  │              Resource Cache                    │   RESOURCE  │
    │  │  ┌──────────┐ ┌──────────┐ ┌───────────────┐  │   LAYER     │
    │  │  │Dispatcher│ │Strategies│ │ Offline Queue │  │             │
    │  │  └──────────┘ └──────────┘ └───────────────┘  │             │
    │  └──────────────────────────────────────────────┘             │
    └─────────────────────────────────────────────────────────────────┘

Example Usage:
    from frontcache_core import Cache, CacheConfig

    # Object cache with persistence
    cache = Cache(CacheConfig(name="memories", ttl=60, persistence_enabled=True))
    cache.set("memory:1", {"title": "Trip"})
    memory = cache.get("memory:1")

    # JSON API responses
    from frontcache_core import APICache

    api = APICache()
    data = await api.cached_fetch("https://api.example.com/memories", client)

    # Request-level caching
    from frontcache_core import ResourceCacheWorker, WorkerConfig

    worker = ResourceCacheWorker(WorkerConfig(version="v2", origin="https://memory.example"))
    await worker.install()
    await worker.activate()
    response = await worker.handle_fetch(request)
"""

__version__ = "1.0.0"
__author__ = "BlackRoad OS"

from frontcache_core.cache.entry import CacheEntry
from frontcache_core.cache.cache import (
    Cache,
    CacheConfig,
    CacheStats,
    default_cache,
    set_default_cache,
    reset_default_cache,
)
from frontcache_core.cache.api_cache import APICache, APIRequestError
from frontcache_core.cache.sweeper import TTLSweeper
from frontcache_core.store.backend import (
    PersistenceAdapter,
    PersistenceHandle,
    StorageConfig,
    StorageStats,
)
from frontcache_core.store.memory import MemoryAdapter
from frontcache_core.store.file import FileAdapter
from frontcache_core.store.redis import RedisAdapter, RedisConfig
from frontcache_core.eviction.policy import (
    EvictionPolicy,
    EvictionStats,
)
from frontcache_core.eviction.lru import LRUPolicy
from frontcache_core.eviction.hybrid import HybridPolicy
from frontcache_core.protocol.serializer import (
    Serializer,
    JSONSerializer,
    PickleSerializer,
    MsgPackSerializer,
)
from frontcache_core.metrics.collector import (
    MetricsCollector,
    CacheMetrics,
)
from frontcache_core.resource.strategy import Strategy
from frontcache_core.resource.dispatcher import Dispatcher, ResourcePattern
from frontcache_core.resource.namespace import CacheStorage, ResponseNamespace
from frontcache_core.resource.offline_queue import (
    OfflineActionQueue,
    PendingAction,
    ReplayPolicy,
    ReplayResult,
)
from frontcache_core.resource.worker import (
    ResourceCacheWorker,
    WorkerConfig,
    WorkerState,
)

__all__ = [
    # Cache
    "Cache",
    "CacheConfig",
    "CacheStats",
    "CacheEntry",
    "TTLSweeper",
    "APICache",
    "APIRequestError",
    "default_cache",
    "set_default_cache",
    "reset_default_cache",
    # Storage
    "PersistenceAdapter",
    "PersistenceHandle",
    "StorageConfig",
    "StorageStats",
    "MemoryAdapter",
    "FileAdapter",
    "RedisAdapter",
    "RedisConfig",
    # Eviction
    "EvictionPolicy",
    "EvictionStats",
    "LRUPolicy",
    "HybridPolicy",
    # Protocol
    "Serializer",
    "JSONSerializer",
    "PickleSerializer",
    "MsgPackSerializer",
    # Metrics
    "MetricsCollector",
    "CacheMetrics",
    # Resource
    "Strategy",
    "Dispatcher",
    "ResourcePattern",
    "CacheStorage",
    "ResponseNamespace",
    "OfflineActionQueue",
    "PendingAction",
    "ReplayPolicy",
    "ReplayResult",
    "ResourceCacheWorker",
    "WorkerConfig",
    "WorkerState",
]
