"""Resource module - Request-level caching with strategies and offline replay."""

from frontcache_core.resource.response import StoredResponse, request_key, is_navigation
from frontcache_core.resource.namespace import ResponseNamespace, CacheStorage
from frontcache_core.resource.tasks import BackgroundTasks
from frontcache_core.resource.strategy import (
    Strategy,
    StrategyContext,
    EXECUTORS,
    get_executor,
)
from frontcache_core.resource.dispatcher import (
    Dispatcher,
    ResourcePattern,
    Route,
    DEFAULT_PATTERNS,
    CACHE_MISS_STATUS,
)
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
    ClientRegistry,
)

__all__ = [
    "StoredResponse",
    "request_key",
    "is_navigation",
    "ResponseNamespace",
    "CacheStorage",
    "BackgroundTasks",
    "Strategy",
    "StrategyContext",
    "EXECUTORS",
    "get_executor",
    "Dispatcher",
    "ResourcePattern",
    "Route",
    "DEFAULT_PATTERNS",
    "CACHE_MISS_STATUS",
    "OfflineActionQueue",
    "PendingAction",
    "ReplayPolicy",
    "ReplayResult",
    "ResourceCacheWorker",
    "WorkerConfig",
    "WorkerState",
    "ClientRegistry",
]
