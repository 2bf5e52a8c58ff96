"""Store module - Durable persistence adapters."""

from frontcache_core.store.backend import (
    PersistenceAdapter,
    PersistenceHandle,
    StorageConfig,
    StorageStats,
)
from frontcache_core.store.memory import MemoryAdapter
from frontcache_core.store.file import FileAdapter
from frontcache_core.store.redis import RedisAdapter, RedisConfig

__all__ = [
    "PersistenceAdapter",
    "PersistenceHandle",
    "StorageConfig",
    "StorageStats",
    "MemoryAdapter",
    "FileAdapter",
    "RedisAdapter",
    "RedisConfig",
]
