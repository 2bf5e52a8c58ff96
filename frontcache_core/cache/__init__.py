"""Cache module - Keyed object cache.

This module provides the object cache, its entries and the TTL sweeper.
"""

from frontcache_core.cache.entry import CacheEntry
from frontcache_core.cache.sweeper import TTLSweeper
from frontcache_core.cache.cache import (
    Cache,
    CacheConfig,
    CacheStats,
    default_cache,
    set_default_cache,
    reset_default_cache,
)
from frontcache_core.cache.api_cache import APICache, APIRequestError

__all__ = [
    "CacheEntry",
    "TTLSweeper",
    "Cache",
    "CacheConfig",
    "CacheStats",
    "default_cache",
    "set_default_cache",
    "reset_default_cache",
    "APICache",
    "APIRequestError",
]
