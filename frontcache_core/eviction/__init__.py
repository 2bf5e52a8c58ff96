"""Eviction module - Cache eviction policies."""

from frontcache_core.eviction.policy import (
    EvictionPolicy,
    EvictionStats,
)
from frontcache_core.eviction.lru import LRUPolicy
from frontcache_core.eviction.hybrid import HybridPolicy

__all__ = [
    "EvictionPolicy",
    "EvictionStats",
    "LRUPolicy",
    "HybridPolicy",
]
