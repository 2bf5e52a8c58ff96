"""FrontCache LRU Policy - Least Recently Used Eviction.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from frontcache_core.eviction.policy import EvictionPolicy

if TYPE_CHECKING:
    from frontcache_core.cache.entry import CacheEntry


class LRUPolicy(EvictionPolicy):
    """Least Recently Used eviction policy.

    Evicts the entry whose last access is the oldest. Used by the cache
    when an insert would push it past its entry capacity.

    Example:
        policy = LRUPolicy()
        victim = policy.choose_eviction(cache_entries, now)
    """

    name = "lru"

    def score(self, entry: "CacheEntry", now: float) -> float:
        """Score by last access time (older is lower).

        Args:
            entry: Candidate entry
            now: Current time (unused)

        Returns:
            Last access timestamp
        """
        return entry.last_accessed_at


__all__ = ["LRUPolicy"]
