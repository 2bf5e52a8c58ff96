"""FrontCache Hybrid Policy - Frequency and Recency Eviction.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from frontcache_core.eviction.policy import EvictionPolicy

if TYPE_CHECKING:
    from frontcache_core.cache.entry import CacheEntry


class HybridPolicy(EvictionPolicy):
    """Least frequently and least recently used eviction policy.

    Each entry is scored as accesses per idle millisecond:

        score = access_count / (idle_ms + 1)

    An entry that is rarely read and has not been read for a long time
    scores lowest and is evicted first. Used when the cache exceeds its
    memory budget.

    Example:
        policy = HybridPolicy()
        for key in policy.rank(cache_entries, now):
            ...
    """

    name = "hybrid"

    def score(self, entry: "CacheEntry", now: float) -> float:
        """Score by access frequency over idle time.

        Args:
            entry: Candidate entry
            now: Current time in seconds

        Returns:
            Accesses per idle millisecond
        """
        idle_ms = max(0.0, (now - entry.last_accessed_at) * 1000.0)
        return entry.access_count / (idle_ms + 1)


__all__ = ["HybridPolicy"]
