"""FrontCache Eviction Policy - Abstract Eviction Interface.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Mapping, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from frontcache_core.cache.entry import CacheEntry

logger = logging.getLogger(__name__)


@dataclass
class EvictionStats:
    """Eviction policy statistics.

    Attributes:
        evictions: Number of victims chosen
        scans: Number of selection passes
    """

    evictions: int = 0
    scans: int = 0

    @property
    def eviction_rate(self) -> float:
        """Get victims per scan."""
        return self.evictions / self.scans if self.scans > 0 else 0.0


class EvictionPolicy(ABC):
    """Abstract base for eviction policies.

    A policy inspects the live entries of a cache and names the key
    that should go next. Policies keep no per-key state of their own;
    everything they need lives on the entries.

    Implementations:
    - LRU: smallest last access time
    - Hybrid: lowest accesses-per-idle-millisecond score

    Example:
        policy = LRUPolicy()
        victim = policy.choose_eviction(entries, now=time.time())
    """

    name = "policy"

    def __init__(self):
        self._stats = EvictionStats()

    @abstractmethod
    def score(self, entry: "CacheEntry", now: float) -> float:
        """Rank an entry; the lowest score is evicted first.

        Args:
            entry: Candidate entry
            now: Current time in seconds

        Returns:
            Eviction score
        """
        pass

    def choose_eviction(
        self,
        entries: Mapping[str, "CacheEntry"],
        now: float,
    ) -> Optional[str]:
        """Choose key to evict.

        Ties keep the first candidate in insertion order.

        Args:
            entries: Live entries keyed by cache key
            now: Current time in seconds

        Returns:
            Key to evict or None if empty
        """
        self._stats.scans += 1
        victim: Optional[str] = None
        lowest = 0.0
        for key, entry in entries.items():
            current = self.score(entry, now)
            if victim is None or current < lowest:
                victim = key
                lowest = current

        if victim is not None:
            self._stats.evictions += 1
        return victim

    def rank(self, entries: Mapping[str, "CacheEntry"], now: float) -> List[str]:
        """Order keys from first to last eviction candidate.

        Args:
            entries: Live entries keyed by cache key
            now: Current time in seconds

        Returns:
            Keys sorted by ascending score
        """
        return sorted(entries, key=lambda k: self.score(entries[k], now))

    def get_stats(self) -> EvictionStats:
        """Get eviction statistics."""
        return self._stats

    def __repr__(self) -> str:
        return f"{type(self).__name__}(evictions={self._stats.evictions})"


__all__ = ["EvictionPolicy", "EvictionStats"]
