"""FrontCache Entry - Cache Entry with Access Bookkeeping.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


def estimate_size(value: Any) -> int:
    """Approximate the serialized size of a value.

    Args:
        value: Value to measure

    Returns:
        Size in bytes of the UTF-8 JSON encoding, or 0 if not serializable
    """
    try:
        return len(json.dumps(value, default=str).encode("utf-8"))
    except (TypeError, ValueError):
        return 0


@dataclass
class CacheEntry:
    """A cache entry with value and access bookkeeping.

    Attributes:
        key: Cache key
        value: Cached value
        created_at: When entry was stored (epoch seconds)
        last_accessed_at: Last hit time (epoch seconds)
        access_count: Number of accesses, starting at 1 on creation
        size_bytes: Approximate serialized size of value
    """

    key: str
    value: Any
    created_at: float = field(default_factory=time.time)
    last_accessed_at: Optional[float] = None
    access_count: int = 1
    size_bytes: Optional[int] = None

    def __post_init__(self):
        if self.last_accessed_at is None:
            self.last_accessed_at = self.created_at
        if self.size_bytes is None:
            self.size_bytes = estimate_size(self.value)

    def age(self, now: Optional[float] = None) -> float:
        """Get entry age in seconds."""
        now = time.time() if now is None else now
        return now - self.created_at

    def is_expired(self, ttl: float, now: Optional[float] = None) -> bool:
        """Check if entry is older than ttl.

        Args:
            ttl: Time to live in seconds
            now: Current time (defaults to wall clock)

        Returns:
            True if expired
        """
        return self.age(now) > ttl

    def touch(self, now: Optional[float] = None) -> None:
        """Update access time and count."""
        self.last_accessed_at = time.time() if now is None else now
        self.access_count += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary.

        Returns:
            Dictionary representation
        """
        return {
            "key": self.key,
            "value": self.value,
            "created_at": self.created_at,
            "last_accessed_at": self.last_accessed_at,
            "access_count": self.access_count,
            "size_bytes": self.size_bytes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        """Create from dictionary.

        Args:
            data: Dictionary data

        Returns:
            CacheEntry instance

        Raises:
            KeyError: If key, value or created_at is missing
        """
        return cls(
            key=data["key"],
            value=data["value"],
            created_at=float(data["created_at"]),
            last_accessed_at=data.get("last_accessed_at"),
            access_count=int(data.get("access_count", 1)),
            size_bytes=data.get("size_bytes"),
        )

    def __repr__(self) -> str:
        return (
            f"CacheEntry(key={self.key!r}, hits={self.access_count}, "
            f"size={self.size_bytes}B)"
        )


__all__ = ["CacheEntry", "estimate_size"]
