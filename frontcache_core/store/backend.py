"""FrontCache Persistence Adapter - Abstract Durable Storage Interface.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from frontcache_core.protocol.serializer import Serializer, get_serializer

logger = logging.getLogger(__name__)


@dataclass
class StorageConfig:
    """Persistence adapter configuration.

    Attributes:
        name: Adapter name
        serializer: Serializer format name
        compression: Gzip large payloads
        compression_threshold: Bytes threshold for compression
    """

    name: str = "storage"
    serializer: str = "json"
    compression: bool = False
    compression_threshold: int = 1024


@dataclass
class StorageStats:
    """Persistence adapter statistics.

    Attributes:
        reads: Number of read operations
        writes: Number of write operations
        deletes: Number of delete operations
        errors: Number of errors
    """

    reads: int = 0
    writes: int = 0
    deletes: int = 0
    errors: int = 0
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None

    def record_error(self, error: str) -> None:
        """Record an error."""
        self.errors += 1
        self.last_error = error
        self.last_error_at = datetime.now()


@dataclass(frozen=True)
class PersistenceHandle:
    """Handle to an opened logical store.

    Attributes:
        name: Store name
    """

    name: str


class PersistenceAdapter(ABC):
    """Abstract durable key-value storage.

    Values are plain data (dicts, lists, strings, numbers) encoded with
    the configured serializer. Stores are opened by name and created on
    first open.

    Implementations:
    - MemoryAdapter: In-process dictionaries
    - FileAdapter: One file per key under a directory per store
    - RedisAdapter: Redis keys under a prefix

    Unlike the in-memory cache, adapters raise on I/O and decode errors;
    callers decide whether a failure is fatal.
    """

    def __init__(self, config: Optional[StorageConfig] = None):
        """Initialize adapter.

        Args:
            config: Storage configuration
        """
        self.config = config or StorageConfig()
        self._serializer: Serializer = get_serializer(self.config.serializer)
        self._handles: Dict[str, PersistenceHandle] = {}
        self._stats = StorageStats()

    def open(self, name: str) -> PersistenceHandle:
        """Open a named store, creating it if needed.

        Args:
            name: Store name

        Returns:
            Handle for subsequent calls
        """
        handle = self._handles.get(name)
        if handle is None:
            self._create_store(name)
            handle = PersistenceHandle(name)
            self._handles[name] = handle
            logger.debug(f"Opened store {name!r} on {self!r}")
        return handle

    def _encode(self, value: Any) -> bytes:
        return self._serializer.dumps(
            value,
            compress=self.config.compression,
            threshold=self.config.compression_threshold,
        )

    def _decode(self, data: bytes) -> Any:
        return self._serializer.loads(data)

    @abstractmethod
    def _create_store(self, name: str) -> None:
        """Create underlying storage for a store name.

        Args:
            name: Store name
        """
        pass

    @abstractmethod
    def get(self, handle: PersistenceHandle, key: str) -> Any:
        """Read a value.

        Args:
            handle: Store handle
            key: Record key

        Returns:
            Stored value or None
        """
        pass

    @abstractmethod
    def put(self, handle: PersistenceHandle, key: str, value: Any) -> None:
        """Write a value.

        Args:
            handle: Store handle
            key: Record key
            value: Plain data value
        """
        pass

    @abstractmethod
    def delete(self, handle: PersistenceHandle, key: str) -> bool:
        """Delete a value.

        Args:
            handle: Store handle
            key: Record key

        Returns:
            True if a value was removed
        """
        pass

    @abstractmethod
    def keys(self, handle: PersistenceHandle) -> List[str]:
        """List record keys in a store.

        Args:
            handle: Store handle

        Returns:
            List of keys
        """
        pass

    def get_stats(self) -> StorageStats:
        """Get storage statistics."""
        return self._stats

    def reset_stats(self) -> None:
        """Reset statistics."""
        self._stats = StorageStats()


__all__ = ["PersistenceAdapter", "PersistenceHandle", "StorageConfig", "StorageStats"]
