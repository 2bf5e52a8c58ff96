"""FrontCache Memory Adapter - In-Process Persistence.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from frontcache_core.store.backend import (
    PersistenceAdapter,
    PersistenceHandle,
    StorageConfig,
)

logger = logging.getLogger(__name__)


class MemoryAdapter(PersistenceAdapter):
    """In-memory persistence adapter.

    Keeps serialized bytes in dictionaries, so values go through the same
    encode/decode path as the durable adapters. Useful for tests and for
    sharing a snapshot between cache instances in one process.

    Example:
        adapter = MemoryAdapter()
        handle = adapter.open("frontcache")
        adapter.put(handle, "app-cache", {"a": 1})
    """

    def __init__(self, config: Optional[StorageConfig] = None):
        """Initialize memory adapter.

        Args:
            config: Storage configuration
        """
        super().__init__(config)
        self._data: Dict[str, Dict[str, bytes]] = {}
        self._lock = threading.RLock()

    def _create_store(self, name: str) -> None:
        with self._lock:
            self._data.setdefault(name, {})

    def get(self, handle: PersistenceHandle, key: str) -> Any:
        with self._lock:
            self._stats.reads += 1
            raw = self._data[handle.name].get(key)
        if raw is None:
            return None
        return self._decode(raw)

    def put(self, handle: PersistenceHandle, key: str, value: Any) -> None:
        raw = self._encode(value)
        with self._lock:
            self._data[handle.name][key] = raw
            self._stats.writes += 1

    def put_raw(self, handle: PersistenceHandle, key: str, raw: bytes) -> None:
        """Store bytes without encoding them.

        Args:
            handle: Store handle
            key: Record key
            raw: Bytes to store verbatim
        """
        with self._lock:
            self._data[handle.name][key] = raw

    def delete(self, handle: PersistenceHandle, key: str) -> bool:
        with self._lock:
            if self._data[handle.name].pop(key, None) is None:
                return False
            self._stats.deletes += 1
            return True

    def keys(self, handle: PersistenceHandle) -> List[str]:
        with self._lock:
            return list(self._data[handle.name].keys())

    def __repr__(self) -> str:
        return f"MemoryAdapter(stores={len(self._data)})"


__all__ = ["MemoryAdapter"]
