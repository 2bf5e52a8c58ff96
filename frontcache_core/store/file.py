"""FrontCache File Adapter - File-Based Persistence.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import hashlib
import logging
import os
import threading
from pathlib import Path
from typing import Any, List, Optional

from frontcache_core.store.backend import (
    PersistenceAdapter,
    PersistenceHandle,
    StorageConfig,
)

logger = logging.getLogger(__name__)


class FileAdapter(PersistenceAdapter):
    """File-based persistence adapter.

    Each store is a directory under the base path; each record is one
    file named by the SHA-256 of its key. The original key is stored
    alongside the value so stores can be listed.

    Features:
    - Durable across restarts
    - Atomic writes (temp file + rename)
    - Configurable serialization and compression

    Example:
        adapter = FileAdapter("/var/cache/frontcache")
        handle = adapter.open("offline-store")
        adapter.put(handle, "pending-actions", [])
    """

    TEMP_SUFFIX = ".tmp"

    def __init__(
        self,
        base_path: str,
        config: Optional[StorageConfig] = None,
    ):
        """Initialize file adapter.

        Args:
            base_path: Base directory for store directories
            config: Storage configuration
        """
        super().__init__(config)
        self.base_path = Path(base_path)
        self._lock = threading.RLock()

    def _store_dir(self, name: str) -> Path:
        # Store names come from application config; hash anything unsafe
        if name.replace("-", "").replace("_", "").replace(".", "").isalnum():
            return self.base_path / name
        return self.base_path / hashlib.md5(name.encode()).hexdigest()

    def _get_path(self, handle: PersistenceHandle, key: str) -> Path:
        filename = hashlib.sha256(key.encode()).hexdigest()
        return self._store_dir(handle.name) / filename

    def _create_store(self, name: str) -> None:
        self._store_dir(name).mkdir(parents=True, exist_ok=True)

    def get(self, handle: PersistenceHandle, key: str) -> Any:
        path = self._get_path(handle, key)

        with self._lock:
            self._stats.reads += 1
            if not path.exists():
                return None
            try:
                record = self._decode(path.read_bytes())
                return record["value"]
            except Exception as e:
                self._stats.record_error(str(e))
                raise

    def put(self, handle: PersistenceHandle, key: str, value: Any) -> None:
        path = self._get_path(handle, key)
        temp_path = path.with_suffix(self.TEMP_SUFFIX)

        with self._lock:
            try:
                temp_path.write_bytes(self._encode({"key": key, "value": value}))
                os.replace(temp_path, path)
                self._stats.writes += 1
            except Exception as e:
                logger.error(f"Error writing {key} to {handle.name}: {e}")
                self._stats.record_error(str(e))
                if temp_path.exists():
                    temp_path.unlink()
                raise

    def delete(self, handle: PersistenceHandle, key: str) -> bool:
        path = self._get_path(handle, key)

        with self._lock:
            if not path.exists():
                return False
            path.unlink()
            self._stats.deletes += 1
            return True

    def keys(self, handle: PersistenceHandle) -> List[str]:
        """List record keys.

        Reads every file in the store directory; unreadable files are
        skipped and logged.
        """
        keys = []
        with self._lock:
            for file_path in self._store_dir(handle.name).iterdir():
                if not file_path.is_file() or file_path.suffix == self.TEMP_SUFFIX:
                    continue
                try:
                    keys.append(self._decode(file_path.read_bytes())["key"])
                except Exception as e:
                    logger.warning(f"Skipping unreadable record {file_path.name}: {e}")
        return keys

    def disk_usage(self) -> int:
        """Get total disk usage.

        Returns:
            Size in bytes
        """
        total = 0
        if not self.base_path.exists():
            return total
        for store_dir in self.base_path.iterdir():
            if store_dir.is_dir():
                total += sum(f.stat().st_size for f in store_dir.iterdir() if f.is_file())
        return total

    def __repr__(self) -> str:
        return f"FileAdapter(path={self.base_path})"


__all__ = ["FileAdapter"]
