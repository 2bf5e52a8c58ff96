"""FrontCache Response Namespaces - Versioned Partitions of Stored Responses.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Dict, Iterator, List, Optional

import httpx

from frontcache_core.resource.response import StoredResponse, request_key
from frontcache_core.store.backend import PersistenceAdapter, PersistenceHandle

logger = logging.getLogger(__name__)


class ResponseNamespace:
    """Named partition of stored responses.

    Each namespace holds one generation of responses and carries the
    version tag of the worker that created it. When backed by a
    persistence adapter every write goes through to it.
    """

    def __init__(
        self,
        name: str,
        version: str,
        adapter: Optional[PersistenceAdapter] = None,
    ):
        """Initialize namespace.

        Args:
            name: Namespace name
            version: Version tag
            adapter: Persistence adapter for write-through
        """
        self.name = name
        self.version = version
        self.created_at = datetime.now()

        self._responses: Dict[str, StoredResponse] = {}
        self._adapter = adapter
        self._handle: Optional[PersistenceHandle] = adapter.open(name) if adapter else None
        self._lock = threading.RLock()

    def match(self, request: httpx.Request) -> Optional[StoredResponse]:
        """Look up the stored response for a request.

        Args:
            request: Request to match

        Returns:
            StoredResponse or None
        """
        return self._responses.get(request_key(request))

    def put(self, request: httpx.Request, response: httpx.Response) -> StoredResponse:
        """Store a read response for a request.

        Args:
            request: Request the response answers
            response: Response whose body has been read

        Returns:
            The stored snapshot
        """
        key = request_key(request)
        stored = StoredResponse.from_response(key, response)
        with self._lock:
            self._responses[key] = stored
            if self._adapter is not None:
                self._adapter.put(self._handle, key, stored.to_dict())
        return stored

    def delete(self, request: httpx.Request) -> bool:
        """Delete the stored response for a request.

        Args:
            request: Request to forget

        Returns:
            True if deleted
        """
        key = request_key(request)
        with self._lock:
            if self._responses.pop(key, None) is None:
                return False
            if self._adapter is not None:
                self._adapter.delete(self._handle, key)
            return True

    def keys(self) -> List[str]:
        """Get stored URLs."""
        return list(self._responses.keys())

    def purge(self) -> int:
        """Delete every stored response, including persisted copies.

        Returns:
            Number deleted
        """
        with self._lock:
            count = len(self._responses)
            if self._adapter is not None:
                for key in self._adapter.keys(self._handle):
                    self._adapter.delete(self._handle, key)
            self._responses.clear()
            return count

    def load(self) -> int:
        """Load persisted responses.

        Unreadable records are skipped and logged.

        Returns:
            Number loaded
        """
        if self._adapter is None:
            return 0

        loaded = 0
        with self._lock:
            for key in self._adapter.keys(self._handle):
                try:
                    self._responses[key] = StoredResponse.from_dict(self._adapter.get(self._handle, key))
                    loaded += 1
                except Exception as e:
                    logger.warning(f"Skipping unreadable response {key!r} in {self.name}: {e}")
        return loaded

    def __contains__(self, request: httpx.Request) -> bool:
        return self.match(request) is not None

    def __len__(self) -> int:
        return len(self._responses)

    def __repr__(self) -> str:
        return f"ResponseNamespace(name={self.name!r}, version={self.version!r}, entries={len(self)})"


class CacheStorage:
    """Registry of response namespaces.

    Provides:
    - Namespace creation on first open
    - Cross-namespace lookups (oldest namespace first)
    - Namespace deletion
    - Optional persistence of the whole registry

    Example:
        storage = CacheStorage()
        static = storage.open("frontcache-v2-static", version="v2")
        response = storage.match(request)
    """

    INDEX_STORE = "frontcache-namespaces"
    INDEX_KEY = "index"

    def __init__(self, adapter: Optional[PersistenceAdapter] = None):
        """Initialize storage.

        Args:
            adapter: Persistence adapter; namespaces are memory-only without one
        """
        self._adapter = adapter
        self._namespaces: Dict[str, ResponseNamespace] = {}
        self._lock = threading.RLock()
        self._index_handle: Optional[PersistenceHandle] = None

        if adapter is not None:
            self._index_handle = adapter.open(self.INDEX_STORE)
            self._load()

    def open(self, name: str, version: str) -> ResponseNamespace:
        """Get or create a namespace.

        An existing namespace keeps its original version tag.

        Args:
            name: Namespace name
            version: Version tag for a new namespace

        Returns:
            ResponseNamespace instance
        """
        with self._lock:
            namespace = self._namespaces.get(name)
            if namespace is not None:
                return namespace

            namespace = ResponseNamespace(name, version, adapter=self._adapter)
            self._namespaces[name] = namespace
            self._save_index()
            logger.debug(f"Created namespace {name} ({version})")
            return namespace

    def get(self, name: str) -> Optional[ResponseNamespace]:
        """Get namespace by name."""
        return self._namespaces.get(name)

    def has(self, name: str) -> bool:
        return name in self._namespaces

    def names(self) -> List[str]:
        """List namespace names in creation order."""
        return list(self._namespaces.keys())

    def delete(self, name: str) -> bool:
        """Delete a namespace and its responses.

        Args:
            name: Namespace name

        Returns:
            True if deleted
        """
        with self._lock:
            namespace = self._namespaces.pop(name, None)
            if namespace is None:
                return False
            namespace.purge()
            self._save_index()
            return True

    def match(self, request: httpx.Request) -> Optional[StoredResponse]:
        """Look up a request across all namespaces.

        Args:
            request: Request to match

        Returns:
            First stored response found, or None
        """
        for namespace in list(self._namespaces.values()):
            stored = namespace.match(request)
            if stored is not None:
                return stored
        return None

    def _save_index(self) -> None:
        if self._adapter is None:
            return
        index = {name: ns.version for name, ns in self._namespaces.items()}
        self._adapter.put(self._index_handle, self.INDEX_KEY, index)

    def _load(self) -> None:
        try:
            index = self._adapter.get(self._index_handle, self.INDEX_KEY) or {}
        except Exception as e:
            logger.error(f"Unreadable namespace index, starting empty: {e}")
            return

        for name, version in index.items():
            namespace = ResponseNamespace(name, version, adapter=self._adapter)
            namespace.load()
            self._namespaces[name] = namespace
        logger.info(f"Restored {len(self._namespaces)} namespaces")

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __len__(self) -> int:
        return len(self._namespaces)

    def __iter__(self) -> Iterator[ResponseNamespace]:
        return iter(list(self._namespaces.values()))


__all__ = ["ResponseNamespace", "CacheStorage"]
