"""FrontCache Redis Adapter - Redis-Backed Persistence.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from frontcache_core.store.backend import PersistenceAdapter, PersistenceHandle, StorageConfig

logger = logging.getLogger(__name__)


@dataclass
class RedisConfig(StorageConfig):
    """Redis-specific configuration.

    Attributes:
        host: Redis host
        port: Redis port
        db: Redis database number
        password: Redis password
        socket_timeout: Socket timeout
        socket_connect_timeout: Connection timeout
        max_connections: Connection pool size
        prefix: Key prefix
    """

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0
    max_connections: int = 10
    prefix: str = "frontcache:"


class RedisAdapter(PersistenceAdapter):
    """Redis persistence adapter.

    Records live at ``{prefix}{store}:{key}``. A set at
    ``{prefix}{store}:__keys__`` indexes each store so it can be listed
    without scanning.

    Example:
        adapter = RedisAdapter(RedisConfig(host="redis.local"))
        handle = adapter.open("frontcache")
        adapter.put(handle, "app-cache", snapshot)
    """

    INDEX_SUFFIX = "__keys__"

    def __init__(self, config: Optional[RedisConfig] = None, client: Optional[Any] = None):
        """Initialize Redis adapter.

        Args:
            config: Redis configuration
            client: Pre-built Redis client (skips pool creation)
        """
        config = config or RedisConfig()
        super().__init__(config)
        self.config: RedisConfig = config
        self._client: Optional[Any] = client
        self._pool: Optional[Any] = None

    def _ensure_connected(self) -> Any:
        """Ensure Redis connection exists.

        Returns:
            Redis client
        """
        if self._client is not None:
            return self._client

        import redis

        try:
            self._pool = redis.ConnectionPool(
                host=self.config.host,
                port=self.config.port,
                db=self.config.db,
                password=self.config.password,
                socket_timeout=self.config.socket_timeout,
                socket_connect_timeout=self.config.socket_connect_timeout,
                max_connections=self.config.max_connections,
                decode_responses=False,  # We handle serialization
            )
            self._client = redis.Redis(connection_pool=self._pool)
            self._client.ping()
            logger.info(f"Connected to Redis at {self.config.host}:{self.config.port}")
            return self._client

        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise

    def _make_key(self, handle: PersistenceHandle, key: str) -> str:
        return f"{self.config.prefix}{handle.name}:{key}"

    def _index_key(self, name: str) -> str:
        return f"{self.config.prefix}{name}:{self.INDEX_SUFFIX}"

    def _create_store(self, name: str) -> None:
        # Redis creates keys lazily; connecting is enough
        self._ensure_connected()

    def get(self, handle: PersistenceHandle, key: str) -> Any:
        client = self._ensure_connected()
        self._stats.reads += 1
        data = client.get(self._make_key(handle, key))
        if data is None:
            return None
        return self._decode(data)

    def put(self, handle: PersistenceHandle, key: str, value: Any) -> None:
        client = self._ensure_connected()
        pipe = client.pipeline()
        pipe.set(self._make_key(handle, key), self._encode(value))
        pipe.sadd(self._index_key(handle.name), key)
        pipe.execute()
        self._stats.writes += 1

    def delete(self, handle: PersistenceHandle, key: str) -> bool:
        client = self._ensure_connected()
        removed = client.delete(self._make_key(handle, key))
        client.srem(self._index_key(handle.name), key)
        if removed:
            self._stats.deletes += 1
        return removed > 0

    def keys(self, handle: PersistenceHandle) -> List[str]:
        client = self._ensure_connected()
        return [
            k.decode() if isinstance(k, bytes) else k
            for k in client.smembers(self._index_key(handle.name))
        ]

    def close(self) -> None:
        """Close Redis connection."""
        if self._pool:
            self._pool.disconnect()
            self._pool = None
            self._client = None

    def __repr__(self) -> str:
        return f"RedisAdapter(host={self.config.host}, port={self.config.port})"


__all__ = ["RedisAdapter", "RedisConfig"]
